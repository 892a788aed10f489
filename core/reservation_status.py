"""
Reservation status state machine.

    PENDING   -> CONFIRMED | CANCELLED | MODIFIED
    CONFIRMED -> COMPLETED (after check-out) | CANCELLED
                 | NO_SHOW (after check-in) | MODIFIED
    MODIFIED  -> CONFIRMED | CANCELLED | MODIFIED

CANCELLED, COMPLETED and NO_SHOW are terminal.
"""

from datetime import date

from core.models.reservation import ReservationStatus

TERMINAL_STATUSES = frozenset({
    ReservationStatus.CANCELLED,
    ReservationStatus.COMPLETED,
    ReservationStatus.NO_SHOW,
})

TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset({
        ReservationStatus.CONFIRMED,
        ReservationStatus.CANCELLED,
        ReservationStatus.MODIFIED,
    }),
    ReservationStatus.CONFIRMED: frozenset({
        ReservationStatus.COMPLETED,
        ReservationStatus.CANCELLED,
        ReservationStatus.NO_SHOW,
        ReservationStatus.MODIFIED,
    }),
    ReservationStatus.MODIFIED: frozenset({
        ReservationStatus.CONFIRMED,
        ReservationStatus.CANCELLED,
        ReservationStatus.MODIFIED,
    }),
    ReservationStatus.CANCELLED: frozenset(),
    ReservationStatus.COMPLETED: frozenset(),
    ReservationStatus.NO_SHOW: frozenset(),
}


class StatusTransitionError(ValueError):
    """Requested status change is not allowed from the current status."""

    def __init__(self, current: ReservationStatus, requested: ReservationStatus, reason: str | None = None):
        self.current = current
        self.requested = requested
        message = f"Cannot change reservation from {current.value} to {requested.value}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


def is_terminal(status: ReservationStatus) -> bool:
    return status in TERMINAL_STATUSES


def can_transition(current: ReservationStatus, requested: ReservationStatus) -> bool:
    """Whether the table allows current -> requested, ignoring date guards."""
    return requested in TRANSITIONS[current]


def validate_transition(
    current: ReservationStatus,
    requested: ReservationStatus,
    check_in: date,
    check_out: date,
    today: date,
) -> None:
    """
    Check a transition including its date guards.

    Raises:
        StatusTransitionError: If not allowed
    """
    if not can_transition(current, requested):
        reason = "reservation is closed" if is_terminal(current) else None
        raise StatusTransitionError(current, requested, reason)

    if requested == ReservationStatus.COMPLETED and today < check_out:
        raise StatusTransitionError(
            current, requested, f"check-out date {check_out.isoformat()} has not passed"
        )

    if requested == ReservationStatus.NO_SHOW and today < check_in:
        raise StatusTransitionError(
            current, requested, f"check-in date {check_in.isoformat()} has not arrived"
        )
