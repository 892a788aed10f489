"""
Reservation service: opens ledgers and drives the status state machine.

Guest, property and calendar records live in the reservation CRUD service;
this service keeps only what the ledger needs and enforces the allowed
status transitions.
"""

import logging
from datetime import date
from typing import Callable
from uuid import UUID, uuid4

from core.audit import AuditAction, AuditLogger, compute_changes, log_after_commit
from core.config import LedgerConfig
from core.event_bus import EventBus
from core.events import ReservationOpened, ReservationStatusChanged
from core.locks import LockManager
from core.models.reservation import (
    PaymentStatus,
    Reservation,
    ReservationCreate,
    ReservationDatesUpdate,
    ReservationStatus,
)
from core.repositories.base import LedgerRepository
from core.reservation_status import StatusTransitionError, is_terminal, validate_transition
from utils.timezone import now_utc, today_utc
from utils.user_context import get_current_user_id

logger = logging.getLogger(__name__)


class ReservationService:
    """Service for reservation lifecycle operations."""

    def __init__(
        self,
        repository: LedgerRepository,
        locks: LockManager,
        audit: AuditLogger,
        event_bus: EventBus,
        config: LedgerConfig | None = None,
        today: Callable[[], date] = today_utc,
    ):
        self.repository = repository
        self.locks = locks
        self.audit = audit
        self.event_bus = event_bus
        self.config = config or LedgerConfig()
        self.today = today

    def open(self, data: ReservationCreate) -> Reservation:
        """
        Open a reservation ledger in PENDING status with no entries.

        Args:
            data: Validated reservation data. Without a currency the
                configured default_currency is used.

        Returns:
            Created reservation, UNPAID with outstanding equal to the total
        """
        now = now_utc()
        reservation = Reservation(
            id=uuid4(),
            property_id=data.property_id,
            guest_id=data.guest_id,
            guest_name=data.guest_name,
            property_name=data.property_name,
            check_in=data.check_in,
            check_out=data.check_out,
            status=ReservationStatus.PENDING,
            currency=data.currency or self.config.default_currency,
            total_amount_cents=data.total_amount_cents,
            outstanding_balance_cents=data.total_amount_cents,
            payment_status=PaymentStatus.UNPAID,
            created_by=get_current_user_id(),
            created_at=now,
            updated_at=now,
        )
        reservation = self.repository.create_reservation(reservation)

        log_after_commit(
            self.audit,
            entity_type="reservation",
            entity_id=reservation.id,
            action=AuditAction.CREATE,
            changes={"created": {
                **data.model_dump(mode="json", exclude_none=True),
                "currency": reservation.currency,
            }},
        )
        self.event_bus.publish(ReservationOpened.create(reservation))

        logger.info(f"Opened reservation {reservation.id} for {reservation.total_amount}")
        return reservation

    def get_by_id(self, reservation_id: UUID) -> Reservation | None:
        """
        Get reservation by ID.

        Returns:
            Reservation if found, None otherwise.
        """
        return self.repository.get_reservation(reservation_id)

    def list_by_status(
        self,
        status: ReservationStatus | str | None = None,
        limit: int = 100,
    ) -> list[Reservation]:
        """
        List reservations ordered by check-in, optionally filtered by status.

        Raises:
            ValueError: If status is not a known reservation status
        """
        if status is not None:
            status = ReservationStatus(status)
        return self.repository.list_reservations(status, limit)

    def confirm(self, reservation_id: UUID) -> Reservation:
        """PENDING -> CONFIRMED."""
        return self._transition(reservation_id, ReservationStatus.CONFIRMED)

    def complete(self, reservation_id: UUID) -> Reservation:
        """CONFIRMED -> COMPLETED, only once the check-out date is reached."""
        return self._transition(reservation_id, ReservationStatus.COMPLETED)

    def cancel(self, reservation_id: UUID) -> Reservation:
        """PENDING, CONFIRMED or MODIFIED -> CANCELLED. Entries are kept."""
        return self._transition(reservation_id, ReservationStatus.CANCELLED)

    def mark_no_show(self, reservation_id: UUID) -> Reservation:
        """CONFIRMED -> NO_SHOW, only once the check-in date is reached."""
        return self._transition(reservation_id, ReservationStatus.NO_SHOW)

    def mark_modified(self, reservation_id: UUID) -> Reservation:
        """Any non-terminal status -> MODIFIED."""
        return self._transition(reservation_id, ReservationStatus.MODIFIED)

    def revalidate(self, reservation_id: UUID) -> Reservation:
        """
        MODIFIED -> CONFIRMED after the changed booking has been checked.

        Raises:
            ValueError: If not found
            StatusTransitionError: If the reservation is not MODIFIED
        """
        current = self._require(reservation_id)
        if current.status != ReservationStatus.MODIFIED:
            raise StatusTransitionError(
                current.status, ReservationStatus.CONFIRMED, "only modified reservations are revalidated"
            )
        return self._transition(reservation_id, ReservationStatus.CONFIRMED)

    def update_dates(self, reservation_id: UUID, data: ReservationDatesUpdate) -> Reservation:
        """
        Move the stay. The reservation becomes MODIFIED until revalidated.

        Raises:
            ValueError: If not found
            StatusTransitionError: If the reservation is terminal
        """
        with self.locks.hold(reservation_id):
            current = self._require(reservation_id)
            if is_terminal(current.status):
                raise StatusTransitionError(current.status, ReservationStatus.MODIFIED, "reservation is closed")

            updated = self.repository.update_reservation(
                reservation_id,
                {
                    "check_in": data.check_in,
                    "check_out": data.check_out,
                    "status": ReservationStatus.MODIFIED,
                    "updated_at": now_utc(),
                },
            )

        changes = compute_changes(
            current.model_dump(mode="json"),
            updated.model_dump(mode="json"),
        )
        if changes:
            log_after_commit(
                self.audit,
                entity_type="reservation",
                entity_id=reservation_id,
                action=AuditAction.UPDATE,
                changes=changes,
            )
        if current.status != updated.status:
            self.event_bus.publish(ReservationStatusChanged.create(updated, current.status))

        logger.info(
            f"Reservation {reservation_id} moved to "
            f"{data.check_in.isoformat()}..{data.check_out.isoformat()}"
        )
        return updated

    def _require(self, reservation_id: UUID) -> Reservation:
        reservation = self.repository.get_reservation(reservation_id)
        if reservation is None:
            raise ValueError(f"Reservation {reservation_id} not found")
        return reservation

    def _transition(self, reservation_id: UUID, requested: ReservationStatus) -> Reservation:
        with self.locks.hold(reservation_id):
            current = self._require(reservation_id)
            validate_transition(
                current.status,
                requested,
                current.check_in,
                current.check_out,
                self.today(),
            )
            updated = self.repository.update_reservation(
                reservation_id,
                {"status": requested, "updated_at": now_utc()},
            )

        log_after_commit(
            self.audit,
            entity_type="reservation",
            entity_id=reservation_id,
            action=AuditAction.UPDATE,
            changes={"status": {"old": current.status.value, "new": requested.value}},
        )
        self.event_bus.publish(ReservationStatusChanged.create(updated, current.status))

        logger.info(f"Reservation {reservation_id}: {current.status.value} -> {requested.value}")
        return updated
