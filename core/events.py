"""
Domain events for the reservation ledger.

Immutable event objects published after a mutation has committed. Handlers
(notifications today) react without the ledger knowing who is listening.

Event Categories:
- ReservationEvent: Reservation lifecycle (opened, status changed)
- LedgerEntryEvent: One per appended entry (payment, refund, adjustment,
  price change)

Events carry the committed entry and the reservation as stored after the
append, so handlers never re-read state that may have moved on.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4

from utils.timezone import now_utc


@dataclass(frozen=True, kw_only=True)
class RentalEvent:
    """Base class for all reservation and ledger events."""
    event_id: str = field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = field(default_factory=now_utc)


# =============================================================================
# RESERVATION EVENTS
# =============================================================================


@dataclass(frozen=True)
class ReservationEvent(RentalEvent):
    """Events related to the reservation lifecycle."""
    pass


@dataclass(frozen=True)
class ReservationOpened(ReservationEvent):
    """A reservation ledger was opened in PENDING status."""
    reservation: Any = None  # Reservation

    @classmethod
    def create(cls, reservation: Any) -> "ReservationOpened":
        return cls(reservation=reservation)


@dataclass(frozen=True)
class ReservationStatusChanged(ReservationEvent):
    """Reservation moved from one status to another."""
    reservation: Any = None
    old_status: Any = None  # ReservationStatus
    new_status: Any = None

    @classmethod
    def create(cls, reservation: Any, old_status: Any) -> "ReservationStatusChanged":
        return cls(
            reservation=reservation,
            old_status=old_status,
            new_status=reservation.status,
        )


# =============================================================================
# LEDGER EVENTS
# =============================================================================


@dataclass(frozen=True)
class LedgerEntryEvent(RentalEvent):
    """An entry was appended to a reservation's ledger."""
    entry: Any = None  # LedgerEntry
    reservation: Any = None  # Reservation with the new derived totals

    @classmethod
    def create(cls, entry: Any, reservation: Any) -> "LedgerEntryEvent":
        return cls(entry=entry, reservation=reservation)


@dataclass(frozen=True)
class PaymentRecorded(LedgerEntryEvent):
    """Money received from the guest."""
    pass


@dataclass(frozen=True)
class RefundRecorded(LedgerEntryEvent):
    """Money returned to the guest."""
    pass


@dataclass(frozen=True)
class AdjustmentAdded(LedgerEntryEvent):
    """Discount, fee, refund credit or deposit return applied."""
    pass


@dataclass(frozen=True)
class PriceChanged(LedgerEntryEvent):
    """Contracted total changed."""
    pass


_EVENT_BY_KIND = {
    "payment": PaymentRecorded,
    "refund": RefundRecorded,
    "adjustment": AdjustmentAdded,
    "price_change": PriceChanged,
}


def event_for_entry(entry: Any, reservation: Any) -> LedgerEntryEvent:
    """Build the event matching an entry's kind."""
    return _EVENT_BY_KIND[entry.kind].create(entry, reservation)
