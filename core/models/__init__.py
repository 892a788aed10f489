"""Core domain models."""

from core.models.reservation import (
    Reservation, ReservationCreate, ReservationDatesUpdate,
    ReservationStatus, PaymentStatus,
)
from core.models.ledger_entry import (
    LedgerEntry, PaymentEntry, RefundEntry, AdjustmentEntry, PriceChangeEntry,
    PaymentMethod, AdjustmentType, entry_from_row,
)
from core.models.ledger_snapshot import LedgerSnapshot

__all__ = [
    # Reservation
    "Reservation", "ReservationCreate", "ReservationDatesUpdate",
    "ReservationStatus", "PaymentStatus",
    # Ledger entries
    "LedgerEntry", "PaymentEntry", "RefundEntry", "AdjustmentEntry", "PriceChangeEntry",
    "PaymentMethod", "AdjustmentType", "entry_from_row",
    # Snapshot
    "LedgerSnapshot",
]
