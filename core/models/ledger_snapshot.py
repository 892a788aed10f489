"""Read-only, point-in-time view of a reservation's ledger."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel

from core.models.ledger_entry import LedgerEntry
from core.models.reservation import PaymentStatus, ReservationStatus
from core.money import Money


class LedgerSnapshot(BaseModel):
    """
    Computed totals plus the ordered entries that justify them.

    Guest and stay fields are optional so a document can still be produced
    from a partial record; consumers render missing values as "N/A".
    """

    reservation_id: UUID
    property_id: UUID | None = None
    guest_id: UUID | None = None
    guest_name: str | None = None
    property_name: str | None = None
    check_in: date | None = None
    check_out: date | None = None
    status: ReservationStatus | None = None
    currency: str
    total_amount_cents: int
    paid_amount_cents: int
    adjustment_total_cents: int
    outstanding_balance_cents: int
    payment_status: PaymentStatus
    entries: tuple[LedgerEntry, ...] = ()
    taken_at: datetime

    model_config = {"frozen": True}

    @property
    def total_amount(self) -> Money:
        return Money(self.total_amount_cents, self.currency)

    @property
    def paid_amount(self) -> Money:
        return Money(self.paid_amount_cents, self.currency)

    @property
    def adjustment_total(self) -> Money:
        return Money(self.adjustment_total_cents, self.currency)

    @property
    def outstanding_balance(self) -> Money:
        """Stored balance; negative means the guest holds a credit."""
        return Money(self.outstanding_balance_cents, self.currency)

    @property
    def display_outstanding_cents(self) -> int:
        """Outstanding balance clamped at zero for display."""
        return max(self.outstanding_balance_cents, 0)

    @property
    def credit_cents(self) -> int:
        """Overpayment held for the guest, zero when none."""
        return max(-self.outstanding_balance_cents, 0)

    @property
    def is_settled(self) -> bool:
        return self.outstanding_balance_cents <= 0

    @property
    def nights(self) -> int | None:
        if self.check_in is None or self.check_out is None:
            return None
        return (self.check_out - self.check_in).days
