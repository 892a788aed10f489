"""Reservation domain models.

Only the fields the ledger needs. Identity, guest and property records are
owned by the reservation CRUD service; guest_name and property_name are
display labels copied from it.

All amounts are stored in minor units (integer) to avoid floating point
issues. AED 10.00 = 1000.
"""

from datetime import date, datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from core.money import MAX_MINOR_UNITS, Money


class ReservationStatus(str, Enum):
    """Booking lifecycle status."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"
    MODIFIED = "modified"


class PaymentStatus(str, Enum):
    """Payment position derived from the ledger entries."""

    UNPAID = "unpaid"
    PARTIALLY_PAID = "partially_paid"
    FULLY_PAID = "fully_paid"
    REFUNDED = "refunded"
    PENDING_REFUND = "pending_refund"


def _check_dates(check_in: date | None, check_out: date | None) -> None:
    if check_in is not None and check_out is not None and check_out <= check_in:
        raise ValueError("check_out must be after check_in")


class ReservationCreate(BaseModel):
    """Data required to open a reservation ledger."""

    property_id: UUID
    guest_id: UUID
    guest_name: str | None = Field(None, max_length=200)
    property_name: str | None = Field(None, max_length=200)
    check_in: date
    check_out: date
    total_amount_cents: int = Field(..., gt=0, le=MAX_MINOR_UNITS)
    currency: str | None = Field(None, min_length=3, max_length=3)

    @model_validator(mode="after")
    def check_stay_dates(self) -> "ReservationCreate":
        _check_dates(self.check_in, self.check_out)
        if self.currency is not None:
            self.currency = self.currency.upper()
        return self


class ReservationDatesUpdate(BaseModel):
    """New stay dates. Both required so the range is always validated."""

    check_in: date
    check_out: date

    @model_validator(mode="after")
    def check_stay_dates(self) -> "ReservationDatesUpdate":
        _check_dates(self.check_in, self.check_out)
        return self


class Reservation(BaseModel):
    """Reservation as stored, including the derived ledger totals."""

    id: UUID
    property_id: UUID
    guest_id: UUID
    guest_name: str | None = None
    property_name: str | None = None
    check_in: date
    check_out: date
    status: ReservationStatus
    currency: str
    total_amount_cents: int
    paid_amount_cents: int = 0
    adjustment_total_cents: int = 0
    outstanding_balance_cents: int
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    refund_pending: bool = False
    created_by: UUID | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    @property
    def total_amount(self) -> Money:
        return Money(self.total_amount_cents, self.currency)

    @property
    def outstanding_balance(self) -> Money:
        return Money(self.outstanding_balance_cents, self.currency)

    @property
    def is_terminal(self) -> bool:
        """Whether the booking lifecycle has ended."""
        return self.status in (
            ReservationStatus.CANCELLED,
            ReservationStatus.COMPLETED,
            ReservationStatus.NO_SHOW,
        )
