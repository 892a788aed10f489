"""Ledger entry domain models.

Entries are immutable financial facts attached to a reservation. Every
variant stores a strictly positive amount_cents; direction comes from the
kind (and, for adjustments, from adjustment_type), never from a sign.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Union
from uuid import UUID

from pydantic import BaseModel, Field, TypeAdapter

from core.money import Money


class PaymentMethod(str, Enum):
    """How money changed hands."""

    CREDIT_CARD = "credit_card"
    PAYPAL = "paypal"
    BANK_TRANSFER = "bank_transfer"
    CASH = "cash"
    CHECK = "check"


class AdjustmentType(str, Enum):
    """Manual change to the amount owed. FEE adds, the rest subtract."""

    DISCOUNT = "discount"
    FEE = "fee"
    REFUND = "refund"
    DEPOSIT_RETURN = "deposit_return"


class _EntryBase(BaseModel):
    id: UUID
    reservation_id: UUID
    created_at: datetime
    created_by: UUID | None = None
    amount_cents: int = Field(..., gt=0)
    currency: str = Field(..., min_length=3, max_length=3)

    model_config = {"frozen": True, "from_attributes": True}

    @property
    def amount(self) -> Money:
        return Money(self.amount_cents, self.currency)


class PaymentEntry(_EntryBase):
    """Money received from the guest."""

    kind: Literal["payment"] = "payment"
    method: PaymentMethod
    reference: str | None = None
    description: str | None = None
    is_deposit: bool = False


class RefundEntry(_EntryBase):
    """Money returned to the guest. Reduces the paid total."""

    kind: Literal["refund"] = "refund"
    method: PaymentMethod
    reference: str | None = None
    description: str | None = None


class AdjustmentEntry(_EntryBase):
    """Discount, fee, refund credit or deposit return with a reason."""

    kind: Literal["adjustment"] = "adjustment"
    adjustment_type: AdjustmentType
    reason: str
    description: str

    @property
    def signed_amount_cents(self) -> int:
        """Contribution to the amount owed."""
        if self.adjustment_type == AdjustmentType.FEE:
            return self.amount_cents
        return -self.amount_cents


class PriceChangeEntry(_EntryBase):
    """
    Change of the contracted total.

    amount_cents equals new_amount_cents; the entry replaces the baseline
    rather than adding to it.
    """

    kind: Literal["price_change"] = "price_change"
    old_amount_cents: int = Field(..., gt=0)
    new_amount_cents: int = Field(..., gt=0)
    reason: str

    @property
    def difference_cents(self) -> int:
        return self.new_amount_cents - self.old_amount_cents


LedgerEntry = Annotated[
    Union[PaymentEntry, RefundEntry, AdjustmentEntry, PriceChangeEntry],
    Field(discriminator="kind"),
]

_ENTRY_ADAPTER = TypeAdapter(LedgerEntry)


def entry_from_row(row: dict) -> LedgerEntry:
    """Build the right entry variant from a stored row (dispatches on 'kind')."""
    return _ENTRY_ADAPTER.validate_python(row)
