"""
Ledger arithmetic.

Pure functions over an ordered list of entries. Nothing here reads or writes
storage; LedgerService feeds entries in and persists what comes out, and the
same functions back get_snapshot(), so every total a caller sees is computed
the same way.

    paid        = sum(payments) - sum(refunds)
    adjustments = sum(fees) - sum(discounts, refund credits, deposit returns)
    outstanding = total + adjustments - paid      (unclamped; < 0 is a credit)
"""

from dataclasses import dataclass, replace
from typing import Iterable, Sequence

from core.models.ledger_entry import (
    AdjustmentEntry,
    LedgerEntry,
    PaymentEntry,
    PriceChangeEntry,
    RefundEntry,
)
from core.models.reservation import PaymentStatus
from core.money import Money


@dataclass(frozen=True)
class LedgerTotals:
    """Derived totals for one reservation, all in minor units of one currency."""

    currency: str
    total_amount_cents: int
    paid_amount_cents: int = 0
    adjustment_total_cents: int = 0

    @property
    def outstanding_balance_cents(self) -> int:
        return (
            Money(self.total_amount_cents, self.currency)
            .add(Money(self.adjustment_total_cents, self.currency))
            .subtract(Money(self.paid_amount_cents, self.currency))
            .minor_units
        )


def opening_total_cents(current_total_cents: int, entries: Sequence[LedgerEntry]) -> int:
    """
    Contracted price before any price change.

    The first PriceChange records what the total was when it was applied;
    without one the current total is the opening total.
    """
    for entry in entries:
        if isinstance(entry, PriceChangeEntry):
            return entry.old_amount_cents
    return current_total_cents


def apply_entry(totals: LedgerTotals, entry: LedgerEntry) -> LedgerTotals:
    """Totals after appending one entry."""
    if entry.currency != totals.currency:
        raise ValueError(
            f"Entry {entry.id} is in {entry.currency}, ledger is in {totals.currency}"
        )

    amount = Money(entry.amount_cents, totals.currency)

    if isinstance(entry, PaymentEntry):
        paid = Money(totals.paid_amount_cents, totals.currency).add(amount)
        return replace(totals, paid_amount_cents=paid.minor_units)

    if isinstance(entry, RefundEntry):
        paid = Money(totals.paid_amount_cents, totals.currency).subtract(amount)
        return replace(totals, paid_amount_cents=paid.minor_units)

    if isinstance(entry, AdjustmentEntry):
        delta = Money(entry.signed_amount_cents, totals.currency)
        adjustments = Money(totals.adjustment_total_cents, totals.currency).add(delta)
        return replace(totals, adjustment_total_cents=adjustments.minor_units)

    if isinstance(entry, PriceChangeEntry):
        return replace(totals, total_amount_cents=entry.new_amount_cents)

    raise TypeError(f"Unknown ledger entry type: {type(entry).__name__}")


def compute_totals(
    opening_total_cents: int,
    currency: str,
    entries: Iterable[LedgerEntry],
) -> LedgerTotals:
    """Fold entries, in order, onto the opening total."""
    totals = LedgerTotals(currency=currency, total_amount_cents=opening_total_cents)
    for entry in entries:
        totals = apply_entry(totals, entry)
    return totals


def _last_money_movement(entries: Sequence[LedgerEntry]) -> LedgerEntry | None:
    for entry in reversed(entries):
        if isinstance(entry, (PaymentEntry, RefundEntry)):
            return entry
    return None


def derive_payment_status(
    totals: LedgerTotals,
    entries: Sequence[LedgerEntry],
    refund_pending: bool = False,
) -> PaymentStatus:
    """
    Payment status from the totals and the entries behind them.

    refund_pending is set by the external refund-approval workflow and is the
    only input that does not come from the entries themselves.
    """
    if refund_pending:
        return PaymentStatus.PENDING_REFUND

    if totals.paid_amount_cents <= 0:
        if isinstance(_last_money_movement(entries), RefundEntry):
            return PaymentStatus.REFUNDED
        return PaymentStatus.UNPAID

    if totals.outstanding_balance_cents > 0:
        return PaymentStatus.PARTIALLY_PAID

    return PaymentStatus.FULLY_PAID
