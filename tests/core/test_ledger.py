"""Tests for ledger arithmetic - totals and payment status derivation."""

from datetime import timedelta
from uuid import uuid4

import pytest

from core.ledger import (
    LedgerTotals,
    apply_entry,
    compute_totals,
    derive_payment_status,
    opening_total_cents,
)
from core.models import (
    AdjustmentEntry, AdjustmentType, PaymentEntry, PaymentMethod,
    PaymentStatus, PriceChangeEntry, RefundEntry,
)
from utils.timezone import now_utc

RESERVATION_ID = uuid4()
_T0 = now_utc()


def _common(amount_cents: int, seq: int, currency: str = "USD") -> dict:
    return {
        "id": uuid4(),
        "reservation_id": RESERVATION_ID,
        "created_at": _T0 + timedelta(seconds=seq),
        "amount_cents": amount_cents,
        "currency": currency,
    }


def payment(amount_cents: int, seq: int = 0, currency: str = "USD") -> PaymentEntry:
    return PaymentEntry(**_common(amount_cents, seq, currency), method=PaymentMethod.CASH)


def refund(amount_cents: int, seq: int = 0) -> RefundEntry:
    return RefundEntry(**_common(amount_cents, seq), method=PaymentMethod.CASH)


def adjustment(kind: AdjustmentType, amount_cents: int, seq: int = 0) -> AdjustmentEntry:
    return AdjustmentEntry(
        **_common(amount_cents, seq),
        adjustment_type=kind,
        reason="Loyalty",
        description="Returning guest",
    )


def price_change(old: int, new: int, seq: int = 0) -> PriceChangeEntry:
    return PriceChangeEntry(
        **_common(new, seq),
        old_amount_cents=old,
        new_amount_cents=new,
        reason="Extended stay",
    )


class TestComputeTotals:
    """Folding entries onto the opening total."""

    def test_no_entries(self):
        """Fresh ledger owes the full total."""
        totals = compute_totals(100000, "USD", [])
        assert totals.paid_amount_cents == 0
        assert totals.outstanding_balance_cents == 100000

    def test_payments_minus_refunds(self):
        """paid = payments - refunds."""
        totals = compute_totals(100000, "USD", [payment(40000, 1), payment(50000, 2), refund(20000, 3)])
        assert totals.paid_amount_cents == 70000
        assert totals.outstanding_balance_cents == 30000

    def test_fee_adds_other_adjustments_subtract(self):
        """FEE increases owed; DISCOUNT, REFUND and DEPOSIT_RETURN reduce it."""
        entries = [
            adjustment(AdjustmentType.FEE, 5000, 1),
            adjustment(AdjustmentType.DISCOUNT, 10000, 2),
            adjustment(AdjustmentType.REFUND, 2000, 3),
            adjustment(AdjustmentType.DEPOSIT_RETURN, 1000, 4),
        ]
        totals = compute_totals(100000, "USD", entries)
        assert totals.adjustment_total_cents == 5000 - 10000 - 2000 - 1000
        assert totals.outstanding_balance_cents == 100000 - 8000

    def test_price_change_replaces_total(self):
        """A price change sets the baseline rather than adding to it."""
        totals = compute_totals(100000, "USD", [payment(40000, 1), price_change(100000, 120000, 2)])
        assert totals.total_amount_cents == 120000
        assert totals.outstanding_balance_cents == 80000

    def test_overpayment_is_unclamped(self):
        """Outstanding goes negative when the guest overpays."""
        totals = compute_totals(100000, "USD", [payment(120000)])
        assert totals.outstanding_balance_cents == -20000

    def test_currency_mismatch_rejected(self):
        with pytest.raises(ValueError, match="EUR"):
            apply_entry(LedgerTotals("USD", 100000), payment(100, currency="EUR"))

    def test_outstanding_identity_holds_for_mixed_sequence(self):
        """outstanding == total + adjustments - paid at every step."""
        entries = [
            payment(30000, 1),
            adjustment(AdjustmentType.DISCOUNT, 5000, 2),
            price_change(100000, 90000, 3),
            refund(10000, 4),
            adjustment(AdjustmentType.FEE, 2500, 5),
            payment(60000, 6),
        ]
        totals = LedgerTotals("USD", 100000)
        for entry in entries:
            totals = apply_entry(totals, entry)
            assert totals.outstanding_balance_cents == (
                totals.total_amount_cents + totals.adjustment_total_cents - totals.paid_amount_cents
            )


class TestOpeningTotal:
    """Recovering the contracted price before price changes."""

    def test_without_price_change(self):
        assert opening_total_cents(100000, [payment(100)]) == 100000

    def test_uses_first_price_change_old_amount(self):
        entries = [price_change(100000, 120000, 1), price_change(120000, 90000, 2)]
        assert opening_total_cents(90000, entries) == 100000


class TestDerivePaymentStatus:
    """Payment status from totals and entries."""

    def test_unpaid(self):
        totals = compute_totals(100000, "USD", [])
        assert derive_payment_status(totals, []) == PaymentStatus.UNPAID

    def test_partially_paid(self):
        entries = [payment(40000)]
        totals = compute_totals(100000, "USD", entries)
        assert derive_payment_status(totals, entries) == PaymentStatus.PARTIALLY_PAID

    def test_fully_paid(self):
        entries = [payment(100000)]
        totals = compute_totals(100000, "USD", entries)
        assert derive_payment_status(totals, entries) == PaymentStatus.FULLY_PAID

    def test_overpaid_is_fully_paid(self):
        entries = [payment(150000)]
        totals = compute_totals(100000, "USD", entries)
        assert derive_payment_status(totals, entries) == PaymentStatus.FULLY_PAID

    def test_refunded_when_everything_returned(self):
        """paid back to zero with a refund as the last movement."""
        entries = [payment(40000, 1), refund(40000, 2)]
        totals = compute_totals(100000, "USD", entries)
        assert derive_payment_status(totals, entries) == PaymentStatus.REFUNDED

    def test_refund_pending_takes_precedence(self):
        entries = [payment(100000)]
        totals = compute_totals(100000, "USD", entries)
        assert derive_payment_status(totals, entries, refund_pending=True) == PaymentStatus.PENDING_REFUND

    def test_idempotent(self):
        """Deriving twice from the same input gives the same answer."""
        entries = [payment(40000, 1), adjustment(AdjustmentType.DISCOUNT, 10000, 2)]
        totals = compute_totals(100000, "USD", entries)
        first = derive_payment_status(totals, entries)
        assert derive_payment_status(totals, entries) == first
