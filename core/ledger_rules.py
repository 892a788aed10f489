"""
Validation and reconciliation rules applied before any entry is appended.

Shape checks (missing reason, unknown method, wrong currency) raise
ValidationError with field-level messages. Balance checks (refund larger than
what was paid, payment beyond the overpayment floor, non-positive amount)
raise RuleViolation. Nothing here mutates state.
"""

import logging

from core.exceptions import RuleViolation, ValidationError
from core.ledger import LedgerTotals
from core.models.ledger_entry import AdjustmentType, PaymentMethod
from core.money import MAX_MINOR_UNITS, MIN_MINOR_UNITS, Money

logger = logging.getLogger(__name__)

OVERPAYMENT = "OVERPAYMENT"


class FieldErrors:
    """Collects field-level messages so one ValidationError reports them all."""

    def __init__(self):
        self._errors: dict[str, list[str]] = {}

    def add(self, field: str, message: str) -> None:
        self._errors.setdefault(field, []).append(message)

    def raise_if_any(self) -> None:
        if not self._errors:
            return
        fields = ", ".join(sorted(self._errors))
        raise ValidationError(f"Please correct: {fields}", errors=dict(self._errors))


def amount_to_cents(
    amount: Money | int,
    currency: str,
    errors: FieldErrors,
    field: str = "amount",
) -> int | None:
    """
    Normalise an amount argument to minor units of the ledger currency.

    Accepts Money (currency must match) or an int of minor units. Returns
    None after recording an error when the shape is wrong.
    """
    if isinstance(amount, Money):
        if amount.currency != currency:
            errors.add(field, f"Amount must be in {currency}, got {amount.currency}")
            return None
        return amount.minor_units
    if isinstance(amount, bool) or not isinstance(amount, int):
        errors.add(field, "Amount must be a whole number of minor units")
        return None
    if not MIN_MINOR_UNITS <= amount <= MAX_MINOR_UNITS:
        errors.add(field, "Amount is too large")
        return None
    return amount


def required_text(value: str | None, field: str, label: str, errors: FieldErrors) -> str:
    """Stripped text, or an error when empty."""
    text = (value or "").strip()
    if not text:
        errors.add(field, f"{label} is required")
    return text


def optional_text(value: str | None) -> str | None:
    text = (value or "").strip()
    return text or None


def payment_method(value: PaymentMethod | str | None, errors: FieldErrors) -> PaymentMethod | None:
    if value is None or value == "":
        errors.add("method", "Payment method is required")
        return None
    try:
        return PaymentMethod(value)
    except ValueError:
        valid = ", ".join(m.value for m in PaymentMethod)
        errors.add("method", f"Unknown payment method '{value}'. Valid: {valid}")
        return None


def adjustment_type(value: AdjustmentType | str | None, errors: FieldErrors) -> AdjustmentType | None:
    if value is None or value == "":
        errors.add("adjustment_type", "Adjustment type is required")
        return None
    try:
        return AdjustmentType(value)
    except ValueError:
        valid = ", ".join(t.value for t in AdjustmentType)
        errors.add("adjustment_type", f"Unknown adjustment type '{value}'. Valid: {valid}")
        return None


def require_positive(amount_cents: int, label: str = "Amount") -> None:
    if amount_cents <= 0:
        raise RuleViolation(
            RuleViolation.NEGATIVE_AMOUNT,
            f"{label} must be greater than zero",
        )


def check_payment(
    totals: LedgerTotals,
    amount_cents: int,
    is_deposit: bool,
    overpayment_floor_cents: int | None,
) -> list[str]:
    """
    Validate a payment against the current balance.

    Overpayment is allowed and flagged unless a floor is configured, in
    which case a non-deposit payment may not push the credit past it.
    Deposits and advances are never capped.

    Returns:
        Warnings to attach to the result (e.g. ["OVERPAYMENT"])

    Raises:
        RuleViolation: EXCEEDS_OUTSTANDING or NEGATIVE_AMOUNT
    """
    require_positive(amount_cents, "Payment amount")

    outstanding = Money(totals.outstanding_balance_cents, totals.currency)
    after = outstanding.subtract(Money(amount_cents, totals.currency))
    if not after.is_negative():
        return []

    if (
        not is_deposit
        and overpayment_floor_cents is not None
        and -after.minor_units > overpayment_floor_cents
    ):
        raise RuleViolation(
            RuleViolation.EXCEEDS_OUTSTANDING,
            "Payment amount cannot exceed outstanding balance of "
            f"{Money(max(outstanding.minor_units, 0), totals.currency).format()}",
        )

    return [OVERPAYMENT]


def check_refund(totals: LedgerTotals, amount_cents: int) -> None:
    """
    A refund can never return more than has been paid.

    Raises:
        RuleViolation: REFUND_EXCEEDS_PAID or NEGATIVE_AMOUNT
    """
    require_positive(amount_cents, "Refund amount")

    if amount_cents > totals.paid_amount_cents:
        paid = Money(totals.paid_amount_cents, totals.currency)
        raise RuleViolation(
            RuleViolation.REFUND_EXCEEDS_PAID,
            f"Refund amount cannot exceed the amount paid ({paid.format()})",
        )
