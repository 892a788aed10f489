"""
Result wrapper returned by every ledger operation.

Expected failures (bad input, rule violations, lock timeouts) come back as
failed results so callers can show field-level feedback without try/except.
Unexpected failures (database down, bugs) still raise.

Usage:
    result = ledger.record_payment(reservation_id, 40000, "cash")
    if result.success:
        entry = result.data
        if "OVERPAYMENT" in result.warnings:
            ...
    else:
        show(result.error, result.errors)
"""

from dataclasses import dataclass, field
from typing import Generic, TypeVar

from core.exceptions import LedgerError, ValidationError

T = TypeVar("T")


@dataclass
class LedgerResult(Generic[T]):
    """
    Outcome of a ledger operation.

    Attributes:
        success: Whether the operation was applied
        data: Result payload (entry or snapshot) when successful
        error: Display-ready reason when rejected
        error_code: Machine-readable code (e.g. REFUND_EXCEEDS_PAID)
        errors: Field-level messages for validation failures
        warnings: Non-blocking flags on a successful result (e.g. OVERPAYMENT)
        retryable: True when the same call may succeed if retried
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = None
    warnings: list[str] = field(default_factory=list)
    retryable: bool = False

    @classmethod
    def ok(cls, data: T, warnings: list[str] | None = None) -> "LedgerResult[T]":
        return cls(success=True, data=data, warnings=list(warnings or []))

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str,
        errors: dict[str, list[str]] | None = None,
        retryable: bool = False,
    ) -> "LedgerResult[T]":
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=errors,
            retryable=retryable,
        )

    @classmethod
    def from_error(cls, exc: LedgerError) -> "LedgerResult[T]":
        """Convert a caught LedgerError into a failed result."""
        errors = exc.errors if isinstance(exc, ValidationError) and exc.errors else None
        return cls.failure(
            error=exc.message,
            error_code=exc.code,
            errors=errors,
            retryable=exc.retryable,
        )
