"""Typed exceptions for ledger failures.

Every ledger error carries a machine-readable code and a message that can be
shown to the user as-is. LedgerService catches these at its boundary and
returns them as failed LedgerResults; they never escape to callers.
"""


class LedgerError(Exception):
    """Base class for all ledger errors."""

    code = "LEDGER_ERROR"
    retryable = False

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        if code is not None:
            self.code = code
        super().__init__(message)


class ValidationError(LedgerError):
    """
    Input has the wrong shape or a required field is missing.

    errors maps field names to messages so a form can highlight them.
    """

    code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        errors: dict[str, list[str]] | None = None,
        code: str | None = None,
    ):
        self.errors = errors or {}
        super().__init__(message, code)


class RuleViolation(LedgerError):
    """Input is well-formed but breaks a reconciliation rule."""

    REFUND_EXCEEDS_PAID = "REFUND_EXCEEDS_PAID"
    EXCEEDS_OUTSTANDING = "EXCEEDS_OUTSTANDING"
    NEGATIVE_AMOUNT = "NEGATIVE_AMOUNT"

    code = "RULE_VIOLATION"

    def __init__(self, code: str, message: str):
        super().__init__(message, code)


class ConcurrencyError(LedgerError):
    """Could not get exclusive access to the reservation in time. Retry."""

    code = "CONCURRENCY_CONFLICT"
    retryable = True


class RenderError(LedgerError):
    """Document could not be rendered."""

    MISSING_SNAPSHOT = "MISSING_SNAPSHOT"

    code = "RENDER_ERROR"
