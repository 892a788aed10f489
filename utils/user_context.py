"""Carry the acting user's id through a request using contextvars."""

from contextlib import contextmanager
from contextvars import ContextVar, Token
from uuid import UUID

_current_user_id: ContextVar[UUID | None] = ContextVar("current_user_id", default=None)


def get_current_user_id() -> UUID:
    """
    Id of the user performing the current operation.

    Raises RuntimeError if no user context is set: ledger entries and audit
    rows must always be attributable.
    """
    user_id = _current_user_id.get()
    if user_id is None:
        raise RuntimeError(
            "No user context set. Ledger writes must run inside an "
            "authenticated request or a user_context() block."
        )
    return user_id


def set_current_user_id(user_id: UUID) -> Token:
    """
    Set the acting user. Returns a token for reset_current_user_id().

    Called by UserContextMiddleware once the gateway header is parsed.
    """
    return _current_user_id.set(user_id)


def reset_current_user_id(token: Token) -> None:
    """Restore whatever user was set before the matching set call."""
    _current_user_id.reset(token)


def clear_current_user_id() -> None:
    _current_user_id.set(None)


@contextmanager
def user_context(user_id: UUID):
    """
    Act as user_id inside the block, restoring the previous user after.

    Example:
        with user_context(staff_id):
            ledger.record_payment(reservation_id, 40000, "cash")
    """
    token = set_current_user_id(user_id)
    try:
        yield user_id
    finally:
        reset_current_user_id(token)
