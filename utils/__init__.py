"""Utility modules for cross-cutting concerns."""

from utils.timezone import now_utc, today_utc, to_utc, parse_iso, parse_date
from utils.user_context import (
    get_current_user_id,
    set_current_user_id,
    reset_current_user_id,
    clear_current_user_id,
    user_context,
)
