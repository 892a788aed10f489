"""
Append-only audit trail for reservations and ledger entries.

Every reservation creation, status or date change, and every appended ledger
entry is recorded with the acting user. Rows are never updated or deleted.
"""

import logging
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from psycopg2.extras import Json

from clients.postgres_client import PostgresClient
from utils.timezone import now_utc
from utils.user_context import get_current_user_id

logger = logging.getLogger(__name__)


class AuditAction(Enum):
    """Type of change made to an entity."""

    CREATE = "create"
    UPDATE = "update"


def compute_changes(
    old: dict[str, Any],
    new: dict[str, Any],
    exclude_fields: set[str] | None = None
) -> dict[str, dict[str, Any]]:
    """
    Compute changes between two entity states.

    Args:
        old: Previous state of entity
        new: New state of entity
        exclude_fields: Fields to ignore (defaults to {"updated_at"})

    Returns:
        Dict of {field: {"old": old_val, "new": new_val}} for changed fields.
        Empty dict if no changes.
    """
    exclude = exclude_fields or {"updated_at"}
    changes = {}

    for key in sorted(set(old) | set(new)):
        if key in exclude:
            continue
        if old.get(key) != new.get(key):
            changes[key] = {"old": old.get(key), "new": new.get(key)}

    return changes


class AuditLogger:
    """
    Audit trail writer.

    Always pass model_dump(mode="json") output so UUIDs, dates and enums
    are JSON-compatible.

    Usage:
        audit = AuditLogger(postgres)

        audit.log_change(
            entity_type="ledger_entry",
            entity_id=entry.id,
            action=AuditAction.CREATE,
            changes={"created": entry.model_dump(mode="json")}
        )

        history = audit.get_reservation_history(reservation.id, [e.id for e in entries])
    """

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def log_change(
        self,
        entity_type: str,
        entity_id: UUID,
        action: AuditAction,
        changes: dict[str, Any],
        user_id: UUID | None = None
    ) -> None:
        """
        Log an entity change.

        Args:
            entity_type: "reservation" or "ledger_entry"
            entity_id: ID of the entity
            action: CREATE or UPDATE
            changes: {"created": {...}} or {"field": {"old": ..., "new": ...}}
            user_id: User who made change (defaults to current context)
        """
        if user_id is None:
            user_id = get_current_user_id()

        self.postgres.execute(
            """
            INSERT INTO audit_log (id, user_id, entity_type, entity_id, action, changes, created_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            """,
            (
                uuid4(),
                user_id,
                entity_type,
                entity_id,
                action.value,
                Json(changes),
                now_utc()
            )
        )

    def get_reservation_history(
        self,
        reservation_id: UUID,
        entry_ids: list[UUID],
    ) -> list[dict[str, Any]]:
        """
        Audit rows for a reservation and its ledger entries, newest first.
        """
        return self.postgres.execute(
            """
            SELECT id, user_id, entity_type, entity_id, action, changes, created_at
            FROM audit_log
            WHERE (entity_type = 'reservation' AND entity_id = %s)
               OR (entity_type = 'ledger_entry' AND entity_id = ANY(%s::uuid[]))
            ORDER BY created_at DESC
            """,
            (reservation_id, list(entry_ids))
        )


def log_after_commit(audit: AuditLogger, **change: Any) -> None:
    """
    Write an audit row for a change that is already committed.

    Failures are logged and never raised to the caller.
    """
    try:
        audit.log_change(**change)
    except Exception:
        logger.exception(
            "Audit write failed for %s %s (%s)",
            change.get("entity_type"),
            change.get("entity_id"),
            change["action"].value if "action" in change else "?",
        )
