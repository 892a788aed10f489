"""PostgreSQL-backed ledger repository (tables in schema.sql)."""

import logging
from typing import Any
from uuid import UUID

from clients.postgres_client import PostgresClient
from core.models.ledger_entry import LedgerEntry, entry_from_row
from core.models.reservation import Reservation, ReservationStatus

logger = logging.getLogger(__name__)

_ENTRY_COLUMNS = (
    "id", "reservation_id", "kind", "amount_cents", "currency",
    "created_at", "created_by", "method", "reference", "description",
    "is_deposit", "adjustment_type", "reason",
    "old_amount_cents", "new_amount_cents",
)

# Columns rewritten on every append
_DERIVED_COLUMNS = (
    "total_amount_cents", "paid_amount_cents", "adjustment_total_cents",
    "outstanding_balance_cents", "payment_status", "refund_pending", "updated_at",
)

_UPDATABLE_COLUMNS = frozenset(_DERIVED_COLUMNS) | {
    "status", "check_in", "check_out", "guest_name", "property_name",
}


def _entry_params(entry: LedgerEntry) -> tuple:
    values = entry.model_dump()
    return tuple(values.get(column) for column in _ENTRY_COLUMNS)


def _entry_from_db(row: dict[str, Any]) -> LedgerEntry:
    # Columns that do not apply to a kind are NULL
    return entry_from_row({k: v for k, v in row.items() if v is not None})


class PostgresLedgerRepository:
    """
    LedgerRepository on PostgreSQL.

    Entry order is insertion order (entry_seq), not created_at, so two
    entries written in the same millisecond still replay deterministically.
    """

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def create_reservation(self, reservation: Reservation) -> Reservation:
        row = self.postgres.execute_returning(
            """
            INSERT INTO reservations (
                id, property_id, guest_id, guest_name, property_name,
                check_in, check_out, status, currency,
                total_amount_cents, paid_amount_cents, adjustment_total_cents,
                outstanding_balance_cents, payment_status, refund_pending,
                created_by, created_at, updated_at
            ) VALUES (
                %s, %s, %s, %s, %s,
                %s, %s, %s, %s,
                %s, %s, %s,
                %s, %s, %s,
                %s, %s, %s
            )
            RETURNING *
            """,
            (
                reservation.id, reservation.property_id, reservation.guest_id,
                reservation.guest_name, reservation.property_name,
                reservation.check_in, reservation.check_out,
                reservation.status, reservation.currency,
                reservation.total_amount_cents, reservation.paid_amount_cents,
                reservation.adjustment_total_cents,
                reservation.outstanding_balance_cents, reservation.payment_status,
                reservation.refund_pending,
                reservation.created_by, reservation.created_at, reservation.updated_at,
            )
        )[0]
        return Reservation.model_validate(row)

    def get_reservation(self, reservation_id: UUID) -> Reservation | None:
        row = self.postgres.execute_single(
            "SELECT * FROM reservations WHERE id = %s",
            (reservation_id,)
        )
        if row is None:
            return None
        return Reservation.model_validate(row)

    def update_reservation(self, reservation_id: UUID, fields: dict[str, Any]) -> Reservation | None:
        unknown = set(fields) - _UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update columns: {', '.join(sorted(unknown))}")
        if not fields:
            return self.get_reservation(reservation_id)

        columns = sorted(fields)
        assignments = ", ".join(f"{column} = %s" for column in columns)
        rows = self.postgres.execute_returning(
            f"UPDATE reservations SET {assignments} WHERE id = %s RETURNING *",
            tuple(fields[column] for column in columns) + (reservation_id,)
        )
        if not rows:
            return None
        return Reservation.model_validate(rows[0])

    def list_reservations(
        self,
        status: ReservationStatus | None = None,
        limit: int = 100,
    ) -> list[Reservation]:
        if status is None:
            rows = self.postgres.execute(
                "SELECT * FROM reservations ORDER BY check_in, id LIMIT %s",
                (limit,)
            )
        else:
            rows = self.postgres.execute(
                "SELECT * FROM reservations WHERE status = %s ORDER BY check_in, id LIMIT %s",
                (status, limit)
            )
        return [Reservation.model_validate(row) for row in rows]

    def list_entries(self, reservation_id: UUID) -> list[LedgerEntry]:
        rows = self.postgres.execute(
            f"""
            SELECT {", ".join(_ENTRY_COLUMNS)}
            FROM ledger_entries
            WHERE reservation_id = %s
            ORDER BY entry_seq
            """,
            (reservation_id,)
        )
        return [_entry_from_db(row) for row in rows]

    def append_entry(self, entry: LedgerEntry, reservation: Reservation) -> Reservation:
        """
        Insert the entry and store the reservation's new derived columns
        in one transaction.
        """
        placeholders = ", ".join(["%s"] * len(_ENTRY_COLUMNS))
        assignments = ", ".join(f"{column} = %s" for column in _DERIVED_COLUMNS)
        derived = tuple(getattr(reservation, column) for column in _DERIVED_COLUMNS)

        with self.postgres.transaction() as tx:
            tx.execute(
                f"INSERT INTO ledger_entries ({', '.join(_ENTRY_COLUMNS)}) VALUES ({placeholders})",
                _entry_params(entry)
            )
            row = tx.execute_single(
                f"UPDATE reservations SET {assignments} WHERE id = %s RETURNING *",
                derived + (reservation.id,)
            )
            if row is None:
                raise ValueError(f"Reservation {reservation.id} not found")

        logger.debug(f"Appended {entry.kind} {entry.id} to reservation {reservation.id}")
        return Reservation.model_validate(row)
