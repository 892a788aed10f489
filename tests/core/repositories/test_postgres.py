"""Tests for PostgresLedgerRepository SQL and row mapping."""

from contextlib import contextmanager
from datetime import date
from unittest.mock import Mock
from uuid import uuid4

import pytest

from clients.postgres_client import PostgresClient, Transaction
from core.models import (
    AdjustmentEntry, AdjustmentType, PaymentEntry, PaymentMethod, PaymentStatus,
    RefundEntry, Reservation, ReservationStatus,
)
from core.repositories import PostgresLedgerRepository
from utils.timezone import now_utc


def reservation_row(**overrides) -> dict:
    now = now_utc()
    row = {
        "id": uuid4(), "property_id": uuid4(), "guest_id": uuid4(),
        "guest_name": "Layla Haddad", "property_name": None,
        "check_in": date(2025, 3, 10), "check_out": date(2025, 3, 15),
        "status": "pending", "currency": "USD",
        "total_amount_cents": 100000, "paid_amount_cents": 0,
        "adjustment_total_cents": 0, "outstanding_balance_cents": 100000,
        "payment_status": "unpaid", "refund_pending": False,
        "created_by": None, "created_at": now, "updated_at": now,
    }
    row.update(overrides)
    return row


@pytest.fixture
def db():
    return Mock(spec=PostgresClient)


@pytest.fixture
def tx(db):
    """Transaction handed out by db.transaction()."""
    transaction = Mock(spec=Transaction)

    @contextmanager
    def transaction_cm():
        yield transaction

    db.transaction.side_effect = transaction_cm
    return transaction


class TestReservations:

    def test_get_maps_row(self, db):
        row = reservation_row()
        db.execute_single.return_value = row

        reservation = PostgresLedgerRepository(db).get_reservation(row["id"])

        assert isinstance(reservation, Reservation)
        assert reservation.status == ReservationStatus.PENDING
        assert reservation.payment_status == PaymentStatus.UNPAID

    def test_get_missing(self, db):
        db.execute_single.return_value = None
        assert PostgresLedgerRepository(db).get_reservation(uuid4()) is None

    def test_create_returns_stored_row(self, db):
        row = reservation_row()
        db.execute_returning.return_value = [row]

        created = PostgresLedgerRepository(db).create_reservation(Reservation.model_validate(row))

        query, params = db.execute_returning.call_args.args
        assert "INSERT INTO reservations" in query
        assert len(params) == query.count("%s")
        assert created.id == row["id"]

    def test_update_builds_sorted_assignments(self, db):
        row = reservation_row(status="confirmed")
        db.execute_returning.return_value = [row]

        updated = PostgresLedgerRepository(db).update_reservation(
            row["id"], {"updated_at": row["updated_at"], "status": ReservationStatus.CONFIRMED},
        )

        query, params = db.execute_returning.call_args.args
        assert "SET status = %s, updated_at = %s WHERE id = %s" in query
        assert params == (ReservationStatus.CONFIRMED, row["updated_at"], row["id"])
        assert updated.status == ReservationStatus.CONFIRMED

    def test_update_rejects_unknown_columns(self, db):
        with pytest.raises(ValueError, match="created_by"):
            PostgresLedgerRepository(db).update_reservation(uuid4(), {"created_by": uuid4()})
        db.execute_returning.assert_not_called()

    def test_update_missing_returns_none(self, db):
        db.execute_returning.return_value = []
        assert PostgresLedgerRepository(db).update_reservation(uuid4(), {"status": "cancelled"}) is None

    def test_list_filters_by_status(self, db):
        db.execute.return_value = [reservation_row(status="confirmed")]

        rows = PostgresLedgerRepository(db).list_reservations(ReservationStatus.CONFIRMED, limit=10)

        query, params = db.execute.call_args.args
        assert "WHERE status = %s" in query
        assert params == (ReservationStatus.CONFIRMED, 10)
        assert rows[0].status == ReservationStatus.CONFIRMED


class TestEntries:

    def test_list_entries_maps_each_kind(self, db):
        reservation_id = uuid4()
        base = {
            "reservation_id": reservation_id, "currency": "USD", "created_at": now_utc(),
            "created_by": None, "reference": None, "description": None,
            "adjustment_type": None, "reason": None,
            "old_amount_cents": None, "new_amount_cents": None,
        }
        db.execute.return_value = [
            {**base, "id": uuid4(), "kind": "payment", "amount_cents": 40000,
             "method": "cash", "is_deposit": False},
            {**base, "id": uuid4(), "kind": "refund", "amount_cents": 1000,
             "method": "cash", "is_deposit": False},
            {**base, "id": uuid4(), "kind": "adjustment", "amount_cents": 500,
             "method": None, "is_deposit": False,
             "adjustment_type": "discount", "reason": "Loyalty", "description": "Repeat guest"},
        ]

        entries = PostgresLedgerRepository(db).list_entries(reservation_id)

        assert [type(e) for e in entries] == [PaymentEntry, RefundEntry, AdjustmentEntry]
        assert entries[2].adjustment_type == AdjustmentType.DISCOUNT
        assert "ORDER BY entry_seq" in db.execute.call_args.args[0]

    def test_append_runs_in_one_transaction(self, db, tx):
        row = reservation_row(paid_amount_cents=40000, outstanding_balance_cents=60000,
                              payment_status="partially_paid")
        reservation = Reservation.model_validate(row)
        entry = PaymentEntry(
            id=uuid4(), reservation_id=reservation.id, created_at=now_utc(),
            amount_cents=40000, currency="USD", method=PaymentMethod.CASH,
        )
        tx.execute_single.return_value = row

        stored = PostgresLedgerRepository(db).append_entry(entry, reservation)

        insert_query, insert_params = tx.execute.call_args.args
        assert "INSERT INTO ledger_entries" in insert_query
        assert insert_params[0] == entry.id
        assert insert_params[2] == "payment"
        update_query, update_params = tx.execute_single.call_args.args
        assert update_query.startswith("UPDATE reservations SET total_amount_cents = %s")
        assert update_params[-1] == reservation.id
        assert stored.outstanding_balance_cents == 60000

    def test_append_missing_reservation_raises(self, db, tx):
        reservation = Reservation.model_validate(reservation_row())
        entry = PaymentEntry(
            id=uuid4(), reservation_id=reservation.id, created_at=now_utc(),
            amount_cents=100, currency="USD", method=PaymentMethod.CASH,
        )
        tx.execute_single.return_value = None

        with pytest.raises(ValueError, match="not found"):
            PostgresLedgerRepository(db).append_entry(entry, reservation)
