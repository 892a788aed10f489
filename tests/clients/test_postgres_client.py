"""Tests for PostgresClient - pooled connections and transactions."""

from enum import Enum
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest

from clients.postgres_client import PostgresClient, convert_params


class Color(Enum):
    RED = "red"


@pytest.fixture
def pool():
    """Patched ThreadedConnectionPool handing out one mock connection."""
    PostgresClient.close_all_pools()
    with patch("clients.postgres_client.psycopg2.pool.ThreadedConnectionPool") as pool_cls, \
            patch("clients.postgres_client.psycopg2.extras.register_default_jsonb"):
        pool = pool_cls.return_value
        conn = MagicMock()
        pool.getconn.return_value = conn
        yield pool
    PostgresClient._connection_pools.clear()


def _cursor(pool, rows, description=True):
    cursor = pool.getconn.return_value.cursor.return_value.__enter__.return_value
    cursor.fetchall.return_value = rows
    cursor.fetchone.return_value = rows[0] if rows else None
    cursor.description = [("col",)] if description else None
    return cursor


class TestConvertParams:

    def test_uuid_and_enum(self):
        value = uuid4()
        assert convert_params((value, Color.RED, 5)) == (str(value), "red", 5)

    def test_nested(self):
        value = uuid4()
        assert convert_params({"ids": [value]}) == {"ids": [str(value)]}

    def test_none(self):
        assert convert_params(None) is None


class TestPostgresClientInit:

    def test_pool_shared_per_url(self, pool):
        PostgresClient("postgresql://localhost/ledger")
        PostgresClient("postgresql://localhost/ledger")

        assert len(PostgresClient._connection_pools) == 1

    def test_close_removes_pool(self, pool):
        db = PostgresClient("postgresql://localhost/ledger")
        db.close()

        pool.closeall.assert_called_once()
        assert PostgresClient._connection_pools == {}

    def test_close_all_pools(self, pool):
        PostgresClient("postgresql://localhost/ledger")
        PostgresClient("postgresql://localhost/ledger_audit")

        PostgresClient.close_all_pools()

        assert pool.closeall.call_count == 2
        assert PostgresClient._connection_pools == {}


class TestExecuteMethods:
    """Query execution methods."""

    def test_execute_returns_list_of_dicts(self, pool):
        cursor = _cursor(pool, [{"num": 1, "word": "hello"}])
        db = PostgresClient("postgresql://localhost/ledger")
        reservation_id = uuid4()

        results = db.execute("SELECT %s", (reservation_id,))

        assert results == [{"num": 1, "word": "hello"}]
        cursor.execute.assert_called_once_with("SELECT %s", (str(reservation_id),))
        pool.getconn.return_value.commit.assert_called_once()
        pool.putconn.assert_called_once_with(pool.getconn.return_value)

    def test_execute_without_result_set(self, pool):
        _cursor(pool, [], description=False)
        db = PostgresClient("postgresql://localhost/ledger")

        assert db.execute("UPDATE reservations SET status = 'confirmed'") == []

    def test_execute_single_no_rows_returns_none(self, pool):
        _cursor(pool, [])
        db = PostgresClient("postgresql://localhost/ledger")

        assert db.execute_single("SELECT 1 WHERE false") is None

    def test_connection_returned_on_error(self, pool):
        cursor = _cursor(pool, [])
        cursor.execute.side_effect = RuntimeError("syntax error")
        db = PostgresClient("postgresql://localhost/ledger")

        with pytest.raises(RuntimeError):
            db.execute("SELEC 1")

        pool.putconn.assert_called_once()


class TestTransaction:

    def test_commits_on_success(self, pool):
        cursor = _cursor(pool, [{"id": 1}])
        conn = pool.getconn.return_value
        db = PostgresClient("postgresql://localhost/ledger")

        with db.transaction() as tx:
            tx.execute("INSERT INTO ledger_entries ...", (1,))
            row = tx.execute_single("UPDATE reservations ... RETURNING *", (2,))

        assert row == {"id": 1}
        assert cursor.execute.call_count == 2
        conn.commit.assert_called_once()
        conn.rollback.assert_not_called()

    def test_rolls_back_and_reraises(self, pool):
        _cursor(pool, [])
        conn = pool.getconn.return_value
        db = PostgresClient("postgresql://localhost/ledger")

        with pytest.raises(ValueError):
            with db.transaction() as tx:
                tx.execute("INSERT INTO ledger_entries ...")
                raise ValueError("reservation vanished")

        conn.rollback.assert_called_once()
        conn.commit.assert_not_called()
        pool.putconn.assert_called_once_with(conn)
