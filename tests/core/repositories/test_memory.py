"""Tests for InMemoryLedgerRepository."""

from datetime import date
from uuid import uuid4

import pytest

from core.models import PaymentEntry, PaymentMethod, Reservation, ReservationStatus
from core.repositories import InMemoryLedgerRepository
from utils.timezone import now_utc


def make_reservation(check_in=date(2025, 3, 10), status=ReservationStatus.PENDING) -> Reservation:
    now = now_utc()
    return Reservation(
        id=uuid4(), property_id=uuid4(), guest_id=uuid4(),
        check_in=check_in, check_out=date(2025, 4, 1),
        status=status, currency="USD",
        total_amount_cents=100000, outstanding_balance_cents=100000,
        created_at=now, updated_at=now,
    )


def make_payment(reservation: Reservation, amount_cents: int = 1000) -> PaymentEntry:
    return PaymentEntry(
        id=uuid4(), reservation_id=reservation.id, created_at=now_utc(),
        amount_cents=amount_cents, currency="USD", method=PaymentMethod.CASH,
    )


@pytest.fixture
def repo():
    return InMemoryLedgerRepository()


class TestReservations:

    def test_create_and_get(self, repo):
        reservation = make_reservation()
        repo.create_reservation(reservation)

        assert repo.get_reservation(reservation.id) == reservation
        assert repo.get_reservation(uuid4()) is None

    def test_duplicate_rejected(self, repo):
        reservation = make_reservation()
        repo.create_reservation(reservation)

        with pytest.raises(ValueError, match="already exists"):
            repo.create_reservation(reservation)

    def test_returned_copies_are_detached(self, repo):
        reservation = make_reservation()
        repo.create_reservation(reservation)

        copy = repo.get_reservation(reservation.id)
        copy.status = ReservationStatus.CANCELLED

        assert repo.get_reservation(reservation.id).status == ReservationStatus.PENDING

    def test_update(self, repo):
        reservation = make_reservation()
        repo.create_reservation(reservation)

        updated = repo.update_reservation(reservation.id, {"status": ReservationStatus.CONFIRMED})

        assert updated.status == ReservationStatus.CONFIRMED
        assert repo.update_reservation(uuid4(), {"status": ReservationStatus.CONFIRMED}) is None

    def test_list_ordered_by_check_in_and_filtered(self, repo):
        late = make_reservation(check_in=date(2025, 3, 20))
        early = make_reservation(check_in=date(2025, 3, 5), status=ReservationStatus.CONFIRMED)
        repo.create_reservation(late)
        repo.create_reservation(early)

        assert [r.id for r in repo.list_reservations()] == [early.id, late.id]
        assert [r.id for r in repo.list_reservations(ReservationStatus.CONFIRMED)] == [early.id]
        assert len(repo.list_reservations(limit=1)) == 1


class TestEntries:

    def test_append_keeps_order_and_stores_totals(self, repo):
        reservation = make_reservation()
        repo.create_reservation(reservation)
        first, second = make_payment(reservation, 100), make_payment(reservation, 200)

        repo.append_entry(first, reservation.model_copy(update={"paid_amount_cents": 100}))
        stored = repo.append_entry(second, reservation.model_copy(update={"paid_amount_cents": 300}))

        assert repo.list_entries(reservation.id) == [first, second]
        assert stored.paid_amount_cents == 300
        assert repo.get_reservation(reservation.id).paid_amount_cents == 300

    def test_append_to_unknown_reservation(self, repo):
        reservation = make_reservation()
        with pytest.raises(ValueError, match="not found"):
            repo.append_entry(make_payment(reservation), reservation)

    def test_list_entries_unknown_is_empty(self, repo):
        assert repo.list_entries(uuid4()) == []
