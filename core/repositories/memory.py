"""Process-local repository for tests and local runs."""

import threading
from typing import Any
from uuid import UUID

from core.models.ledger_entry import LedgerEntry
from core.models.reservation import Reservation, ReservationStatus


class InMemoryLedgerRepository:
    """
    Dict-backed LedgerRepository.

    Returns copies so callers cannot mutate stored state.
    """

    def __init__(self):
        self._reservations: dict[UUID, Reservation] = {}
        self._entries: dict[UUID, list[LedgerEntry]] = {}
        self._lock = threading.RLock()

    def create_reservation(self, reservation: Reservation) -> Reservation:
        with self._lock:
            if reservation.id in self._reservations:
                raise ValueError(f"Reservation {reservation.id} already exists")
            self._reservations[reservation.id] = reservation.model_copy()
            self._entries[reservation.id] = []
            return reservation.model_copy()

    def get_reservation(self, reservation_id: UUID) -> Reservation | None:
        with self._lock:
            stored = self._reservations.get(reservation_id)
            return stored.model_copy() if stored else None

    def update_reservation(self, reservation_id: UUID, fields: dict[str, Any]) -> Reservation | None:
        with self._lock:
            stored = self._reservations.get(reservation_id)
            if stored is None:
                return None
            updated = stored.model_copy(update=fields)
            self._reservations[reservation_id] = updated
            return updated.model_copy()

    def list_reservations(
        self,
        status: ReservationStatus | None = None,
        limit: int = 100,
    ) -> list[Reservation]:
        with self._lock:
            rows = [
                r for r in self._reservations.values()
                if status is None or r.status == status
            ]
        rows.sort(key=lambda r: (r.check_in, str(r.id)))
        return [r.model_copy() for r in rows[:limit]]

    def list_entries(self, reservation_id: UUID) -> list[LedgerEntry]:
        with self._lock:
            return list(self._entries.get(reservation_id, ()))

    def append_entry(self, entry: LedgerEntry, reservation: Reservation) -> Reservation:
        with self._lock:
            if entry.reservation_id not in self._reservations:
                raise ValueError(f"Reservation {entry.reservation_id} not found")
            self._entries[entry.reservation_id].append(entry)
            self._reservations[reservation.id] = reservation.model_copy()
            return reservation.model_copy()
