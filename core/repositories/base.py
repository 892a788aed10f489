"""Repository contract shared by the PostgreSQL and in-memory stores."""

from typing import Any, Protocol
from uuid import UUID

from core.models.ledger_entry import LedgerEntry
from core.models.reservation import Reservation, ReservationStatus


class LedgerRepository(Protocol):
    """
    Persistence for reservations and their append-only ledger.

    append_entry is the only way entries are written, and it stores the
    entry together with the reservation's recomputed derived columns so
    the two can never disagree.
    """

    def create_reservation(self, reservation: Reservation) -> Reservation: ...

    def get_reservation(self, reservation_id: UUID) -> Reservation | None: ...

    def update_reservation(self, reservation_id: UUID, fields: dict[str, Any]) -> Reservation | None: ...

    def list_reservations(
        self,
        status: ReservationStatus | None = None,
        limit: int = 100,
    ) -> list[Reservation]: ...

    def list_entries(self, reservation_id: UUID) -> list[LedgerEntry]: ...

    def append_entry(self, entry: LedgerEntry, reservation: Reservation) -> Reservation: ...
