"""Storage for reservations and their ledger entries."""

from core.repositories.base import LedgerRepository
from core.repositories.memory import InMemoryLedgerRepository
from core.repositories.postgres import PostgresLedgerRepository

__all__ = ["LedgerRepository", "InMemoryLedgerRepository", "PostgresLedgerRepository"]
