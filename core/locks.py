"""
Per-reservation mutual exclusion.

Every ledger mutation runs inside hold(reservation_id) so that the
read-validate-append sequence for one reservation is serialized. Different
reservations never block each other.

LocalLockManager covers a single process. ValkeyLockManager covers several
API workers sharing one database.
"""

import logging
import threading
import time
import uuid
from contextlib import contextmanager
from typing import Iterator, Protocol
from uuid import UUID

from clients.valkey_client import ValkeyClient
from core.exceptions import ConcurrencyError

logger = logging.getLogger(__name__)


class LockManager(Protocol):
    def hold(self, key: UUID | str) -> Iterator[None]: ...


def _busy(key) -> ConcurrencyError:
    return ConcurrencyError(
        f"Reservation {key} is being updated by another request. Please retry."
    )


class LocalLockManager:
    """
    In-process lock per key.

    A key's lock lives only while some thread holds or waits on it.

    Usage:
        locks = LocalLockManager(timeout_seconds=5.0)
        with locks.hold(reservation_id):
            ...
    """

    def __init__(self, timeout_seconds: float = 5.0):
        self.timeout_seconds = timeout_seconds
        self._locks: dict[str, threading.Lock] = {}
        self._users: dict[str, int] = {}
        self._guard = threading.Lock()

    def _checkout(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            self._users[key] = self._users.get(key, 0) + 1
            return lock

    def _checkin(self, key: str) -> None:
        with self._guard:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    @contextmanager
    def hold(self, key: UUID | str) -> Iterator[None]:
        """
        Hold the lock for key for the duration of the block.

        Raises:
            ConcurrencyError: If the lock is not free within timeout_seconds
        """
        name = str(key)
        lock = self._checkout(name)
        try:
            if not lock.acquire(timeout=self.timeout_seconds):
                logger.warning(f"Lock wait timed out for {key} after {self.timeout_seconds}s")
                raise _busy(key)
            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(name)


class ValkeyLockManager:
    """
    Distributed lock per key using SET NX EX with an owner token.

    The TTL frees the lock if the holder dies mid-operation; release only
    deletes the key if this holder still owns it.
    """

    KEY_PREFIX = "lock:ledger:"

    def __init__(
        self,
        valkey: ValkeyClient,
        timeout_seconds: float = 5.0,
        ttl_seconds: int = 30,
        retry_interval: float = 0.05,
    ):
        self.valkey = valkey
        self.timeout_seconds = timeout_seconds
        self.ttl_seconds = ttl_seconds
        self.retry_interval = retry_interval

    @contextmanager
    def hold(self, key: UUID | str) -> Iterator[None]:
        """
        Hold the distributed lock for key for the duration of the block.

        Raises:
            ConcurrencyError: If the lock is not free within timeout_seconds
        """
        lock_key = f"{self.KEY_PREFIX}{key}"
        token = str(uuid.uuid4())
        deadline = time.monotonic() + self.timeout_seconds

        while not self.valkey.set_if_absent(lock_key, token, self.ttl_seconds):
            if time.monotonic() >= deadline:
                logger.warning(f"Distributed lock wait timed out for {key}")
                raise _busy(key)
            time.sleep(self.retry_interval)

        try:
            yield
        finally:
            if not self.valkey.delete_if_equals(lock_key, token):
                logger.warning(f"Lock {lock_key} expired before release")
