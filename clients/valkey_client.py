"""
Valkey (Redis-compatible) client for reservation locks.

Simple wrapper around redis-py. Connection URL from Vault.
Fail-fast: raises on connection failure, never returns fallback values.
"""

import logging

import redis

logger = logging.getLogger(__name__)

# Delete only if the caller still owns the key
_DELETE_IF_EQUALS = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class ValkeyClient:
    """
    Redis-compatible client for Valkey.

    Usage:
        client = ValkeyClient("redis://localhost:6379/0")
        if client.set_if_absent("lock:ledger:123", token, ttl_seconds=30):
            ...
            client.delete_if_equals("lock:ledger:123", token)
    """

    def __init__(self, url: str):
        """
        Initialize Valkey connection.

        Args:
            url: Redis-compatible connection URL (e.g., redis://localhost:6379/0)

        Raises:
            redis.ConnectionError: If connection fails
        """
        self._client = redis.from_url(url, decode_responses=True)
        # Verify connectivity immediately (fail-fast)
        self._client.ping()
        self._delete_if_equals = self._client.register_script(_DELETE_IF_EQUALS)
        logger.info("ValkeyClient connected")

    def ping(self) -> bool:
        """
        Health check.

        Returns True if Valkey responds.
        Raises redis.ConnectionError if unreachable.
        """
        self._client.ping()
        return True

    def get(self, key: str) -> str | None:
        """Get value by key. None if missing."""
        return self._client.get(key)

    def set_if_absent(self, key: str, value: str, ttl_seconds: int) -> bool:
        """
        Atomically set key only if it does not exist (SET NX EX).

        Returns:
            True if the key was set, False if someone else holds it
        """
        return bool(self._client.set(key, value, nx=True, ex=ttl_seconds))

    def delete_if_equals(self, key: str, value: str) -> bool:
        """
        Atomically delete key only if it still holds value.

        Returns:
            True if deleted, False if the key expired or changed owner
        """
        return bool(self._delete_if_equals(keys=[key], args=[value]))

    def close(self) -> None:
        """Close the connection."""
        self._client.close()
        logger.info("ValkeyClient closed")
