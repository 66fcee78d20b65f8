"""
Valkey (Redis-compatible) client for the seller session cache.

Simple wrapper around redis-py. One instance per process, created by the
app factory and closed on shutdown.
Fail-fast: raises on connection failure, never returns fallback values.
"""

import json
import logging

import redis

logger = logging.getLogger(__name__)


class ValkeyClient:
    """
    Redis-compatible client for Valkey.

    Usage:
        client = ValkeyClient("redis://localhost:6379/0")
        client.set("key", "value", expire_seconds=300)
        value = client.get("key")  # Returns None if missing
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
        """
        Get value by key.

        Returns None if key doesn't exist (not an error).
        Raises on connection failure.
        """
        return self._client.get(key)

    def set(
        self,
        key: str,
        value: str,
        expire_seconds: int | None = None,
        only_if_absent: bool = False,
    ) -> bool:
        """
        Set key to value.

        Args:
            key: Key to set
            value: Value to store
            expire_seconds: TTL in seconds (None for no expiration)
            only_if_absent: SET NX - leave an existing value untouched

        Returns:
            True if the value was written, False if only_if_absent
            was set and the key already existed.
        """
        result = self._client.set(key, value, ex=expire_seconds, nx=only_if_absent)
        return bool(result)

    def delete(self, key: str) -> bool:
        """
        Delete key.

        Returns True if key existed and was deleted, False if key didn't exist.
        """
        return self._client.delete(key) > 0

    def set_json(
        self,
        key: str,
        value: dict | list,
        expire_seconds: int | None = None,
        only_if_absent: bool = False,
    ) -> bool:
        """
        Set key to JSON-serialized value.

        Same arguments and return value as set().
        """
        return self.set(key, json.dumps(value), expire_seconds, only_if_absent)

    def get_json(self, key: str) -> dict | list | None:
        """
        Get and deserialize JSON value.

        Returns None if key doesn't exist.
        Raises ValueError if value is not valid JSON.
        """
        value = self.get(key)
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in key '{key}': {e}")

    def close(self) -> None:
        """Close the connection."""
        self._client.close()
        logger.info("ValkeyClient closed")
