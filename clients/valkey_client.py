"""
Valkey (Redis-compatible) storage for operator sessions and login throttling.

Thin wrapper around redis-py with string values. Connection problems raise
redis.ConnectionError; nothing here substitutes a default on failure.
"""

import json
import logging

import redis

logger = logging.getLogger(__name__)


class ValkeyClient:
    """
    Key/value access used by SessionManager and RateLimiter.

    Usage:
        valkey = ValkeyClient("redis://localhost:6379/0")
        valkey.set_json("invoice:session:abc", {"username": "admin"}, expire_seconds=3600)
        valkey.get_json("invoice:session:abc")
    """

    def __init__(self, url: str):
        """
        Connect and verify with PING.

        Raises:
            redis.ConnectionError: If the server is unreachable
        """
        self._client = redis.from_url(url, decode_responses=True)
        self._client.ping()
        logger.info("Valkey connected")

    def get(self, key: str) -> str | None:
        return self._client.get(key)

    def set(self, key: str, value: str, expire_seconds: int | None = None) -> None:
        """Store value, with a TTL when expire_seconds is given."""
        if expire_seconds is None:
            self._client.set(key, value)
        else:
            self._client.setex(key, expire_seconds, value)

    def delete(self, key: str) -> bool:
        """True if the key existed."""
        return self._client.delete(key) > 0

    def ttl(self, key: str) -> int:
        """Seconds left; -2 when the key is missing, -1 when it never expires."""
        return self._client.ttl(key)

    def incr(self, key: str) -> int:
        """Atomic counter increment; a missing key starts at 1."""
        return self._client.incr(key)

    def expire(self, key: str, expire_seconds: int) -> bool:
        """(Re)set a key's TTL. False if the key doesn't exist."""
        return bool(self._client.expire(key, expire_seconds))

    def set_json(self, key: str, value: dict | list, expire_seconds: int | None = None) -> None:
        self.set(key, json.dumps(value), expire_seconds)

    def get_json(self, key: str) -> dict | list | None:
        """
        Decoded JSON value, or None when the key is missing.

        Raises:
            ValueError: If the stored value is not JSON
        """
        raw = self.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in key '{key}': {e}")

    def close(self) -> None:
        self._client.close()
        logger.info("Valkey connection closed")
