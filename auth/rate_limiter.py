"""Rate limiting for password logins.

Failed attempts are counted per username in Valkey. The window TTL resets
on every failed attempt, so hammering extends the lockout.
"""

from clients.valkey_client import ValkeyClient
from auth.config import AuthConfig
from auth.exceptions import RateLimitedError


class RateLimiter:
    """Per-username failed-login counter."""

    KEY_PREFIX = "invoice:ratelimit:login:"

    def __init__(self, valkey: ValkeyClient, config: AuthConfig):
        self._valkey = valkey
        self._config = config
        self._window_seconds = config.rate_limit_window_minutes * 60

    def _key(self, username: str) -> str:
        """Rate limit key for a username (normalized to lowercase)."""
        return f"{self.KEY_PREFIX}{username.strip().lower()}"

    def check_rate_limit(self, username: str) -> None:
        """
        Refuse the attempt when the username is locked out.

        Raises:
            RateLimitedError: If failed attempts reached the limit
        """
        key = self._key(username)
        current = self._valkey.get(key)
        if current is not None and int(current) >= self._config.rate_limit_attempts:
            raise RateLimitedError(retry_after_seconds=max(self._valkey.ttl(key), 1))

    def record_failure(self, username: str) -> int:
        """Count a failed attempt and restart the window. Returns the new count."""
        key = self._key(username)
        count = self._valkey.incr(key)
        self._valkey.expire(key, self._window_seconds)
        return count

    def reset_rate_limit(self, username: str) -> None:
        """Clear the counter after a successful login."""
        self._valkey.delete(self._key(username))

    def get_remaining_attempts(self, username: str) -> int:
        current = self._valkey.get(self._key(username))
        if current is None:
            return self._config.rate_limit_attempts
        return max(self._config.rate_limit_attempts - int(current), 0)
