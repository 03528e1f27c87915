"""Session token lifecycle management.

Sessions are stored in Valkey with a TTL matching session expiry.
Token format is cryptographically random (secrets.token_urlsafe).
"""

import logging
import secrets
from datetime import datetime, timedelta

from clients.valkey_client import ValkeyClient
from auth.config import AuthConfig
from auth.types import Session
from auth.exceptions import SessionExpiredError
from utils.timezone import ensure_utc, now_utc

logger = logging.getLogger(__name__)


class SessionManager:
    """Create, validate (with sliding expiry) and revoke sessions."""

    KEY_PREFIX = "invoice:session:"

    def __init__(self, valkey: ValkeyClient, config: AuthConfig):
        self._valkey = valkey
        self._config = config
        self._ttl_seconds = config.session_expiry_hours * 3600

    def _key(self, token: str) -> str:
        return f"{self.KEY_PREFIX}{token}"

    def _store(self, session: Session) -> None:
        self._valkey.set_json(
            self._key(session.token),
            {
                "username": session.username,
                "created_at": session.created_at.isoformat(),
                "expires_at": session.expires_at.isoformat(),
                "last_activity_at": session.last_activity_at.isoformat(),
            },
            expire_seconds=self._ttl_seconds,
        )

    def create_session(self, username: str) -> Session:
        """New session for username, stored with TTL matching expiry."""
        now = now_utc()
        session = Session(
            token=secrets.token_urlsafe(32),
            username=username,
            created_at=now,
            expires_at=now + timedelta(hours=self._config.session_expiry_hours),
            last_activity_at=now,
        )
        self._store(session)
        logger.info(f"Session created for {username}")
        return session

    def validate_session(self, token: str) -> Session:
        """
        Look up a session and slide its expiry forward.

        Raises:
            SessionExpiredError: If the token is unknown or expired
        """
        data = self._valkey.get_json(self._key(token))
        if data is None:
            raise SessionExpiredError("Session not found or expired")

        session = Session(
            token=token,
            username=data["username"],
            created_at=ensure_utc(datetime.fromisoformat(data["created_at"])),
            expires_at=ensure_utc(datetime.fromisoformat(data["expires_at"])),
            last_activity_at=ensure_utc(datetime.fromisoformat(data["last_activity_at"])),
        )

        now = now_utc()
        # Valkey TTL normally removes the key first
        if now > session.expires_at:
            self._valkey.delete(self._key(token))
            raise SessionExpiredError("Session expired")

        extended = session.model_copy(update={
            "expires_at": now + timedelta(hours=self._config.session_expiry_hours),
            "last_activity_at": now,
        })
        self._store(extended)
        return extended

    def revoke_session(self, token: str) -> None:
        """Logout. Safe to call with a nonexistent token."""
        self._valkey.delete(self._key(token))
