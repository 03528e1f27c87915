"""Authentication service - password login for the single operator account."""

import hmac
import logging

from auth.exceptions import InvalidCredentialsError
from auth.rate_limiter import RateLimiter
from auth.session import SessionManager
from auth.types import Session

logger = logging.getLogger(__name__)


class AuthService:
    """
    Checks operator credentials and issues sessions.

    Credentials come from Vault (clients.vault_client.get_login_credentials)
    and are compared in constant time.
    """

    def __init__(
        self,
        credentials: dict[str, str],
        session_manager: SessionManager,
        rate_limiter: RateLimiter,
    ):
        self._username = credentials["username"]
        self._password = credentials["password"]
        self._session_manager = session_manager
        self._rate_limiter = rate_limiter

    def login(self, username: str, password: str, ip_address: str | None = None) -> Session:
        """
        Verify credentials and create a session.

        Raises:
            RateLimitedError: If the username is locked out
            InvalidCredentialsError: If username or password is wrong
        """
        self._rate_limiter.check_rate_limit(username)

        username_ok = hmac.compare_digest(username.encode(), self._username.encode())
        password_ok = hmac.compare_digest(password.encode(), self._password.encode())
        if not (username_ok and password_ok):
            failures = self._rate_limiter.record_failure(username)
            logger.warning(f"Failed login for '{username}' from {ip_address} ({failures} recent failures)")
            raise InvalidCredentialsError("Invalid username or password")

        self._rate_limiter.reset_rate_limit(username)
        session = self._session_manager.create_session(self._username)
        logger.info(f"Login for '{self._username}' from {ip_address}")
        return session

    def logout(self, session_token: str, ip_address: str | None = None) -> None:
        """Revoke a session. Safe to call with an invalid token."""
        self._session_manager.revoke_session(session_token)
        logger.info(f"Session revoked from {ip_address}")

