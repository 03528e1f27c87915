"""Authentication configuration."""

import os

from pydantic import BaseModel, Field


class AuthConfig(BaseModel):
    """
    Authentication configuration.

    Durations are in their natural units (minutes for short windows,
    hours for session lifetime).
    """

    # Session settings
    session_expiry_hours: int = Field(
        default=12,
        description="Session lifetime in hours, extended on every request",
        ge=1,
        le=2160,
    )
    cookie_name: str = Field(default="session_token", min_length=1)
    cookie_secure: bool = Field(
        default=True,
        description="Send the session cookie over HTTPS only",
    )

    # Rate limiting
    rate_limit_attempts: int = Field(
        default=5,
        description="Max failed logins per username per window",
        ge=1,
        le=20,
    )
    rate_limit_window_minutes: int = Field(
        default=15,
        description="Rate limit window duration",
        ge=1,
        le=60,
    )


def load_auth_config() -> AuthConfig:
    """AuthConfig from AUTH_* environment variables; unset keeps defaults."""
    values = {}
    env_map = {
        "AUTH_SESSION_EXPIRY_HOURS": "session_expiry_hours",
        "AUTH_COOKIE_SECURE": "cookie_secure",
        "AUTH_RATE_LIMIT_ATTEMPTS": "rate_limit_attempts",
        "AUTH_RATE_LIMIT_WINDOW_MINUTES": "rate_limit_window_minutes",
    }
    for env_name, field in env_map.items():
        value = os.getenv(env_name)
        if value:
            values[field] = value
    return AuthConfig(**values)
