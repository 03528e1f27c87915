"""Tests for AuthConfig and load_auth_config()."""

import pytest
from pydantic import ValidationError

from auth.config import AuthConfig, load_auth_config


class TestAuthConfig:
    def test_defaults(self):
        config = AuthConfig()

        assert config.session_expiry_hours == 12
        assert config.cookie_secure is True
        assert config.rate_limit_attempts == 5

    def test_out_of_range_rejected(self):
        with pytest.raises(ValidationError):
            AuthConfig(rate_limit_attempts=0)


class TestLoadAuthConfig:
    def test_reads_env(self, monkeypatch):
        monkeypatch.setenv("AUTH_SESSION_EXPIRY_HOURS", "24")
        monkeypatch.setenv("AUTH_COOKIE_SECURE", "false")

        config = load_auth_config()

        assert config.session_expiry_hours == 24
        assert config.cookie_secure is False

    def test_unset_keeps_defaults(self, monkeypatch):
        for name in ("AUTH_SESSION_EXPIRY_HOURS", "AUTH_COOKIE_SECURE",
                     "AUTH_RATE_LIMIT_ATTEMPTS", "AUTH_RATE_LIMIT_WINDOW_MINUTES"):
            monkeypatch.delenv(name, raising=False)

        assert load_auth_config() == AuthConfig()
