"""Tests for clients/vault_client.py - secret resolution with env fallback."""

from unittest.mock import Mock

import pytest

import clients.vault_client as vault_module
from clients.vault_client import (
    VaultClient,
    VaultError,
    clear_secret_cache,
    get_database_url,
    get_login_credentials,
    get_valkey_url,
)


@pytest.fixture(autouse=True)
def no_vault(monkeypatch):
    """Run every test with Vault unconfigured and a cold cache."""
    monkeypatch.delenv("VAULT_ADDR", raising=False)
    monkeypatch.setattr(vault_module, "_vault_client_instance", None)
    clear_secret_cache()
    yield
    clear_secret_cache()


class TestEnvFallback:
    def test_database_url_from_env(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/invoices")

        assert get_database_url() == "postgresql://localhost/invoices"

    def test_valkey_url_from_env(self, monkeypatch):
        monkeypatch.setenv("VALKEY_URL", "redis://localhost:6379/0")

        assert get_valkey_url() == "redis://localhost:6379/0"

    def test_login_credentials_from_env(self, monkeypatch):
        monkeypatch.setenv("INVOICE_ADMIN_USERNAME", "admin")
        monkeypatch.setenv("INVOICE_ADMIN_PASSWORD", "secret")

        assert get_login_credentials() == {"username": "admin", "password": "secret"}

    def test_missing_value_raises(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)

        with pytest.raises(VaultError, match="DATABASE_URL"):
            get_database_url()

    def test_value_cached_until_cleared(self, monkeypatch):
        monkeypatch.setenv("VALKEY_URL", "redis://first")
        get_valkey_url()
        monkeypatch.setenv("VALKEY_URL", "redis://second")

        assert get_valkey_url() == "redis://first"

        clear_secret_cache()
        assert get_valkey_url() == "redis://second"


class TestVaultLookup:
    def test_uses_vault_when_configured(self, monkeypatch):
        vault = Mock(spec=VaultClient)
        vault.get_secret.return_value = "postgresql://vault/invoices"
        monkeypatch.setenv("VAULT_ADDR", "http://vault:8200")
        monkeypatch.setattr(vault_module, "_vault_client_instance", vault)

        assert get_database_url() == "postgresql://vault/invoices"
        vault.get_secret.assert_called_once_with("database", "url")


class TestVaultClientInit:
    def test_missing_vault_addr_raises(self):
        with pytest.raises(ValueError, match="VAULT_ADDR"):
            VaultClient()

    def test_missing_approle_credentials_raises(self, monkeypatch):
        monkeypatch.delenv("VAULT_ROLE_ID", raising=False)
        monkeypatch.delenv("VAULT_SECRET_ID", raising=False)

        with pytest.raises(ValueError, match="VAULT_ROLE_ID"):
            VaultClient(vault_addr="http://vault:8200")
