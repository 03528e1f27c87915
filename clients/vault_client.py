"""
Secrets for Invoice Studio: database URL, Valkey URL, operator login.

Read from HashiCorp Vault (KV v2, AppRole auth, everything under the
'invoices/' mount path) when VAULT_ADDR is set. Without VAULT_ADDR (local
development, tests) each secret comes from a plain environment variable:

    invoices/database  url       DATABASE_URL
    invoices/valkey    url       VALKEY_URL
    invoices/login     username  INVOICE_ADMIN_USERNAME
    invoices/login     password  INVOICE_ADMIN_PASSWORD

A secret that resolves to nothing is fatal either way.
"""

import logging
import os
from typing import Dict

import hvac
from hvac.exceptions import Forbidden, InvalidPath, Unauthorized

logger = logging.getLogger(__name__)

_SECRET_PREFIX = "invoices"

_vault_client_instance: "VaultClient | None" = None
_secret_cache: Dict[str, str] = {}


class VaultError(Exception):
    """Secret could not be resolved. Fatal at startup."""


class VaultClient:
    """
    AppRole-authenticated reader for KV v2 secrets under invoices/.

    Configured from VAULT_ADDR, VAULT_NAMESPACE, VAULT_ROLE_ID and
    VAULT_SECRET_ID. Fails at construction rather than on first read.
    """

    def __init__(self, vault_addr: str | None = None, vault_namespace: str | None = None):
        addr = vault_addr or os.getenv("VAULT_ADDR")
        if not addr:
            raise ValueError("VAULT_ADDR environment variable is required")

        role_id = os.getenv("VAULT_ROLE_ID")
        secret_id = os.getenv("VAULT_SECRET_ID")
        if not role_id or not secret_id:
            raise ValueError("VAULT_ROLE_ID and VAULT_SECRET_ID environment variables are required")

        namespace = vault_namespace or os.getenv("VAULT_NAMESPACE")
        self.client = hvac.Client(url=addr, namespace=namespace) if namespace else hvac.Client(url=addr)
        self._login(role_id, secret_id)
        logger.info(f"Vault client ready: {addr}")

    def _login(self, role_id: str, secret_id: str) -> None:
        try:
            result = self.client.auth.approle.login(role_id=role_id, secret_id=secret_id)
        except (Unauthorized, Forbidden, InvalidPath) as e:
            logger.error(f"Vault AppRole login rejected: {e}")
            raise PermissionError(f"Vault AppRole login rejected: {e}")

        self.client.token = result["auth"]["client_token"]
        if not self.client.is_authenticated():
            raise PermissionError("Vault token not accepted after AppRole login")

    def get_secret(self, path: str, field: str) -> str:
        """
        One field of invoices/<path>.

        Raises:
            PermissionError: Path missing or not readable with this role
            KeyError: Secret exists but has no such field
        """
        full_path = f"{_SECRET_PREFIX}/{path}"
        try:
            secret = self.client.secrets.kv.v2.read_secret_version(
                path=full_path, raise_on_deleted_version=True
            )["data"]["data"]
        except InvalidPath:
            raise PermissionError(f"Secret '{full_path}' does not exist")
        except (Unauthorized, Forbidden) as e:
            raise PermissionError(f"Secret '{full_path}' not readable: {e}")

        if field not in secret:
            raise KeyError(f"Secret '{full_path}' has no field '{field}'")
        return secret[field]


def _vault() -> VaultClient:
    global _vault_client_instance
    if _vault_client_instance is None:
        _vault_client_instance = VaultClient()
    return _vault_client_instance


def _resolve(path: str, field: str, env_name: str) -> str:
    """Cached secret lookup: Vault when configured, else the named env var."""
    cache_key = f"{path}/{field}"
    if cache_key not in _secret_cache:
        if os.getenv("VAULT_ADDR"):
            value = _vault().get_secret(path, field)
        else:
            value = os.getenv(env_name)
            if not value:
                raise VaultError(f"{env_name} is not set and VAULT_ADDR is not configured")
            logger.info(f"{env_name} read from environment (Vault not configured)")
        _secret_cache[cache_key] = value
    return _secret_cache[cache_key]


def get_database_url() -> str:
    return _resolve("database", "url", "DATABASE_URL")


def get_valkey_url() -> str:
    return _resolve("valkey", "url", "VALKEY_URL")


def get_login_credentials() -> Dict[str, str]:
    """Operator login as {"username": ..., "password": ...}."""
    return {
        "username": _resolve("login", "username", "INVOICE_ADMIN_USERNAME"),
        "password": _resolve("login", "password", "INVOICE_ADMIN_PASSWORD"),
    }


def clear_secret_cache() -> None:
    """Forget cached secrets (tests, credential rotation)."""
    _secret_cache.clear()
