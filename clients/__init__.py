# Infrastructure clients
from clients.vault_client import (
    VaultClient,
    VaultError,
    clear_secret_cache,
    get_database_url,
    get_valkey_url,
    get_login_credentials,
)
from clients.postgres_client import PostgresClient
from clients.valkey_client import ValkeyClient
