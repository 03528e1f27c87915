"""Invoice persistence: one interface, in-memory and PostgreSQL backends."""

from core.config import InvoiceConfig
from core.numbering import create_policy
from core.store.base import InvoiceStore
from core.store.memory import MemoryInvoiceStore


def create_store(config: InvoiceConfig, postgres=None) -> InvoiceStore:
    """
    Build the store named by config.store_backend.

    Args:
        config: Selects backend, numbering policy and its timezone
        postgres: PostgresClient, required for the 'postgres' backend

    Raises:
        ValueError: If the postgres backend is selected without a client
    """
    numbering = create_policy(config.numbering_policy, config.display_timezone)

    if config.store_backend == "postgres":
        if postgres is None:
            raise ValueError("store_backend 'postgres' requires a PostgresClient")
        # Deferred so the memory backend runs without psycopg2 connectivity
        from core.store.postgres import PostgresInvoiceStore
        return PostgresInvoiceStore(postgres, numbering)

    return MemoryInvoiceStore(numbering)
