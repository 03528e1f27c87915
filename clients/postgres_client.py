"""
PostgreSQL access for the invoice store.

psycopg2 with one ThreadedConnectionPool per database URL, shared by every
PostgresClient built for that URL. All work happens inside transaction():
commit when the block exits normally, rollback when it raises.
"""

import logging
import threading
from contextlib import contextmanager
from importlib import resources
from typing import Any, Dict, Iterator, List

import psycopg2
import psycopg2.extensions
import psycopg2.extras
import psycopg2.pool

logger = logging.getLogger(__name__)

# UUID parameters and uuid columns map to uuid.UUID both ways
psycopg2.extras.register_uuid()


class PostgresClient:
    """
    Pooled psycopg2 connections with transaction scoping.

    Usage:
        db = PostgresClient(database_url)
        db.apply_schema()

        with db.transaction() as cur:
            cur.execute("INSERT INTO companies ...")
            cur.execute("INSERT INTO invoices ...")
    """

    _pools: Dict[str, psycopg2.pool.ThreadedConnectionPool] = {}
    _pools_lock = threading.RLock()

    def __init__(self, database_url: str, min_connections: int = 1, max_connections: int = 10):
        self._database_url = database_url
        self._min_connections = min_connections
        self._max_connections = max_connections
        self._pool()

    def _pool(self) -> psycopg2.pool.ThreadedConnectionPool:
        """The pool for this URL, opened on first use."""
        with self._pools_lock:
            pool = self._pools.get(self._database_url)
            if pool is None:
                pool = psycopg2.pool.ThreadedConnectionPool(
                    minconn=self._min_connections,
                    maxconn=self._max_connections,
                    dsn=self._database_url,
                    connect_timeout=30,
                )
                self._pools[self._database_url] = pool
                logger.info(f"Connection pool opened ({self._min_connections}-{self._max_connections} connections)")
            return pool

    @contextmanager
    def connection(self) -> Iterator[psycopg2.extensions.connection]:
        """Borrow a connection; it goes back to the pool even if the caller raises."""
        pool = self._pool()
        conn = pool.getconn()
        try:
            yield conn
        finally:
            pool.putconn(conn)

    @contextmanager
    def transaction(self) -> Iterator[psycopg2.extras.RealDictCursor]:
        """
        One transaction on one connection.

        Yields a RealDictCursor. Commits when the block exits normally and
        rolls back when it raises; the exception propagates unchanged.
        """
        with self.connection() as conn:
            try:
                with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                    yield cur
                conn.commit()
            except BaseException:
                conn.rollback()
                raise

    def execute(self, query: str, params: tuple | dict | None = None) -> List[Dict[str, Any]]:
        """Run one statement in its own transaction. Rows as dicts, [] when none."""
        with self.transaction() as cur:
            cur.execute(query, params)
            return [dict(row) for row in cur.fetchall()] if cur.description else []

    def apply_schema(self) -> None:
        """Run clients/schema.sql. Every statement is idempotent."""
        ddl = resources.files("clients").joinpath("schema.sql").read_text()
        with self.transaction() as cur:
            cur.execute(ddl)
        logger.info("Schema applied")

    def close(self) -> None:
        """Close this URL's pool. Other clients on the same URL lose it too."""
        with self._pools_lock:
            pool = self._pools.pop(self._database_url, None)
            if pool is not None:
                pool.closeall()
