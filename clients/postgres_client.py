"""
PostgreSQL client with connection pooling.

Uses psycopg2 with ThreadedConnectionPool. Each PostgresClient owns its pool:
the app factory creates one per process and closes it on shutdown, so there
is no module-level connection state.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Tuple
from uuid import UUID

import psycopg2
import psycopg2.extras
import psycopg2.pool

logger = logging.getLogger(__name__)


class PostgresClient:
    """
    PostgreSQL client backed by a thread-safe connection pool.

    Route handlers run in Starlette's threadpool, so concurrent requests
    check out separate connections.

    Usage:
        db = PostgresClient(database_url)
        row = db.execute_single("SELECT * FROM sellers WHERE id = %s", (seller_id,))
        db.close()
    """

    def __init__(self, database_url: str, min_connections: int = 1, max_connections: int = 20):
        """
        Create the connection pool.

        Raises:
            psycopg2.OperationalError: If the database is unreachable
        """
        self._pool = psycopg2.pool.ThreadedConnectionPool(
            minconn=min_connections,
            maxconn=max_connections,
            dsn=database_url,
            connect_timeout=30,
        )
        psycopg2.extras.register_uuid()
        logger.info("Connection pool created")

    @contextmanager
    def get_connection(self):
        """Check out a connection, rolling back on error and returning it to the pool."""
        conn = self._pool.getconn()
        if conn is None:
            raise RuntimeError("Could not get connection from pool")

        try:
            yield conn
        except Exception:
            conn.rollback()
            raise
        finally:
            self._pool.putconn(conn)

    def _convert_params(self, params: Tuple | Dict | None) -> Tuple | Dict | None:
        """Convert UUID objects to strings."""
        if params is None:
            return None

        def convert(value: Any) -> Any:
            if isinstance(value, UUID):
                return str(value)
            if isinstance(value, list):
                return [convert(v) for v in value]
            if isinstance(value, tuple):
                return tuple(convert(v) for v in value)
            if isinstance(value, dict):
                return {k: convert(v) for k, v in value.items()}
            return value

        return convert(params)

    def execute(self, query: str, params: Tuple | Dict | None = None) -> List[Dict[str, Any]]:
        """Execute query, return list of row dicts. Empty list if no results."""
        params = self._convert_params(params)
        with self.get_connection() as conn:
            with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                cur.execute(query, params)
                rows = [dict(row) for row in cur.fetchall()] if cur.description else []
            conn.commit()
            return rows

    def execute_single(self, query: str, params: Tuple | Dict | None = None) -> Dict[str, Any] | None:
        """Execute query, return first row or None."""
        results = self.execute(query, params)
        return results[0] if results else None

    def execute_returning(self, query: str, params: Tuple | Dict | None = None) -> List[Dict[str, Any]]:
        """Execute INSERT/UPDATE with RETURNING, return results."""
        params = self._convert_params(params)
        with self.get_connection() as conn:
            with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                cur.execute(query, params)
                rows = [dict(row) for row in cur.fetchall()]
            conn.commit()
            return rows

    def ping(self) -> bool:
        """Health check. Raises psycopg2.OperationalError if unreachable."""
        self.execute("SELECT 1")
        return True

    def close(self) -> None:
        """Close every pooled connection."""
        self._pool.closeall()
        logger.info("Connection pool closed")
