"""PostgreSQL store adapter.

Uses ``psycopg2`` with a ``ThreadedConnectionPool``.  PostgreSQL uses
**format** (``%s``) placeholders and supports ``INSERT ... RETURNING``,
so generated serial keys are read back in the same statement.

Install the driver::

    pip install psycopg2-binary
    # or:  pip install finder-core[postgres]

This adapter is import-guarded: if ``psycopg2`` is not installed a clear
:class:`~finder.core.errors.ConfigError` is raised at ``connect()`` time.
"""

from __future__ import annotations

from typing import Any

from finder.core.errors import ConfigError, DatabaseConnectionError
from finder.core.protocols import Connection

from .base import SQLAdapter
from .types import DatabaseConfig, DatabaseType


class PostgreSQLAdapter(SQLAdapter):
    """
    PostgreSQL store adapter.

    Each repository scope checks one connection out of the pool and puts
    it back when the scope closes.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 5432,
        database: str = "",
        username: str | None = None,
        password: str | None = None,
        *,
        pool_size: int = 5,
        log_sql: bool = False,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.POSTGRESQL,
            host=host,
            port=port,
            database=database,
            username=username,
            password=password,
            pool_size=pool_size,
            log_sql=log_sql,
            options=kwargs,
        )
        super().__init__(config)
        self._pool: Any = None

    def connect(self) -> None:
        """Open the connection pool."""
        try:
            import psycopg2
            import psycopg2.pool
        except ImportError:
            raise ConfigError(
                "psycopg2 is required for PostgreSQL. Install with: pip install psycopg2-binary"
            ) from None

        try:
            self._pool = psycopg2.pool.ThreadedConnectionPool(
                minconn=1,
                maxconn=self._config.pool_size,
                host=self._config.host,
                port=self._config.port,
                database=self._config.database,
                user=self._config.username,
                password=self._config.password,
                connect_timeout=self._config.connect_timeout,
                **self._config.options,
            )
            self._connected = True
        except psycopg2.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to PostgreSQL: {e}",
                cause=e,
            ) from e

    def disconnect(self) -> None:
        """Close the connection pool."""
        if self._pool:
            self._pool.closeall()
            self._pool = None
            self._connected = False

    def _checkout(self) -> Connection:
        if not self._pool:
            self.connect()
        return self._pool.getconn()

    def _checkin(self, conn: Any) -> None:
        if self._pool:
            self._pool.putconn(conn)


__all__ = [
    "PostgreSQLAdapter",
]
