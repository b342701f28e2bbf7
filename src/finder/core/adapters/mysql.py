"""MySQL store adapter.

Uses ``mysql.connector`` from the ``mysql-connector-python`` package.
MySQL uses **format** (``%s``) placeholder style, but ``mysql.connector``
passes literal ``%`` through untouched, so statements are bound without
percent escaping.

Install the driver::

    pip install mysql-connector-python
    # or:  pip install finder-core[mysql]

This adapter is import-guarded: if ``mysql.connector`` is not installed
a clear :class:`~finder.core.errors.ConfigError` is raised at
``connect()`` time.
"""

from __future__ import annotations

from typing import Any

from finder.core.errors import ConfigError, DatabaseConnectionError
from finder.core.protocols import Connection

from .base import SQLAdapter
from .types import DatabaseConfig, DatabaseType


class MySQLAdapter(SQLAdapter):
    """MySQL / MariaDB store adapter backed by a ``MySQLConnectionPool``."""

    escape_percent = False

    def __init__(
        self,
        host: str = "localhost",
        port: int = 3306,
        database: str = "",
        username: str | None = None,
        password: str | None = None,
        *,
        pool_size: int = 5,
        charset: str = "utf8mb4",
        log_sql: bool = False,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.MYSQL,
            host=host,
            port=port,
            database=database,
            username=username,
            password=password,
            pool_size=pool_size,
            log_sql=log_sql,
            options={**kwargs, "charset": charset},
        )
        super().__init__(config)
        self._pool: Any = None

    def connect(self) -> None:
        """Open the connection pool."""
        try:
            from mysql.connector import pooling
        except ImportError:
            raise ConfigError(
                "mysql-connector-python is required for MySQL. "
                "Install with: pip install mysql-connector-python"
            ) from None

        try:
            self._pool = pooling.MySQLConnectionPool(
                pool_name="finder_mysql_pool",
                pool_size=self._config.pool_size,
                host=self._config.host,
                port=self._config.port,
                database=self._config.database,
                user=self._config.username,
                password=self._config.password,
                charset=self._config.options.get("charset", "utf8mb4"),
                connect_timeout=self._config.connect_timeout,
                autocommit=False,
            )
            self._connected = True
        except Exception as e:
            raise DatabaseConnectionError(
                f"Failed to connect to MySQL: {e}",
                cause=e,
            ) from e

    def disconnect(self) -> None:
        """Drop the pool; pooled connections close when collected."""
        self._pool = None
        self._connected = False

    def _checkout(self) -> Connection:
        if not self._pool:
            self.connect()
        return self._pool.get_connection()

    def _checkin(self, conn: Any) -> None:
        # mysql.connector returns pooled connections on close()
        conn.close()


__all__ = [
    "MySQLAdapter",
]
