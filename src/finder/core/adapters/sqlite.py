"""SQLite store adapter."""

from __future__ import annotations

import sqlite3
from typing import Any

from finder.core.errors import DatabaseConnectionError
from finder.core.protocols import Connection

from .base import SQLAdapter
from .types import DatabaseConfig, DatabaseType


class SQLiteAdapter(SQLAdapter):
    """
    SQLite store adapter.

    Uses the built-in sqlite3 module and keeps one connection open for
    the adapter's lifetime, so an in-memory database survives between
    repository scopes.  Suitable for:
    - Development and testing
    - Single-process applications
    """

    def __init__(
        self,
        path: str = ":memory:",
        *,
        readonly: bool = False,
        timeout: float = 5.0,
        log_sql: bool = False,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.SQLITE,
            path=path,
            readonly=readonly,
            log_sql=log_sql,
            options=kwargs,
        )
        super().__init__(config)
        self._timeout = timeout
        self._conn: Any = None

    @property
    def path(self) -> str:
        return self._config.path or ":memory:"

    def connect(self) -> None:
        """Connect to the SQLite database."""
        path = self.path
        uri = path.startswith("file:")

        try:
            self._conn = sqlite3.connect(
                path,
                timeout=self._timeout,
                check_same_thread=False,
                uri=uri,
            )
            self._conn.execute("PRAGMA foreign_keys = ON")

            if self._config.readonly:
                self._conn.execute("PRAGMA query_only = ON")

            self._connected = True

        except sqlite3.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to SQLite: {e}",
                cause=e,
            ) from e

    def disconnect(self) -> None:
        """Close the SQLite connection."""
        if self._conn:
            self._conn.close()
            self._conn = None
            self._connected = False

    def _checkout(self) -> Connection:
        if not self._conn:
            self.connect()
        return self._conn

    def _checkin(self, conn: Any) -> None:
        # The single connection stays open until disconnect().
        pass


__all__ = [
    "SQLiteAdapter",
]
