"""SQLAlchemy engine factory and engine-backed store adapter.

Manifesto:
    Any database SQLAlchemy can reach should be usable as a repository
    without a hand-written adapter.  ``SQLAlchemyAdapter`` borrows DB-API
    connections from an ``Engine`` pool (``engine.raw_connection()``) and
    renders statements with the dialect matching ``engine.dialect.name``,
    so the finder layer sees the same ``Connection`` protocol as with the
    native adapters.

This module provides:

* ``create_finder_engine`` -- Create a SA engine from a URL with sane defaults.
* ``SQLAlchemyAdapter``    -- Store adapter over an existing or new ``Engine``.

Tags:
    finder-core, sqlalchemy, engine, adapter, connection
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine as _sa_create_engine
from sqlalchemy import event
from sqlalchemy.engine import Engine

from finder.core.dialect import get_dialect
from finder.core.errors import ConfigError
from finder.core.protocols import Connection

from .base import SQLAdapter
from .types import DatabaseConfig, DatabaseType

# DB-API drivers that take format-style placeholders but pass ``%`` through.
_UNESCAPED_PERCENT_DRIVERS = frozenset({"mysqlconnector"})


def create_finder_engine(
    url: str = "sqlite://",
    *,
    echo: bool = False,
    pool_size: int | None = None,
    max_overflow: int | None = None,
    pool_timeout: int | None = None,
    **kwargs: Any,
) -> Engine:
    """Create a SQLAlchemy engine with sane defaults.

    Parameters
    ----------
    url:
        Database URL (``sqlite:///…``, ``postgresql+psycopg2://…``, etc.)
    echo:
        If ``True``, SQLAlchemy logs all SQL.
    pool_size, max_overflow, pool_timeout:
        Connection pool parameters (ignored for SQLite).
    **kwargs:
        Extra arguments forwarded to ``sqlalchemy.create_engine``.
    """
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        engine = _sa_create_engine(url, echo=echo, **kwargs)

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection: Any, _rec: Any) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    pool_kwargs: dict[str, Any] = {}
    if pool_size is not None:
        pool_kwargs["pool_size"] = pool_size
    if max_overflow is not None:
        pool_kwargs["max_overflow"] = max_overflow
    if pool_timeout is not None:
        pool_kwargs["pool_timeout"] = pool_timeout

    return _sa_create_engine(url, echo=echo, **pool_kwargs, **kwargs)


class SQLAlchemyAdapter(SQLAdapter):
    """Store adapter that draws DB-API connections from a SQLAlchemy engine.

    Pass either a URL (an engine is created with
    :func:`create_finder_engine`) or a ready ``Engine``.  An engine passed
    in is not disposed on ``disconnect()``; the caller owns it.
    """

    def __init__(
        self,
        url_or_engine: str | Engine,
        *,
        log_sql: bool = False,
        **engine_kwargs: Any,
    ):
        if isinstance(url_or_engine, Engine):
            self._engine: Engine | None = url_or_engine
            self._owns_engine = False
            url = url_or_engine.url.render_as_string(hide_password=True)
        else:
            self._engine = None
            self._owns_engine = True
            url = url_or_engine
        self._engine_kwargs = engine_kwargs

        config = DatabaseConfig(
            db_type=DatabaseType.SQLALCHEMY,
            url=url,
            log_sql=log_sql,
            options=engine_kwargs,
        )
        engine = self._engine or self._make_engine(url)
        try:
            dialect = get_dialect(engine.dialect.name)
        except ValueError as e:
            raise ConfigError(
                f"No SQL dialect for SQLAlchemy backend {engine.dialect.name!r}",
                cause=e,
            ) from e
        self._engine = engine
        super().__init__(config, dialect)
        if engine.dialect.driver in _UNESCAPED_PERCENT_DRIVERS:
            self.escape_percent = False

    def _make_engine(self, url: str) -> Engine:
        return create_finder_engine(url, **self._engine_kwargs)

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = self._make_engine(self._config.url or "")
        return self._engine

    def connect(self) -> None:
        """Ensure the engine exists; connections are pooled lazily."""
        self.engine
        self._connected = True

    def disconnect(self) -> None:
        """Dispose the engine's pool if this adapter created the engine."""
        if self._engine is not None and self._owns_engine:
            self._engine.dispose()
            self._engine = None
        self._connected = False

    def _checkout(self) -> Connection:
        if not self._connected:
            self.connect()
        return self.engine.raw_connection()

    def _checkin(self, conn: Any) -> None:
        # The pool proxy returns the DB-API connection to the pool on close.
        conn.close()


__all__ = [
    "SQLAlchemyAdapter",
    "create_finder_engine",
]
