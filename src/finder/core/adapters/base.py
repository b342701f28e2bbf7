"""Store adapter base classes.

Manifesto:
    The finder layer never talks to a driver.  It asks an adapter to
    ``read`` a structured query, ``select`` a literal statement, or
    ``create``/``update``/``delete`` rows, always through a connection
    the adapter lent it with ``acquire()``.  Swapping SQLite for
    PostgreSQL changes the adapter and nothing else.

Features:
    - Abstract lifecycle: ``connect()``, ``disconnect()``, ``acquire()``
    - ``acquire()`` returns the connection on exit, even when the block raises
    - ``SQLAdapter`` compiles structured queries with ``?`` placeholders and
      renders them through the adapter's :class:`~finder.core.dialect.Dialect`
    - Rows come back as dicts keyed by physical column name
    - Driver exceptions propagate unchanged

Architecture::

    AbstractAdapter
      ├── MemoryAdapter            (structured queries only)
      └── SQLAdapter               (DB-API connections + Dialect)
            ├── SQLiteAdapter
            ├── PostgreSQLAdapter
            ├── MySQLAdapter
            └── SQLAlchemyAdapter

Tags:
    finder-core, database, abstract-base, adapter-pattern
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any

from finder.core.dialect import Dialect, bind_positional, get_dialect
from finder.core.errors import UnsupportedQueryError
from finder.core.logging import get_logger
from finder.core.protocols import Connection

from .types import DatabaseConfig, DatabaseType

logger = get_logger(__name__)

Row = dict[str, Any]


class AbstractAdapter(ABC):
    """
    Abstract base class for store adapters.

    Models and queries are consumed by shape: a model exposes
    ``storage_name`` and ``properties``; a property exposes ``name``,
    ``field``, ``type``, ``key`` and ``serial``.
    """

    def __init__(self, config: DatabaseConfig):
        self._config = config
        self._connected = False

    @property
    def db_type(self) -> DatabaseType:
        return self._config.db_type

    @property
    def dialect(self) -> Dialect | None:
        """SQL dialect, or ``None`` for stores that do not speak SQL."""
        return None

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def supports_sql(self) -> bool:
        return self.dialect is not None

    @abstractmethod
    def connect(self) -> None:
        """Establish the connection or pool."""
        ...

    @abstractmethod
    def disconnect(self) -> None:
        """Close the connection or pool."""
        ...

    @abstractmethod
    def _checkout(self) -> Any:
        ...

    @abstractmethod
    def _checkin(self, conn: Any) -> None:
        ...

    @contextmanager
    def acquire(self) -> Iterator[Any]:
        """Lend a connection for the duration of the block."""
        conn = self._checkout()
        try:
            yield conn
        finally:
            self._checkin(conn)

    # -- Operations --------------------------------------------------------

    @abstractmethod
    def read(self, conn: Any, query: Any) -> list[Row]:
        """Rows matching a structured query, keyed by column name."""
        ...

    def select(self, conn: Any, sql: str, binds: Sequence[Any] = ()) -> list[Row]:
        """Rows of a literal statement with ``?`` placeholders."""
        raise UnsupportedQueryError(
            f"{type(self).__name__} cannot execute raw SQL queries"
        )

    @abstractmethod
    def create(self, conn: Any, model: Any, values: Mapping[Any, Any]) -> Any:
        """Insert one row; returns the generated serial key, if any."""
        ...

    @abstractmethod
    def update(self, conn: Any, model: Any, key: Mapping[Any, Any], values: Mapping[Any, Any]) -> int:
        ...

    @abstractmethod
    def delete(self, conn: Any, model: Any, conditions: Mapping[Any, Any]) -> int:
        ...

    @abstractmethod
    def create_model_storage(self, conn: Any, model: Any) -> None:
        ...

    @abstractmethod
    def destroy_model_storage(self, conn: Any, model: Any) -> None:
        ...

    def __enter__(self) -> AbstractAdapter:
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._config.to_connection_string()!r}>"


class SQLAdapter(AbstractAdapter):
    """Adapter for stores reached through DB-API 2.0 connections."""

    #: Double literal ``%`` when binding for a format-style driver.
    escape_percent: bool | None = None

    def __init__(self, config: DatabaseConfig, dialect: Dialect | None = None):
        super().__init__(config)
        self._dialect: Dialect = dialect or get_dialect(config.db_type.value)

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    # -- Statement execution -----------------------------------------------

    @contextmanager
    def _execute(self, conn: Connection, sql: str, binds: Sequence[Any] = ()) -> Iterator[Any]:
        """Render, execute and yield the cursor; the cursor is closed on exit."""
        rendered, params = bind_positional(
            self._dialect, sql, binds, escape_percent=self.escape_percent
        )
        if self._config.log_sql:
            logger.debug("sql_executed", sql=rendered, binds=params, dialect=self._dialect.name)

        cursor = conn.cursor()
        try:
            if params:
                cursor.execute(rendered, tuple(params))
            else:
                cursor.execute(rendered)
            yield cursor
        finally:
            cursor.close()

    def _fetch(self, conn: Connection, sql: str, binds: Sequence[Any] = ()) -> list[Row]:
        with self._execute(conn, sql, binds) as cursor:
            if cursor.description is None:
                return []
            columns = [desc[0] for desc in cursor.description]
            return [dict(zip(columns, row, strict=False)) for row in cursor.fetchall()]

    def _write(self, conn: Connection, sql: str, binds: Sequence[Any] = (), *, returning: bool = False) -> tuple[int, Any]:
        with self._execute(conn, sql, binds) as cursor:
            generated = cursor.fetchone()[0] if returning else cursor.lastrowid
            rowcount = cursor.rowcount
        conn.commit()
        return rowcount, generated

    # -- SQL compilation ---------------------------------------------------

    def _where(self, conditions: Sequence[tuple[Any, Any]]) -> tuple[str, list[Any]]:
        q = self._dialect.quote
        clauses: list[str] = []
        binds: list[Any] = []
        for prop, value in conditions:
            column = q(prop.field)
            if value is None:
                clauses.append(f"{column} IS NULL")
            elif isinstance(value, (list, tuple, set, frozenset)):
                if not value:
                    clauses.append("1 = 0")
                    continue
                clauses.append(f"{column} IN ?")
                binds.append([prop.type.dump(v) for v in value])
            else:
                clauses.append(f"{column} = ?")
                binds.append(prop.type.dump(value))
        if not clauses:
            return "", binds
        return " WHERE " + " AND ".join(clauses), binds

    def compile_select(self, query: Any) -> tuple[str, list[Any]]:
        """``SELECT`` text (``?`` placeholders) and binds for a structured query."""
        q = self._dialect.quote
        columns = ", ".join(q(prop.field) for prop in query.fields)
        sql = f"SELECT {columns} FROM {q(query.model.storage_name)}"
        where, binds = self._where(query.conditions)
        sql += where
        if query.order:
            sql += " ORDER BY " + ", ".join(
                f"{q(prop.field)} {'DESC' if desc else 'ASC'}" for prop, desc in query.order
            )
        sql += self._dialect.limit_offset(query.limit, query.offset or None)
        return sql, binds

    # -- Operations --------------------------------------------------------

    def read(self, conn: Connection, query: Any) -> list[Row]:
        sql, binds = self.compile_select(query)
        return self._fetch(conn, sql, binds)

    def select(self, conn: Connection, sql: str, binds: Sequence[Any] = ()) -> list[Row]:
        return self._fetch(conn, sql, binds)

    def create(self, conn: Connection, model: Any, values: Mapping[Any, Any]) -> Any:
        q = self._dialect.quote
        table = q(model.storage_name)
        items = [(prop, value) for prop, value in values.items() if not (prop.serial and value is None)]
        serial = next((prop for prop in model.properties if prop.serial), None)

        if items:
            columns = ", ".join(q(prop.field) for prop, _ in items)
            marks = ", ".join("?" for _ in items)
            sql = f"INSERT INTO {table} ({columns}) VALUES ({marks})"
        else:
            sql = self._dialect.insert_default_values(table)

        returning = serial is not None and self._dialect.supports_returning
        if returning:
            sql += f" RETURNING {q(serial.field)}"

        _, generated = self._write(
            conn, sql, [prop.type.dump(value) for prop, value in items], returning=returning
        )
        return generated if serial is not None else None

    def update(self, conn: Connection, model: Any, key: Mapping[Any, Any], values: Mapping[Any, Any]) -> int:
        if not values:
            return 0
        q = self._dialect.quote
        assignments = ", ".join(f"{q(prop.field)} = ?" for prop in values)
        where, where_binds = self._where(list(key.items()))
        sql = f"UPDATE {q(model.storage_name)} SET {assignments}{where}"
        binds = [prop.type.dump(value) for prop, value in values.items()] + where_binds
        rowcount, _ = self._write(conn, sql, binds)
        return rowcount

    def delete(self, conn: Connection, model: Any, conditions: Mapping[Any, Any]) -> int:
        where, binds = self._where(list(conditions.items()))
        sql = f"DELETE FROM {self._dialect.quote(model.storage_name)}{where}"
        rowcount, _ = self._write(conn, sql, binds)
        return rowcount

    def create_model_storage(self, conn: Connection, model: Any) -> None:
        q = self._dialect.quote
        columns: list[str] = []
        for prop in model.properties:
            if prop.serial:
                columns.append(f"{q(prop.field)} {self._dialect.serial_column()}")
            else:
                columns.append(f"{q(prop.field)} {self._dialect.column_type(prop.type.kind)}")
        keys = [prop for prop in model.properties if prop.key]
        if keys and not any(prop.serial for prop in keys):
            columns.append("PRIMARY KEY (" + ", ".join(q(prop.field) for prop in keys) + ")")
        sql = f"CREATE TABLE IF NOT EXISTS {q(model.storage_name)} ({', '.join(columns)})"
        self._write(conn, sql)

    def destroy_model_storage(self, conn: Connection, model: Any) -> None:
        self._write(conn, f"DROP TABLE IF EXISTS {self._dialect.quote(model.storage_name)}")


__all__ = [
    "AbstractAdapter",
    "SQLAdapter",
    "Row",
]
