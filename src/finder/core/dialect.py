"""SQL dialect abstraction for the finder layer.

Provides a ``Dialect`` protocol and concrete implementations for the
relational stores that support raw-query finders: SQLite, PostgreSQL and
MySQL.  Query compilation and raw ``find_by_sql`` statements are written
once with ``?`` positional placeholders; the dialect renders them in the
driver's own paramstyle.

Manifesto:
    Callers write ``SELECT id, name FROM green_smoothies WHERE id = ?``
    whatever the store.  Without a dialect layer that text breaks on
    psycopg2 and mysql.connector, which expect ``%s``.

    - **One placeholder style in:** ``?`` everywhere
    - **Driver style out:** ``?`` (sqlite3) or ``%s`` (psycopg2, mysql)
    - **Quoted literals untouched:** ``'?'`` inside a string is not a bind
    - **Sequence binds expand:** ``IN ?`` with ``[1, 2]`` becomes ``IN (?, ?)``

Architecture::

    ┌────────────────────────────────────────────────────────────────┐
    │  sql, params = bind_positional(dialect, "... id = ?", [1])     │
    └────────────────────────────────────────────────────────────────┘
                              │
                              ▼
    ┌──────────────┐ ┌──────────────┐ ┌──────────────┐
    │ SQLite       │ │ PostgreSQL   │ │ MySQL        │
    │ ?            │ │ %s  "ident"  │ │ %s  `ident`  │
    │ AUTOINCREMENT│ │ SERIAL       │ │ AUTO_INCREMENT│
    └──────────────┘ └──────────────┘ └──────────────┘

Examples:
    >>> from finder.core.dialect import get_dialect, bind_positional
    >>> d = get_dialect("postgresql")
    >>> bind_positional(d, "SELECT * FROM t WHERE id IN ? AND name = '?'", [[1, 2]])
    ("SELECT * FROM t WHERE id IN (%s, %s) AND name = '?'", [1, 2])

Tags:
    dialect, sql, placeholders, portability, finder-core
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from finder.core.errors import QueryArgumentError


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    Every method returns a **SQL fragment** valid for the target database.
    """

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'sqlite'``)."""
        ...

    @property
    def supports_returning(self) -> bool:
        """Whether ``INSERT ... RETURNING`` yields generated keys."""
        ...

    def placeholder(self, index: int) -> str:
        """Single positional placeholder (0-based index)."""
        ...

    def placeholders(self, count: int) -> str:
        """Comma-separated placeholder list."""
        ...

    def quote(self, identifier: str) -> str:
        """Quote a table or column name."""
        ...

    def limit_offset(self, limit: int | None, offset: int | None) -> str:
        """``LIMIT``/``OFFSET`` clause (empty string when both are ``None``)."""
        ...

    def serial_column(self) -> str:
        """DDL type for an auto-incrementing integer primary key."""
        ...

    def insert_default_values(self, table: str) -> str:
        """``INSERT`` of a row that takes every column default."""
        ...

    def column_type(self, kind: str) -> str:
        """DDL type for a property type name (``'string'``, ``'boolean'`` ...)."""
        ...


_COMMON_TYPES = {
    "integer": "INTEGER",
    "string": "VARCHAR(255)",
    "text": "TEXT",
    "float": "DOUBLE PRECISION",
    "decimal": "NUMERIC",
    "date": "DATE",
    "datetime": "TIMESTAMP",
}


# =========================================================================
# Implementations
# =========================================================================


class SQLiteDialect:
    """SQLite dialect: ``?`` placeholders, ``"`` identifiers."""

    @property
    def name(self) -> str:
        return "sqlite"

    @property
    def supports_returning(self) -> bool:
        return False

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "?"

    def placeholders(self, count: int) -> str:
        return ", ".join("?" for _ in range(count))

    def quote(self, identifier: str) -> str:
        return '"' + identifier.replace('"', '""') + '"'

    def limit_offset(self, limit: int | None, offset: int | None) -> str:
        if limit is None and offset is None:
            return ""
        # SQLite only accepts OFFSET after a LIMIT; -1 means unbounded
        clause = f" LIMIT {limit if limit is not None else -1}"
        if offset:
            clause += f" OFFSET {offset}"
        return clause

    def serial_column(self) -> str:
        return "INTEGER PRIMARY KEY AUTOINCREMENT"

    def insert_default_values(self, table: str) -> str:
        return f"INSERT INTO {table} DEFAULT VALUES"

    def column_type(self, kind: str) -> str:
        if kind == "boolean":
            return "BOOLEAN"
        if kind == "float":
            return "REAL"
        return _COMMON_TYPES.get(kind, "TEXT")


class PostgreSQLDialect:
    """PostgreSQL dialect: ``%s`` placeholders (psycopg2), ``SERIAL`` keys."""

    @property
    def name(self) -> str:
        return "postgresql"

    @property
    def supports_returning(self) -> bool:
        return True

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "%s"

    def placeholders(self, count: int) -> str:
        return ", ".join("%s" for _ in range(count))

    def quote(self, identifier: str) -> str:
        return '"' + identifier.replace('"', '""') + '"'

    def limit_offset(self, limit: int | None, offset: int | None) -> str:
        clause = ""
        if limit is not None:
            clause += f" LIMIT {limit}"
        if offset:
            clause += f" OFFSET {offset}"
        return clause

    def serial_column(self) -> str:
        return "SERIAL PRIMARY KEY"

    def insert_default_values(self, table: str) -> str:
        return f"INSERT INTO {table} DEFAULT VALUES"

    def column_type(self, kind: str) -> str:
        if kind == "boolean":
            return "BOOLEAN"
        return _COMMON_TYPES.get(kind, "TEXT")


class MySQLDialect:
    """MySQL dialect: ``%s`` placeholders, backtick identifiers."""

    @property
    def name(self) -> str:
        return "mysql"

    @property
    def supports_returning(self) -> bool:
        return False

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "%s"

    def placeholders(self, count: int) -> str:
        return ", ".join("%s" for _ in range(count))

    def quote(self, identifier: str) -> str:
        return "`" + identifier.replace("`", "``") + "`"

    def limit_offset(self, limit: int | None, offset: int | None) -> str:
        if limit is None and offset is None:
            return ""
        # MySQL's documented "no limit" sentinel
        clause = f" LIMIT {limit if limit is not None else 18446744073709551615}"
        if offset:
            clause += f" OFFSET {offset}"
        return clause

    def serial_column(self) -> str:
        return "INTEGER PRIMARY KEY AUTO_INCREMENT"

    def insert_default_values(self, table: str) -> str:
        return f"INSERT INTO {table} () VALUES ()"

    def column_type(self, kind: str) -> str:
        if kind == "boolean":
            return "TINYINT(1)"
        if kind == "datetime":
            return "DATETIME"
        return _COMMON_TYPES.get(kind, "TEXT")


# =========================================================================
# Placeholder binding
# =========================================================================


def bind_positional(
    dialect: Dialect,
    sql: str,
    binds: Sequence[Any] = (),
    *,
    escape_percent: bool | None = None,
) -> tuple[str, list[Any]]:
    """Render ``?`` placeholders in *sql* for *dialect* and flatten *binds*.

    ``?`` characters inside single- or double-quoted literals are left
    alone.  A list, tuple or set bind value expands to a parenthesised
    placeholder list.

    When parameters are produced and *escape_percent* holds (by default:
    the dialect uses ``%s``), literal ``%`` signs are doubled so a
    format-style driver does not read them as directives.  Statements
    without parameters are returned unescaped; callers execute them
    without a parameter sequence.

    Raises:
        QueryArgumentError: The number of ``?`` placeholders does not match
            the number of bind values.
    """
    if escape_percent is None:
        escape_percent = dialect.placeholder(0) == "%s"

    literals: list[str] = []
    markers: list[str] = []
    params: list[Any] = []
    remaining = list(binds)
    current: list[str] = []
    quote: str | None = None

    for ch in sql:
        if quote is not None:
            if ch == quote:
                quote = None
            current.append(ch)
        elif ch in ("'", '"'):
            quote = ch
            current.append(ch)
        elif ch == "?":
            if not remaining:
                raise QueryArgumentError(
                    f"SQL has more placeholders than the {len(binds)} bind value(s) given"
                )
            value = remaining.pop(0)
            if isinstance(value, (list, tuple, set, frozenset)):
                values = list(value)
                if not values:
                    raise QueryArgumentError("cannot bind an empty sequence")
                marker = "(" + ", ".join(
                    dialect.placeholder(len(params) + i) for i in range(len(values))
                ) + ")"
                params.extend(values)
            else:
                marker = dialect.placeholder(len(params))
                params.append(value)
            literals.append("".join(current))
            markers.append(marker)
            current = []
        else:
            current.append(ch)
    literals.append("".join(current))

    if remaining:
        raise QueryArgumentError(
            f"{len(binds)} bind value(s) given but SQL has only {len(binds) - len(remaining)} placeholder(s)"
        )

    if params and escape_percent:
        literals = [text.replace("%", "%%") for text in literals]
    out = [literals[0]]
    for marker, text in zip(markers, literals[1:]):
        out.append(marker)
        out.append(text)
    return "".join(out), params


# =========================================================================
# Registry / Factory
# =========================================================================

# Pre-instantiated singletons (dialects are stateless)
_DIALECTS: dict[str, Dialect] = {
    "sqlite": SQLiteDialect(),
    "postgresql": PostgreSQLDialect(),
    "postgres": PostgreSQLDialect(),  # alias
    "mysql": MySQLDialect(),
    "mariadb": MySQLDialect(),  # alias
}


def get_dialect(db_type: str) -> Dialect:
    """Get a dialect by database type name.

    Raises:
        ValueError: If ``db_type`` is not recognised.
    """
    key = db_type.lower() if isinstance(db_type, str) else db_type.value
    if key not in _DIALECTS:
        raise ValueError(
            f"Unknown dialect '{db_type}'. "
            f"Supported: {sorted(set(_DIALECTS) - {'postgres', 'mariadb'})}"
        )
    return _DIALECTS[key]


def register_dialect(name: str, dialect: Dialect) -> None:
    """Register a custom dialect implementation."""
    _DIALECTS[name.lower()] = dialect


__all__ = [
    "Dialect",
    "SQLiteDialect",
    "PostgreSQLDialect",
    "MySQLDialect",
    "bind_positional",
    "get_dialect",
    "register_dialect",
]
