"""
Canonical protocol definitions for finder-core.

Adapters hand the finder layer DB-API 2.0 connections (``sqlite3``,
``psycopg2``, ``mysql.connector`` or a SQLAlchemy ``raw_connection()``
proxy).  These protocols name the small subset of PEP 249 the adapters
rely on so that test doubles can stand in for real drivers.

Architecture:
    ::

        Connection Protocol:
        ┌────────────────────────────────────────────────────────┐
        │ cursor()    → Cursor                                   │
        │ commit()    → Commit transaction                       │
        │ rollback()  → Rollback transaction                     │
        │ close()     → Release (or return to pool)              │
        └────────────────────────────────────────────────────────┘

        Cursor Protocol:
        ┌────────────────────────────────────────────────────────┐
        │ execute(sql, params)                                   │
        │ fetchall()     description     rowcount     lastrowid  │
        │ close()                                                │
        └────────────────────────────────────────────────────────┘

Tags:
    protocol, connection, dbapi, finder-core
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Cursor(Protocol):
    """PEP 249 cursor subset used by the SQL adapters."""

    description: Any
    rowcount: int
    lastrowid: Any

    def execute(self, sql: str, params: Any = ...) -> Any:
        ...

    def fetchone(self) -> Any:
        ...

    def fetchall(self) -> list:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class Connection(Protocol):
    """
    Minimal SYNCHRONOUS connection interface.

    Every adapter's ``acquire()`` yields an object of this shape for the
    lifetime of one repository scope.
    """

    def cursor(self) -> Cursor:
        """Open a cursor on this connection."""
        ...

    def commit(self) -> None:
        """Commit current transaction."""
        ...

    def rollback(self) -> None:
        """Rollback current transaction."""
        ...

    def close(self) -> None:
        """Close the connection, or hand it back to its pool."""
        ...


__all__ = [
    "Connection",
    "Cursor",
]
