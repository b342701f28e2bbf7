"""In-memory store adapter.

Rows live in plain Python lists keyed by storage name.  Structured
queries (selectors, key and attribute matches, ordering, limit and
offset) are evaluated in Python; literal SQL is not understood, so
``select()`` raises :class:`~finder.core.errors.UnsupportedQueryError`.

Useful for unit tests and for showing which finder paths are
store-independent.
"""

from __future__ import annotations

import copy
import threading
from collections.abc import Mapping
from typing import Any

from finder.core.errors import PersistenceError

from .base import AbstractAdapter, Row
from .types import DatabaseConfig, DatabaseType


def _matches(row: Row, conditions: Any) -> bool:
    for prop, value in conditions:
        stored = row.get(prop.field)
        if value is None:
            if stored is not None:
                return False
        elif isinstance(value, (list, tuple, set, frozenset)):
            if stored not in value:
                return False
        elif stored != value:
            return False
    return True


class MemoryAdapter(AbstractAdapter):
    """Process-local store for tests and prototyping."""

    def __init__(self, name: str = "memory"):
        super().__init__(DatabaseConfig(db_type=DatabaseType.MEMORY, database=name))
        self._tables: dict[str, list[Row]] = {}
        self._serials: dict[str, int] = {}
        self._lock = threading.RLock()

    def connect(self) -> None:
        self._connected = True

    def disconnect(self) -> None:
        self._connected = False

    def _checkout(self) -> MemoryAdapter:
        if not self._connected:
            self.connect()
        return self

    def _checkin(self, conn: Any) -> None:
        pass

    def _table(self, model: Any) -> list[Row]:
        try:
            return self._tables[model.storage_name]
        except KeyError:
            raise PersistenceError(
                f"No storage for {model.__name__}; call auto_migrate() first"
            ) from None

    # -- Operations --------------------------------------------------------

    def read(self, conn: Any, query: Any) -> list[Row]:
        with self._lock:
            rows = [row for row in self._table(query.model) if _matches(row, query.conditions)]

        # Stable sorts applied from the least significant key.
        for prop, descending in reversed(query.order):
            rows.sort(
                key=lambda row, field=prop.field: (row.get(field) is None, row.get(field)),
                reverse=descending,
            )

        if query.offset:
            rows = rows[query.offset:]
        if query.limit is not None:
            rows = rows[: query.limit]
        return [{prop.field: copy.copy(row.get(prop.field)) for prop in query.fields} for row in rows]

    def create(self, conn: Any, model: Any, values: Mapping[Any, Any]) -> Any:
        generated = None
        row = {prop.field: None for prop in model.properties}
        with self._lock:
            table = self._table(model)
            for prop, value in values.items():
                row[prop.field] = value
            serial = next((prop for prop in model.properties if prop.serial), None)
            if serial is not None:
                last = self._serials[model.storage_name]
                if row[serial.field] is None:
                    row[serial.field] = last + 1
                # Explicit serial values move the sequence forward.
                self._serials[model.storage_name] = max(last, row[serial.field])
                generated = row[serial.field]
            key = [(prop, row[prop.field]) for prop in model.properties.key]
            if any(_matches(existing, key) for existing in table):
                raise PersistenceError(
                    f"Duplicate key for {model.__name__}: {tuple(value for _, value in key)!r}"
                ).with_context(model=model.__name__, operation="create")
            table.append(row)
        return generated

    def update(self, conn: Any, model: Any, key: Mapping[Any, Any], values: Mapping[Any, Any]) -> int:
        count = 0
        with self._lock:
            for row in self._table(model):
                if _matches(row, key.items()):
                    for prop, value in values.items():
                        row[prop.field] = value
                    count += 1
        return count

    def delete(self, conn: Any, model: Any, conditions: Mapping[Any, Any]) -> int:
        with self._lock:
            table = self._table(model)
            kept = [row for row in table if not _matches(row, conditions.items())]
            count = len(table) - len(kept)
            table[:] = kept
        return count

    def create_model_storage(self, conn: Any, model: Any) -> None:
        with self._lock:
            self._tables.setdefault(model.storage_name, [])
            self._serials.setdefault(model.storage_name, 0)

    def destroy_model_storage(self, conn: Any, model: Any) -> None:
        with self._lock:
            self._tables.pop(model.storage_name, None)
            self._serials.pop(model.storage_name, None)


__all__ = [
    "MemoryAdapter",
]
