"""Identity map: at most one live resource per (model, key) within a repository scope.

This is a correctness mechanism rather than a cache.  Entries hold strong
references and are only replaced or removed explicitly (reload, destroy,
``clear``); there is no size bound and no expiry.  One map belongs to one
:class:`~finder.model.repository.Repository` scope and dies with it.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterator
from typing import Any

Key = tuple[Hashable, ...]


class IdentityMap:
    def __init__(self) -> None:
        self._entries: dict[type, dict[Key, Any]] = {}

    def get(self, model: type, key: Key) -> Any | None:
        """The canonical instance for *key*, or ``None`` when absent."""
        return self._entries.get(model, {}).get(key)

    def put(self, model: type, key: Key, instance: Any) -> None:
        """Register *instance* as the canonical one for *key*, replacing any previous entry."""
        self._entries.setdefault(model, {})[key] = instance

    def has(self, model: type, key: Key) -> bool:
        return key in self._entries.get(model, {})

    def remove(self, model: type, key: Key) -> None:
        """Drop the entry for *key*; a missing entry is not an error."""
        self._entries.get(model, {}).pop(key, None)

    def clear(self, model: type | None = None) -> None:
        if model is None:
            self._entries.clear()
        else:
            self._entries.pop(model, None)

    def keys(self, model: type) -> Iterator[Key]:
        return iter(list(self._entries.get(model, {})))

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._entries.values())

    def __repr__(self) -> str:
        counts = {model.__name__: len(entries) for model, entries in self._entries.items()}
        return f"IdentityMap({counts!r})"


__all__ = [
    "IdentityMap",
    "Key",
]
