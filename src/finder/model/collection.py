"""Result collections.

A :class:`Collection` is the ordered, never-``None`` answer to a query
that can match many rows.  It remembers the :class:`~finder.model.query.Query`
that produced it and the repository scope it was loaded in.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from typing import TYPE_CHECKING, Any, overload

if TYPE_CHECKING:
    from finder.model.query import Query
    from finder.model.repository import Repository


class Collection(Sequence):
    """Ordered sequence of resources loaded by one query."""

    def __init__(self, query: Query, repository: Repository, resources: Iterable[Any] = ()) -> None:
        self._query = query
        self._repository = repository
        self._resources = list(resources)

    @property
    def query(self) -> Query:
        return self._query

    @property
    def repository(self) -> Repository:
        return self._repository

    @property
    def model(self) -> type:
        return self._query.model

    @property
    def empty(self) -> bool:
        return not self._resources

    @property
    def first(self) -> Any | None:
        return self._resources[0] if self._resources else None

    @property
    def last(self) -> Any | None:
        return self._resources[-1] if self._resources else None

    @overload
    def __getitem__(self, index: int) -> Any: ...

    @overload
    def __getitem__(self, index: slice) -> list[Any]: ...

    def __getitem__(self, index):
        return self._resources[index]

    def __len__(self) -> int:
        return len(self._resources)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._resources)

    def __contains__(self, item: object) -> bool:
        return any(item == resource for resource in self._resources)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Collection):
            return self._resources == other._resources
        if isinstance(other, list):
            return self._resources == other
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def to_list(self) -> list[Any]:
        return list(self._resources)

    def __repr__(self) -> str:
        return f"<Collection {self.model.__name__} size={len(self)} repository={self._repository.name!r}>"


__all__ = [
    "Collection",
]
