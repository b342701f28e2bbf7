"""Query descriptors.

A :class:`Query` is the normalized answer to "what should be fetched":
which model, which rows (a selector, key equality, attribute equality or
a literal SQL statement), from which repository, whether identity-mapped
resources are refreshed, and which properties are loaded.

Queries are immutable.  Every option is validated when the query is
built, so a malformed call fails before any store round trip.

Manifesto:
    - **One shape for every finder:** ``find``, dynamic finders and
      ``find_by_sql`` all produce a ``Query``
    - **Validated up front:** unknown options, unknown properties and
      wrong types raise ``QueryArgumentError`` at construction
    - **Reusable:** ``collection.query`` can be handed back to
      ``find_by_sql``; ``merge()`` overrides options without mutation

Examples:
    >>> q = Query.build(GreenSmoothie, QueryKind.ATTRIBUTE_MATCH, Selector.ALL, {"name": "Banana"})
    >>> q.reload
    False
    >>> [p.name for p in q.fields]
    ['id', 'name']
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from finder.core.errors import QueryArgumentError, UnknownPropertyError
from finder.model.properties import Property, PropertySet, normalize_properties

DEFAULT_REPOSITORY = "default"

OPTION_NAMES = frozenset({"repository", "reload", "properties", "fields", "order", "limit", "offset"})


class QueryKind(str, Enum):
    """How the rows of a query are identified."""

    SYMBOLIC = "symbolic"
    PRIMARY_KEY = "primary_key"
    ATTRIBUTE_MATCH = "attribute_match"
    RAW_SQL = "raw_sql"


class Selector(str, Enum):
    """Cardinality of a structured query's answer."""

    ALL = "all"
    FIRST = "first"
    LAST = "last"


@dataclass(frozen=True)
class Query:
    model: type
    kind: QueryKind
    selector: Selector = Selector.ALL
    repository: str = DEFAULT_REPOSITORY
    reload: bool = False
    fields: PropertySet = field(default_factory=PropertySet)
    conditions: tuple[tuple[Property, Any], ...] = ()
    order: tuple[tuple[Property, bool], ...] = ()
    limit: int | None = None
    offset: int = 0
    sql: str | None = None
    bind_values: tuple[Any, ...] = ()

    # -- Construction ------------------------------------------------------

    @classmethod
    def build(
        cls,
        model: type,
        kind: QueryKind,
        selector: Selector | str = Selector.ALL,
        conditions: Mapping[Any, Any] | None = None,
        *,
        sql: str | None = None,
        bind_values: Sequence[Any] = (),
        **options: Any,
    ) -> Query:
        """Validate and normalize a query for *model*.

        ``options`` accepts ``repository``, ``reload``, ``properties``
        (alias ``fields``), ``order``, ``limit`` and ``offset``.
        """
        unknown = set(options) - OPTION_NAMES
        if unknown:
            raise QueryArgumentError(f"unknown query option(s): {', '.join(sorted(unknown))}")
        if "properties" in options and "fields" in options:
            raise QueryArgumentError("give either properties or fields, not both")

        selector = _normalize_selector(selector)
        limit = _normalize_count("limit", options.get("limit"))
        if selector is not Selector.ALL:
            limit = 1

        properties = model.properties
        requested = normalize_properties(
            options.get("properties", options.get("fields")), properties, model=model.__name__
        )
        return cls(
            model=model,
            kind=QueryKind(kind),
            selector=selector,
            repository=_normalize_repository(options.get("repository")),
            reload=_normalize_reload(options.get("reload", False)),
            fields=properties.key.union(requested),
            conditions=_normalize_conditions(model, conditions or {}),
            order=_normalize_order(model, options.get("order")),
            limit=limit,
            offset=_normalize_count("offset", options.get("offset")) or 0,
            sql=sql,
            bind_values=tuple(bind_values),
        )

    def merge(self, **options: Any) -> Query:
        """Copy of this query with *options* applied (same rules as :meth:`build`)."""
        unknown = set(options) - OPTION_NAMES
        if unknown:
            raise QueryArgumentError(f"unknown query option(s): {', '.join(sorted(unknown))}")
        if options.get("properties") is not None and options.get("fields") is not None:
            raise QueryArgumentError("give either properties or fields, not both")

        changes: dict[str, Any] = {}
        if options.get("repository") is not None:
            changes["repository"] = _normalize_repository(options["repository"])
        if options.get("reload") is not None:
            changes["reload"] = _normalize_reload(options["reload"])
        requested = options.get("properties", options.get("fields"))
        if requested is not None:
            properties = self.model.properties
            changes["fields"] = properties.key.union(
                normalize_properties(requested, properties, model=self.model.__name__)
            )
        if options.get("order") is not None:
            changes["order"] = _normalize_order(self.model, options["order"])
        if options.get("limit") is not None:
            changes["limit"] = _normalize_count("limit", options["limit"])
        if options.get("offset") is not None:
            changes["offset"] = _normalize_count("offset", options["offset"])
        return dataclasses.replace(self, **changes)

    def reverse(self) -> Query:
        """Same query with every ordering direction flipped."""
        return dataclasses.replace(self, order=tuple((prop, not desc) for prop, desc in self.order))

    # -- Introspection -----------------------------------------------------

    @property
    def is_raw(self) -> bool:
        return self.kind is QueryKind.RAW_SQL

    def condition_values(self) -> dict[str, Any]:
        """Conditions keyed by logical property name."""
        return {prop.name: value for prop, value in self.conditions}

    def __repr__(self) -> str:
        parts = [f"model={self.model.__name__}", f"kind={self.kind.value}", f"repository={self.repository!r}"]
        if self.is_raw:
            parts.append(f"sql={self.sql!r}")
        else:
            parts.append(f"selector={self.selector.value}")
            if self.conditions:
                parts.append(f"conditions={self.condition_values()!r}")
        parts.append(f"reload={self.reload}")
        return f"Query({', '.join(parts)})"


# =========================================================================
# Normalizers
# =========================================================================


def _normalize_selector(selector: Selector | str) -> Selector:
    try:
        return Selector(selector)
    except ValueError:
        raise QueryArgumentError(f"unknown selector {selector!r}; expected all, first or last") from None


def _normalize_repository(value: Any) -> str:
    if value is None:
        return DEFAULT_REPOSITORY
    name = getattr(value, "name", value)
    if not isinstance(name, str) or not name:
        raise QueryArgumentError(f"repository must be a repository name, got {value!r}")
    return name.lower()


def _normalize_reload(value: Any) -> bool:
    if not isinstance(value, bool):
        raise QueryArgumentError(f"reload must be True or False, got {value!r}")
    return value


def _normalize_count(name: str, value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise QueryArgumentError(f"{name} must be a non-negative integer, got {value!r}")
    return value


def _resolve_property(model: type, item: Any) -> Property:
    properties: PropertySet = model.properties
    if isinstance(item, Property):
        if item not in properties:
            raise UnknownPropertyError(model.__name__, item.name)
        return item
    if isinstance(item, str):
        prop = properties.get(item)
        if prop is None:
            raise UnknownPropertyError(model.__name__, item)
        return prop
    raise QueryArgumentError(f"expected a property name or Property, got {type(item).__name__}")


def _normalize_conditions(model: type, conditions: Mapping[Any, Any]) -> tuple[tuple[Property, Any], ...]:
    if not isinstance(conditions, Mapping):
        raise QueryArgumentError(f"conditions must be a mapping, got {type(conditions).__name__}")
    return tuple((_resolve_property(model, name), value) for name, value in conditions.items())


def _normalize_order(model: type, order: Any) -> tuple[tuple[Property, bool], ...]:
    if order is None:
        return tuple((prop, False) for prop in model.properties.key)
    items = [order] if isinstance(order, (str, Property)) else order
    if not isinstance(items, (list, tuple)) or not items:
        raise QueryArgumentError(f"order must be a property, a name or a non-empty sequence, got {order!r}")

    result = []
    for item in items:
        descending = False
        if isinstance(item, str) and item.startswith("-"):
            descending, item = True, item[1:]
        result.append((_resolve_property(model, item), descending))
    return tuple(result)


__all__ = [
    "DEFAULT_REPOSITORY",
    "OPTION_NAMES",
    "Query",
    "QueryKind",
    "Selector",
]
