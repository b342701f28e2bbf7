"""Result materialization: rows in, identity-mapped resources out.

For every row the key is extracted first and the scope's identity map
consulted:

- hit, ``reload=False``: the cached instance is returned untouched
- hit, ``reload=True``: the query's properties are overwritten from the row
- miss: a new instance is built from the row and registered

Only the query's properties are written and marked loaded; every other
property stays unloaded until read.

Columns are matched to properties by physical field name (exact first,
then case-insensitively, since PostgreSQL folds unquoted aliases).  A row
that names none of a requested field but has exactly one column per
requested property is read positionally, in property order.  Requested
properties the row does not provide are loaded as ``None``: the requested
property set is authoritative over what the statement selected.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from finder.core.errors import PersistenceError
from finder.core.logging import get_logger
from finder.model.properties import Property, PropertySet

if TYPE_CHECKING:
    from finder.core.adapters import Row
    from finder.model.query import Query
    from finder.model.repository import Repository

logger = get_logger(__name__)


def row_values(fields: PropertySet, row: Row) -> dict[Property, Any]:
    """Typecast values for *fields* out of *row*."""
    lowered: dict[str, Any] | None = None
    missing: list[Property] = []
    raw: dict[Property, Any] = {}

    for prop in fields:
        if prop.field in row:
            raw[prop] = row[prop.field]
            continue
        if lowered is None:
            lowered = {str(column).lower(): value for column, value in row.items()}
        if prop.field.lower() in lowered:
            raw[prop] = lowered[prop.field.lower()]
        else:
            missing.append(prop)

    if missing:
        if not raw and len(row) == len(fields):
            raw = dict(zip(fields, row.values(), strict=True))
        else:
            for prop in missing:
                raw[prop] = None

    return {prop: prop.type.load(raw[prop]) for prop in fields}


def materialize(scope: Repository, query: Query, rows: list[Row]) -> list[Any]:
    """Resources for *rows*, in row order, canonicalized through *scope*'s identity map."""
    model = query.model
    key_properties = model.properties.key
    identity_map = scope.identity_map
    resources = []

    for row in rows:
        values = row_values(query.fields, row)
        key = tuple(values[prop] for prop in key_properties)
        if any(part is None for part in key):
            raise PersistenceError(
                f"Row for {model.__name__} has no value for key "
                f"{', '.join(key_properties.names())}; select the key columns"
            ).with_context(model=model.__name__, repository=scope.name, sql=query.sql)

        resource = identity_map.get(model, key)
        if resource is None:
            resource = model._from_store(scope.name)
            resource._load(values)
            identity_map.put(model, key, resource)
        elif query.reload:
            resource._load(values)
        else:
            logger.debug("identity_map_hit", model=model.__name__, key=key, repository=scope.name)
        resources.append(resource)

    return resources


__all__ = [
    "materialize",
    "row_values",
]
