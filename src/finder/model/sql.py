"""Raw SQL finders.

``Model.find_by_sql`` accepts:

- an SQL string: ``"SELECT * FROM milkshakes LIMIT 1"``
- a list or tuple of the SQL string and its bind values, matched to
  ``?`` placeholders in order: ``["SELECT ... WHERE id = ?", 1]``
- a :class:`~finder.model.query.Query` for the same model.  A raw query is
  re-run; a structured one is compiled to SQL by the repository's adapter.

plus the options ``repository``, ``reload`` and ``properties`` (alias
``fields``).  Options given as keywords override a passed Query's own.

Every argument is validated before the store is touched.  The answer is
always a :class:`~finder.model.collection.Collection`, empty when nothing
matched.  Store errors (malformed SQL and the like) propagate as the
driver raised them.
"""

from __future__ import annotations

import dataclasses
from typing import Any

from finder.core.errors import QueryArgumentError, UnsupportedQueryError
from finder.model.collection import Collection
from finder.model.materializer import materialize
from finder.model.query import Query, QueryKind, Selector
from finder.model.repository import default_repository_name, repository

RAW_OPTION_NAMES = frozenset({"repository", "reload", "properties", "fields"})

_ACCEPTED = "an SQL string, [sql, *bind_values] or a Query"


def build_sql_query(model: type, query: Any, **options: Any) -> Query:
    """Validate a ``find_by_sql`` argument and options into a Query."""
    unknown = set(options) - RAW_OPTION_NAMES
    if unknown:
        raise QueryArgumentError(f"find_by_sql does not accept option(s): {', '.join(sorted(unknown))}")

    match query:
        case None:
            raise QueryArgumentError(f"find_by_sql requires a query: {_ACCEPTED}").with_context(
                model=model.__name__, operation="find_by_sql"
            )
        case Query():
            if query.model is not model:
                raise QueryArgumentError(
                    f"find_by_sql on {model.__name__} got a query for {query.model.__name__}"
                )
            return query.merge(**options)
        case Selector():
            raise QueryArgumentError(
                f"find_by_sql expects {_ACCEPTED}, got the selector {query.value!r}"
            )
        case str():
            sql, binds = query, ()
        case list() | tuple():
            if not query or not isinstance(query[0], str):
                raise QueryArgumentError(
                    f"find_by_sql expects [sql, *bind_values] with the SQL string first, got {query!r}"
                )
            sql, binds = query[0], tuple(query[1:])
        case _:
            raise QueryArgumentError(f"find_by_sql expects {_ACCEPTED}, got {type(query).__name__}")

    if not sql.strip():
        raise QueryArgumentError("find_by_sql requires a query: the SQL string is empty")
    if sql.strip().lower() in {selector.value for selector in Selector}:
        raise QueryArgumentError(f"find_by_sql expects {_ACCEPTED}, got the selector {sql!r}")

    options.setdefault("repository", default_repository_name())
    return Query.build(model, QueryKind.RAW_SQL, Selector.ALL, sql=sql, bind_values=binds, **options)


def find_by_sql(model: type, query: Any, **options: Any) -> Collection:
    """Resolve ``Model.find_by_sql(...)``."""
    built = build_sql_query(model, query, **options)

    with repository(built.repository) as scope:
        if not built.is_raw:
            compile_select = getattr(scope.adapter, "compile_select", None)
            if compile_select is None:
                raise UnsupportedQueryError(
                    f"{type(scope.adapter).__name__} cannot compile queries to SQL"
                ).with_context(model=model.__name__, repository=scope.name, operation="find_by_sql")
            effective = built.reverse() if built.selector is Selector.LAST else built
            sql, binds = compile_select(effective)
            built = dataclasses.replace(built, kind=QueryKind.RAW_SQL, sql=sql, bind_values=tuple(binds))

        rows = scope.select(built.sql, built.bind_values)
        return Collection(built, scope, materialize(scope, built, rows))


__all__ = [
    "RAW_OPTION_NAMES",
    "build_sql_query",
    "find_by_sql",
]
