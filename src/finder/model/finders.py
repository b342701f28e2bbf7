"""Finder dispatch.

Turns finder calls into :class:`~finder.model.query.Query` objects and
resolves them against a repository scope.

Call shapes::

    Model.find("all")                     Collection
    Model.find("first" | "last")          resource or None
    Model.find(3)                         resource or None (key lookup)
    Model.find()                          QueryArgumentError
    Model.find_by_name("Banana")          resource or None
    Model.find_all_by_name("Banana")      Collection
    Model.find_by_name_and_size(x, y)     conjunction of equalities
    Model.find_by_colour("red")           UnknownFinderError (AttributeError)
    Model.find_or_create({"name": "x"})   existing match, else a created resource

Keyword arguments other than the query options (``repository``,
``reload``, ``properties``/``fields``, ``order``, ``limit``, ``offset``)
are equality conditions.

Dynamic finder names are parsed against the model's property set at call
time.  A name matching a whole property wins over a split at ``_and_``,
so a property called ``salt_and_pepper`` is still findable.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from finder.core.errors import QueryArgumentError, UnknownFinderError
from finder.core.logging import get_logger
from finder.model.collection import Collection
from finder.model.materializer import materialize
from finder.model.properties import Property, PropertySet
from finder.model.query import OPTION_NAMES, Query, QueryKind, Selector
from finder.model.repository import Repository, default_repository_name, repository

logger = get_logger(__name__)

FIND_ALL_BY = "find_all_by_"
FIND_BY = "find_by_"

_CONJUNCTION = "_and_"


def split_options(kwargs: Mapping[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
    """Separate query options from equality conditions."""
    conditions: dict[str, Any] = {}
    options: dict[str, Any] = {}
    for name, value in kwargs.items():
        (options if name in OPTION_NAMES else conditions)[name] = value
    options.setdefault("repository", default_repository_name())
    return conditions, options


def _as_selector(value: Any) -> Selector | None:
    if isinstance(value, Selector):
        return value
    if isinstance(value, str):
        try:
            return Selector(value)
        except ValueError:
            return None
    return None


# =========================================================================
# Resolution
# =========================================================================


def load(scope: Repository, query: Query) -> Any:
    """Run a structured *query* in *scope*; a Collection for ``all``, else one resource or None."""
    effective = query.reverse() if query.selector is Selector.LAST else query
    resources = materialize(scope, query, scope.read(effective))
    if query.selector is Selector.ALL:
        return Collection(query, scope, resources)
    return resources[0] if resources else None


def resolve(query: Query) -> Any:
    """Open (or reuse) the query's repository scope and :func:`load` the query."""
    with repository(query.repository) as scope:
        if query.kind is QueryKind.PRIMARY_KEY and not query.reload:
            key = tuple(value for _, value in query.conditions)
            cached = scope.identity_map.get(query.model, key)
            if cached is not None:
                logger.debug("identity_map_hit", model=query.model.__name__, key=key, repository=scope.name)
                return cached
        return load(scope, query)


def find(model: type, *args: Any, **kwargs: Any) -> Any:
    """Resolve ``Model.find(...)``.

    Raises:
        QueryArgumentError: No selector was given, or a key lookup got
            the wrong number of key values.
    """
    if not args or args[0] is None:
        raise QueryArgumentError(
            f"{model.__name__}.find requires a selector: 'all', 'first', 'last' or a key value"
        ).with_context(model=model.__name__, operation="find")

    conditions, options = split_options(kwargs)
    selector = _as_selector(args[0])

    if selector is not None:
        if len(args) > 1:
            raise QueryArgumentError(
                f"{model.__name__}.find({selector.value!r}) takes conditions as keywords, "
                f"got {len(args) - 1} extra positional argument(s)"
            )
        kind = QueryKind.ATTRIBUTE_MATCH if conditions else QueryKind.SYMBOLIC
        return resolve(Query.build(model, kind, selector, conditions, **options))

    return resolve(key_query(model, args, conditions, options))


def key_query(model: type, key: tuple[Any, ...], conditions: Mapping[str, Any], options: Mapping[str, Any]) -> Query:
    """A first-row query matching *key* on the model's key properties."""
    if conditions:
        raise QueryArgumentError(
            f"{model.__name__} key lookup does not take conditions: {', '.join(sorted(conditions))}"
        )
    key_properties: PropertySet = model.properties.key
    if len(key) == 1 and isinstance(key[0], tuple):
        key = key[0]
    for part in key:
        if part is None or isinstance(part, (list, dict, set, frozenset)):
            raise QueryArgumentError(f"{model.__name__} key values must be scalars, got {part!r}")
    if len(key) != len(key_properties):
        raise QueryArgumentError(
            f"{model.__name__} has {len(key_properties)} key propert"
            f"{'y' if len(key_properties) == 1 else 'ies'}, got {len(key)} value(s)"
        )
    try:
        key_conditions = {prop: prop.type.load(value) for prop, value in zip(key_properties, key, strict=True)}
    except (TypeError, ValueError, ArithmeticError) as e:
        raise QueryArgumentError(f"{model.__name__} key {key!r} does not match the key types: {e}") from e
    return Query.build(model, QueryKind.PRIMARY_KEY, Selector.FIRST, key_conditions, **options)


# =========================================================================
# Dynamic finders
# =========================================================================


def _split_attributes(properties: PropertySet, text: str) -> list[Property] | None:
    prop = properties.get(text)
    if prop is not None:
        return [prop]
    start = text.find(_CONJUNCTION)
    while start > 0:
        head = properties.get(text[:start])
        if head is not None:
            tail = _split_attributes(properties, text[start + len(_CONJUNCTION):])
            if tail is not None:
                return [head, *tail]
        start = text.find(_CONJUNCTION, start + 1)
    return None


def parse_finder_name(model: type, method: str) -> tuple[Selector, list[Property]] | None:
    """``(selector, properties)`` for a dynamic finder name.

    Returns ``None`` when *method* is not shaped like a finder at all.

    Raises:
        UnknownFinderError: The name is finder-shaped but references an
            attribute the model does not define.
    """
    for prefix, selector in ((FIND_ALL_BY, Selector.ALL), (FIND_BY, Selector.FIRST)):
        if method.startswith(prefix):
            properties = _split_attributes(model.properties, method[len(prefix):])
            if properties is None:
                raise UnknownFinderError(model.__name__, method)
            return selector, properties
    return None


def dynamic_finder(model: type, method: str) -> Callable[..., Any]:
    """A bound finder for *method*, e.g. ``find_all_by_name``."""
    parsed = parse_finder_name(model, method)
    if parsed is None:
        raise UnknownFinderError(model.__name__, method)
    selector, properties = parsed

    def finder(*values: Any, **kwargs: Any) -> Any:
        if len(values) != len(properties):
            raise QueryArgumentError(
                f"{model.__name__}.{method} expects {len(properties)} value(s), got {len(values)}"
            ).with_context(model=model.__name__, operation=method)
        conditions, options = split_options(kwargs)
        conditions.update({prop.name: value for prop, value in zip(properties, values, strict=True)})
        return resolve(Query.build(model, QueryKind.ATTRIBUTE_MATCH, selector, conditions, **options))

    finder.__name__ = method
    finder.__qualname__ = f"{model.__name__}.{method}"
    finder.__doc__ = f"Find {'every' if selector is Selector.ALL else 'the first'} {model.__name__} by " + ", ".join(
        prop.name for prop in properties
    )
    return finder


# =========================================================================
# find_or_create
# =========================================================================


def find_or_create(model: type, conditions: Mapping[Any, Any], attributes: Mapping[Any, Any] | None = None, **options: Any) -> Any:
    """First resource matching *conditions*, or a new one created from ``{**conditions, **attributes}``.

    The lookup and the insert are separate statements; two concurrent
    callers can both miss and both create.
    """
    if not isinstance(conditions, Mapping):
        raise QueryArgumentError(
            f"find_or_create expects a mapping of conditions, got {type(conditions).__name__}"
        ).with_context(model=model.__name__, operation="find_or_create")
    if attributes is not None and not isinstance(attributes, Mapping):
        raise QueryArgumentError(
            f"find_or_create expects a mapping of attributes, got {type(attributes).__name__}"
        ).with_context(model=model.__name__, operation="find_or_create")

    unknown = set(options) - {"repository"}
    if unknown:
        raise QueryArgumentError(f"find_or_create does not accept option(s): {', '.join(sorted(unknown))}")
    options.setdefault("repository", default_repository_name())

    query = Query.build(model, QueryKind.ATTRIBUTE_MATCH, Selector.FIRST, conditions, **options)
    with repository(query.repository) as scope:
        found = load(scope, query)
        if found is not None:
            return found

        values = {prop.name: value for prop, value in query.conditions}
        for name, value in (attributes or {}).items():
            values[name.name if isinstance(name, Property) else name] = value
        created = model.create(values)
        logger.info("find_or_create_created", model=model.__name__, repository=scope.name, key=created.key)
        return created


__all__ = [
    "FIND_ALL_BY",
    "FIND_BY",
    "dynamic_finder",
    "find",
    "find_or_create",
    "key_query",
    "load",
    "parse_finder_name",
    "resolve",
    "split_options",
]
