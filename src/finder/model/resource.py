"""Resource base class.

Manifesto:
    A model is a plain class declaring :class:`~finder.model.properties.Property`
    attributes.  Subclassing :class:`Resource` collects them into
    ``Model.properties``, derives the storage name, and wires every finder
    onto the class: ``find``, ``find_by_sql``, ``find_or_create``, the
    ``first``/``last``/``all``/``get`` shortcuts and the dynamic
    ``find_by_<attr>``/``find_all_by_<attr>`` family.

Features:
    - Properties collected in declaration order, inherited along the MRO
    - ``__storage_name__`` overrides the derived table name
      (``GreenSmoothie`` -> ``green_smoothies``)
    - Per-property loaded state; reading an unloaded property of a
      persisted resource fetches that one property
    - ``save()``/``create()``/``destroy()``/``destroy_all()`` against the
      current repository scope
    - Equality by model and key; unsaved resources compare by identity
      and are unhashable

Examples:
    >>> class Milkshake(Resource):
    ...     id = Property(Serial)
    ...     name = Property(String, field="ml_name")
    ...     contains_lactose = Property(Boolean, field="bl_lactose")
    >>> Milkshake.storage_name
    'milkshakes'
    >>> Milkshake.properties["contains_lactose"].field
    'bl_lactose'

Tags:
    finder-core, model, resource, dynamic-finders, lazy-loading
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, ClassVar

from finder.core.errors import PersistenceError, UnknownPropertyError, ValidationError
from finder.core.logging import get_logger
from finder.model import finders, sql
from finder.model.collection import Collection
from finder.model.materializer import row_values
from finder.model.properties import Property, PropertySet
from finder.model.query import Query, QueryKind, Selector
from finder.model.repository import default_repository_name, repository

logger = get_logger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def storage_name_for(class_name: str) -> str:
    """Default storage name: snake_case, pluralized."""
    snake = _CAMEL_BOUNDARY.sub("_", class_name).lower()
    if re.search(r"[^aeiou]y$", snake):
        return snake[:-1] + "ies"
    if snake.endswith(("s", "x", "z", "ch", "sh")):
        return snake + "es"
    return snake + "s"


class ResourceMeta(type):
    """Resolves ``find_by_*``/``find_all_by_*`` class attributes on demand."""

    def __getattr__(cls, name: str) -> Any:
        if name.startswith((finders.FIND_BY, finders.FIND_ALL_BY)) and "properties" in cls.__dict__:
            return finders.dynamic_finder(cls, name)
        raise AttributeError(f"type object {cls.__name__!r} has no attribute {name!r}")


class Resource(metaclass=ResourceMeta):
    """Base class for persisted models."""

    properties: ClassVar[PropertySet] = PropertySet()
    storage_name: ClassVar[str] = ""

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        collected: dict[str, Property] = {}
        for klass in reversed(cls.__mro__):
            for name, value in vars(klass).items():
                if isinstance(value, Property):
                    collected[name] = value
        cls.properties = PropertySet(collected.values())
        cls.storage_name = cls.__dict__.get("__storage_name__") or storage_name_for(cls.__name__)

    def __init__(self, **attributes: Any) -> None:
        self._init_state()
        for name, value in attributes.items():
            self._property(name).set(self, value)

    def _init_state(self) -> None:
        self._attributes: dict[str, Any] = {}
        self._dirty: set[str] = set()
        self._repository_name: str | None = None
        self._persisted = False
        self._destroyed = False

    @classmethod
    def _from_store(cls, repository_name: str) -> Resource:
        resource = cls.__new__(cls)
        resource._init_state()
        resource._repository_name = repository_name
        resource._persisted = True
        return resource

    @classmethod
    def _property(cls, name: str | Property) -> Property:
        if isinstance(name, Property):
            name = name.name
        prop = cls.properties.get(name)
        if prop is None:
            raise UnknownPropertyError(cls.__name__, name)
        return prop

    # -- Finders -----------------------------------------------------------

    @classmethod
    def find(cls, *args: Any, **kwargs: Any) -> Any:
        """Resolve a selector (``"all"``, ``"first"``, ``"last"``) or a key value."""
        return finders.find(cls, *args, **kwargs)

    @classmethod
    def find_by_sql(cls, query: Any, **options: Any) -> Collection:
        return sql.find_by_sql(cls, query, **options)

    @classmethod
    def find_or_create(cls, conditions: Mapping[Any, Any], attributes: Mapping[Any, Any] | None = None, **options: Any) -> Resource:
        return finders.find_or_create(cls, conditions, attributes, **options)

    @classmethod
    def all(cls, **kwargs: Any) -> Collection:
        return finders.find(cls, Selector.ALL, **kwargs)

    @classmethod
    def first(cls, **kwargs: Any) -> Resource | None:
        return finders.find(cls, Selector.FIRST, **kwargs)

    @classmethod
    def last(cls, **kwargs: Any) -> Resource | None:
        return finders.find(cls, Selector.LAST, **kwargs)

    @classmethod
    def get(cls, *key: Any, **options: Any) -> Resource | None:
        conditions, options = finders.split_options(options)
        return finders.resolve(finders.key_query(cls, key, conditions, options))

    # -- Lifecycle ---------------------------------------------------------

    @classmethod
    def create(cls, attributes: Mapping[Any, Any] | None = None, **kwargs: Any) -> Resource:
        values = {(name.name if isinstance(name, Property) else name): value for name, value in (attributes or {}).items()}
        values.update(kwargs)
        resource = cls(**values)
        resource.save()
        return resource

    @classmethod
    def destroy_all(cls, *, repository: str | None = None) -> int:
        """Delete every stored row of this model; returns the row count."""
        with _open_scope(repository) as scope:
            count = scope.delete(cls, {})
            scope.identity_map.clear(cls)
        return count

    def save(self) -> bool:
        if self._destroyed:
            raise PersistenceError(f"Cannot save a destroyed {type(self).__name__}").with_context(
                model=type(self).__name__, operation="save"
            )
        model = type(self)
        with _open_scope(self._repository_name) as scope:
            if not self._persisted:
                unset = [
                    prop.name
                    for prop in model.properties.key
                    if not prop.serial and self._attributes.get(prop.name) is None
                ]
                if unset:
                    raise PersistenceError(
                        f"Cannot save {model.__name__} without a value for key {', '.join(unset)}"
                    ).with_context(model=model.__name__, operation="save")
                values: dict[Property, Any] = {}
                for prop in model.properties:
                    if prop.name not in self._attributes and not prop.serial:
                        self._attributes[prop.name] = prop.type.load(prop.default)
                    if prop.name in self._attributes:
                        values[prop] = self._attributes[prop.name]
                generated = scope.create(model, values)
                for prop in model.properties:
                    if prop.serial and self._attributes.get(prop.name) is None:
                        self._attributes[prop.name] = prop.type.load(generated)
                self._persisted = True
                self._repository_name = scope.name
                scope.identity_map.put(model, self.key, self)
            elif self._dirty:
                scope.update(
                    model,
                    self._key_conditions(),
                    {prop: self._attributes[prop.name] for prop in model.properties if prop.name in self._dirty},
                )
        self._dirty.clear()
        return True

    def destroy(self) -> bool:
        if not self._persisted:
            return False
        model = type(self)
        with _open_scope(self._repository_name) as scope:
            scope.delete(model, self._key_conditions())
            scope.identity_map.remove(model, self.key)
        self._persisted = False
        self._destroyed = True
        return True

    # -- Attribute state ---------------------------------------------------

    @property
    def key(self) -> tuple[Any, ...] | None:
        """Key values in key-property order, or ``None`` while any is unset."""
        key = tuple(self._attributes.get(prop.name) for prop in type(self).properties.key)
        if not key or any(part is None for part in key):
            return None
        return key

    @property
    def persisted(self) -> bool:
        return self._persisted

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def repository_name(self) -> str | None:
        return self._repository_name

    def attribute_loaded(self, name: str | Property) -> bool:
        return self._property(name).loaded(self)

    def attributes(self) -> dict[str, Any]:
        """Loaded attribute values by property name."""
        return {prop.name: self._attributes[prop.name] for prop in type(self).properties if prop.name in self._attributes}

    def _key_conditions(self) -> dict[Property, Any]:
        return {prop: self._attributes.get(prop.name) for prop in type(self).properties.key}

    def _read_attribute(self, prop: Property) -> Any:
        if prop.name in self._attributes:
            return self._attributes[prop.name]
        if self._persisted:
            self._lazy_load(prop)
            return self._attributes[prop.name]
        return prop.default

    def _write_attribute(self, prop: Property, value: Any) -> None:
        try:
            value = prop.type.load(value)
        except (TypeError, ValueError, ArithmeticError) as e:
            raise ValidationError(
                f"{type(self).__name__}.{prop.name} expects {prop.type.value} values, got {value!r}", cause=e
            ).with_context(model=type(self).__name__, property=prop.name) from e
        if prop.key and self._persisted and self._attributes.get(prop.name) != value:
            raise PersistenceError(f"Cannot change the key of a saved {type(self).__name__}")
        self._attributes[prop.name] = value
        self._dirty.add(prop.name)

    def _load(self, values: Mapping[Property, Any]) -> None:
        for prop, value in values.items():
            self._attributes[prop.name] = value
            self._dirty.discard(prop.name)

    def _lazy_load(self, prop: Property) -> None:
        model = type(self)
        with _open_scope(self._repository_name) as scope:
            query = Query.build(
                model,
                QueryKind.PRIMARY_KEY,
                Selector.FIRST,
                self._key_conditions(),
                repository=scope.name,
                properties=[prop],
            )
            rows = scope.read(query)
        fields = PropertySet([prop])
        self._load(row_values(fields, rows[0]) if rows else {prop: None})
        logger.debug("resource_lazy_loaded", model=model.__name__, key=self.key, property=prop.name)

    # -- Identity ----------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Resource):
            return NotImplemented
        if self is other:
            return True
        key = self.key
        return type(self) is type(other) and key is not None and key == other.key

    def __hash__(self) -> int:
        # The key is only fixed once saved.
        if not (self._persisted or self._destroyed):
            raise TypeError(f"unsaved {type(self).__name__} instances are unhashable")
        return hash((type(self), self.key))

    def __repr__(self) -> str:
        loaded = " ".join(f"{name}={value!r}" for name, value in self.attributes().items())
        return f"<{type(self).__name__} {loaded}>" if loaded else f"<{type(self).__name__}>"


def _open_scope(name: str | None):
    return repository(name or default_repository_name())


__all__ = [
    "Resource",
    "ResourceMeta",
    "storage_name_for",
]
