"""Property descriptors and ordered property sets.

A :class:`Property` is declared on a model class body and doubles as the
Python descriptor for the attribute it names::

    class Milkshake(Resource):
        id = Property(Serial)
        name = Property(String, field="ml_name")
        contains_lactose = Property(Boolean, field="bl_lactose")

``name`` is the logical attribute name, ``field`` the physical column.
Each model's properties are collected, in declaration order, into an
immutable :class:`PropertySet` available as ``Model.properties``.

``normalize_properties`` accepts every shape callers use to restrict
loading (one name, one property, a sequence of either, a whole
``PropertySet``) and returns one canonical ``PropertySet``.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING, Any

from finder.core.errors import QueryArgumentError, UnknownPropertyError
from finder.model.types import PropertyType

if TYPE_CHECKING:
    from finder.model.resource import Resource


class Property:
    """A named, typed field of a model, optionally stored under another column name."""

    def __init__(
        self,
        type: PropertyType = PropertyType.STRING,
        *,
        field: str | None = None,
        key: bool = False,
        default: Any = None,
    ) -> None:
        self.type = PropertyType(type)
        self._field = field
        self.key = key or self.type is PropertyType.SERIAL
        self.default = default
        self.name: str = ""
        self.model: type | None = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name
        self.model = owner

    @property
    def field(self) -> str:
        """Physical column name; defaults to the logical name."""
        return self._field or self.name

    @property
    def serial(self) -> bool:
        return self.type is PropertyType.SERIAL

    # -- Loaded state ------------------------------------------------------

    def loaded(self, resource: Resource) -> bool:
        """Whether *resource* holds a value for this property."""
        return self.name in resource._attributes

    def get(self, resource: Resource) -> Any:
        return resource._read_attribute(self)

    def set(self, resource: Resource, value: Any) -> None:
        resource._write_attribute(self, value)

    # -- Descriptor protocol -----------------------------------------------

    def __get__(self, instance: Resource | None, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return instance._read_attribute(self)

    def __set__(self, instance: Resource, value: Any) -> None:
        instance._write_attribute(self, value)

    def __repr__(self) -> str:
        owner = self.model.__name__ if self.model else "?"
        alias = f" field={self.field!r}" if self._field else ""
        return f"<Property {owner}.{self.name} {self.type.value}{alias}>"


class PropertySet:
    """Ordered, immutable collection of a model's properties.

    Indexable by logical name or position; iterates in declaration order.
    """

    def __init__(self, properties: Iterable[Property] = ()) -> None:
        self._properties: tuple[Property, ...] = tuple(properties)
        self._by_name = {prop.name: prop for prop in self._properties}

    def __iter__(self) -> Iterator[Property]:
        return iter(self._properties)

    def __len__(self) -> int:
        return len(self._properties)

    def __getitem__(self, item: str | int) -> Property:
        if isinstance(item, int):
            return self._properties[item]
        return self._by_name[item]

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Property):
            return self._by_name.get(item.name) is item
        return item in self._by_name

    def __eq__(self, other: object) -> bool:
        if isinstance(other, PropertySet):
            return self._properties == other._properties
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._properties)

    def __repr__(self) -> str:
        return f"PropertySet({list(self.names())!r})"

    def get(self, name: str, default: Any = None) -> Property | None:
        return self._by_name.get(name, default)

    def names(self) -> tuple[str, ...]:
        return tuple(prop.name for prop in self._properties)

    def fields(self) -> tuple[str, ...]:
        return tuple(prop.field for prop in self._properties)

    @property
    def key(self) -> PropertySet:
        """The key properties, in declaration order."""
        return PropertySet(prop for prop in self._properties if prop.key)

    def union(self, other: Iterable[Property]) -> PropertySet:
        """Properties of both sets, keeping this set's order first."""
        merged = list(self._properties)
        merged.extend(prop for prop in other if prop not in merged)
        return PropertySet(merged)

    def to_list(self) -> list[Property]:
        return list(self._properties)


def normalize_properties(value: Any, properties: PropertySet, *, model: str = "model") -> PropertySet:
    """Resolve a ``properties`` option into a subset of *properties*.

    Accepted shapes: ``None`` (every property), a property name, a
    :class:`Property`, a :class:`PropertySet`, or an ordered iterable of
    names and/or properties.  Duplicates are dropped, first occurrence wins.

    Raises:
        UnknownPropertyError: A name or property is not part of *properties*.
        QueryArgumentError: The value has any other shape, or is empty.
    """
    match value:
        case None:
            return properties
        case str() | Property():
            items: list[Any] = [value]
        case PropertySet():
            items = list(value)
        case list() | tuple():
            items = list(value)
        case _:
            raise QueryArgumentError(
                f"properties must be a name, a Property, a PropertySet or a sequence of those, "
                f"got {type(value).__name__}"
            )

    if not items:
        raise QueryArgumentError("properties must name at least one property")

    resolved: list[Property] = []
    for item in items:
        if isinstance(item, Property):
            if item not in properties:
                raise UnknownPropertyError(model, item.name)
            prop = item
        elif isinstance(item, str):
            found = properties.get(item)
            if found is None:
                raise UnknownPropertyError(model, item)
            prop = found
        else:
            raise QueryArgumentError(
                f"properties entries must be names or Property objects, got {type(item).__name__}"
            )
        if prop not in resolved:
            resolved.append(prop)
    return PropertySet(resolved)


__all__ = [
    "Property",
    "PropertySet",
    "normalize_properties",
]
