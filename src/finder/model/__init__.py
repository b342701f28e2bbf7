"""Domain layer: models, queries, finders and materialization."""

from finder.model.collection import Collection
from finder.model.identity_map import IdentityMap
from finder.model.properties import Property, PropertySet
from finder.model.query import DEFAULT_REPOSITORY, Query, QueryKind, Selector
from finder.model.repository import (
    Repository,
    auto_migrate,
    auto_upgrade,
    repository,
    setup,
    setup_from_settings,
    teardown,
)
from finder.model.resource import Resource
from finder.model.types import (
    Boolean,
    Date,
    DateTime,
    Decimal,
    Float,
    Integer,
    PropertyType,
    Serial,
    String,
    Text,
)

__all__ = [
    "Boolean",
    "Collection",
    "DEFAULT_REPOSITORY",
    "Date",
    "DateTime",
    "Decimal",
    "Float",
    "IdentityMap",
    "Integer",
    "Property",
    "PropertySet",
    "PropertyType",
    "Query",
    "QueryKind",
    "Repository",
    "Resource",
    "Selector",
    "Serial",
    "String",
    "Text",
    "auto_migrate",
    "auto_upgrade",
    "repository",
    "setup",
    "setup_from_settings",
    "teardown",
]
