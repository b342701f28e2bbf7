"""Store adapter registry and URL factory.

Manifesto:
    Consumers should never hard-code adapter class names.  The registry
    maps ``DatabaseType`` strings to adapter classes, ``get_adapter()``
    creates a configured instance from keyword arguments, and
    ``adapter_from_url()`` turns a repository URL into an adapter.

Features:
    - ``AdapterRegistry`` singleton with pre-registered defaults
    - ``register()`` for custom / third-party adapters
    - ``get_adapter()`` factory: type + kwargs -> adapter
    - ``adapter_from_url()``: ``sqlite:///…``, ``postgresql://…``,
      ``mysql://…``, ``memory://``, ``dialect+driver://…`` or a bare path

Tags:
    finder-core, database, registry, factory, singleton

Doc-Types:
    api-reference
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from finder.core.errors import ConfigError

from .base import AbstractAdapter
from .engine import SQLAlchemyAdapter
from .memory import MemoryAdapter
from .mysql import MySQLAdapter
from .postgresql import PostgreSQLAdapter
from .sqlite import SQLiteAdapter
from .types import DatabaseType


class AdapterRegistry:
    """
    Registry for store adapter factories.

    Pre-registered adapters:
    - ``sqlite``: :class:`SQLiteAdapter`
    - ``postgresql`` / ``postgres``: :class:`PostgreSQLAdapter`
    - ``mysql`` / ``mariadb``: :class:`MySQLAdapter`
    - ``sqlalchemy``: :class:`SQLAlchemyAdapter`
    - ``memory``: :class:`MemoryAdapter`
    """

    def __init__(self):
        self._factories: dict[str, type[AbstractAdapter]] = {}
        self._register_defaults()

    def _register_defaults(self) -> None:
        self._factories["sqlite"] = SQLiteAdapter
        self._factories["postgresql"] = PostgreSQLAdapter
        self._factories["postgres"] = PostgreSQLAdapter  # Alias
        self._factories["mysql"] = MySQLAdapter
        self._factories["mariadb"] = MySQLAdapter  # Alias
        self._factories["sqlalchemy"] = SQLAlchemyAdapter
        self._factories["memory"] = MemoryAdapter

    def register(self, name: str, adapter_class: type[AbstractAdapter]) -> None:
        """Register an adapter factory."""
        self._factories[name.lower()] = adapter_class

    def create(self, name: str, *args: Any, **kwargs: Any) -> AbstractAdapter:
        """Create an adapter by name."""
        name = name.lower()
        if name not in self._factories:
            raise ConfigError(f"Unknown database adapter: {name}")
        return self._factories[name](*args, **kwargs)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._factories

    def list_adapters(self) -> list[str]:
        """List registered adapter names."""
        return sorted(self._factories.keys())


# Global registry
adapter_registry = AdapterRegistry()


def get_adapter(
    db_type: DatabaseType | str,
    **kwargs: Any,
) -> AbstractAdapter:
    """
    Get a store adapter by type.

    Usage:
        adapter = get_adapter(DatabaseType.SQLITE, path="data.db")
        adapter = get_adapter("postgresql", host="localhost", database="smoothies")
    """
    if isinstance(db_type, DatabaseType):
        name = db_type.value
    else:
        name = db_type

    return adapter_registry.create(name, **kwargs)


def _server_kwargs(url: str) -> dict[str, Any]:
    try:
        parsed = make_url(url)
    except ArgumentError as e:
        raise ConfigError(f"Malformed repository URL {url!r}: {e}", cause=e) from e
    kwargs: dict[str, Any] = {
        "host": parsed.host or "localhost",
        "database": parsed.database or "",
        "username": parsed.username,
        "password": parsed.password,
    }
    if parsed.port:
        kwargs["port"] = parsed.port
    return kwargs


def adapter_from_url(url: str | None, **kwargs: Any) -> AbstractAdapter:
    """Create an adapter for a repository URL through :data:`adapter_registry`.

    ``None``, ``""`` and ``":memory:"`` mean an in-memory SQLite
    database; a string without ``://`` is a SQLite file path.  Built-in
    schemes get their arguments parsed from the URL; any other registered
    scheme is created with the URL itself.

    Raises:
        ConfigError: The URL scheme is not registered.
    """
    if url is None or url in ("", ":memory:"):
        return adapter_registry.create("sqlite", ":memory:", **kwargs)

    if "://" not in url:
        return adapter_registry.create("sqlite", url, **kwargs)

    scheme, rest = url.split("://", 1)
    scheme = scheme.lower()

    if "+" in scheme:
        return adapter_registry.create("sqlalchemy", url, **kwargs)

    match scheme:
        case "sqlite":
            path = rest[1:] if rest.startswith("/") else rest
            return adapter_registry.create(scheme, path or ":memory:", **kwargs)
        case "memory":
            return adapter_registry.create(scheme, rest or "memory")
        case "postgresql" | "postgres" | "mysql" | "mariadb":
            return adapter_registry.create(scheme, **_server_kwargs(url), **kwargs)
        case _ if scheme in adapter_registry:
            return adapter_registry.create(scheme, url, **kwargs)
        case _:
            raise ConfigError(f"Unknown repository URL scheme {scheme!r} in {url!r}")


__all__ = [
    "AdapterRegistry",
    "adapter_registry",
    "adapter_from_url",
    "get_adapter",
]
