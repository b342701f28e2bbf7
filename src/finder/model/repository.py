"""Named repositories and repository scopes.

Manifesto:
    A *repository* is a name bound to a store adapter (``"default"``,
    ``"alternate"``).  A *repository scope* is one use of it: one
    checked-out connection and one identity map, opened on entry and
    released on exit even when the block raises.  Every finder resolves
    against an explicit :class:`Repository` scope object; the scope stack
    held in a ``ContextVar`` only decides which scope an un-scoped call
    should open or reuse.

Architecture::

    setup("default", "sqlite:///smoothies.db")     name -> adapter registry
                │
    with repository("default") as repo:            Repository scope
        │   repo.adapter        AbstractAdapter
        │   repo.connection     adapter.acquire()  (released on exit)
        │   repo.identity_map   IdentityMap         (dies with the scope)
        │
        ├── GreenSmoothie.find("first")            reuses repo
        └── with repository("default"):            same name: reuses repo

    GreenSmoothie.find("first")                     no open scope: a fresh
                                                    scope for this call only

Examples:
    >>> adapter = setup("default", "sqlite://")
    >>> with repository() as repo:
    ...     GreenSmoothie.find("first") is GreenSmoothie.find("first")
    True

Tags:
    finder-core, repository, identity-map, scope, context-manager
"""

from __future__ import annotations

import threading
from collections.abc import Iterator, Mapping, Sequence
from contextlib import ExitStack, contextmanager
from contextvars import ContextVar
from typing import Any

from finder.core.adapters import AbstractAdapter, Row, adapter_from_url
from finder.core.errors import ConfigError, FinderError, PersistenceError, RepositoryNotFoundError
from finder.core.logging import get_logger
from finder.core.settings import FinderSettings, get_settings
from finder.model.identity_map import IdentityMap
from finder.model.query import DEFAULT_REPOSITORY, Query

logger = get_logger(__name__)

_adapters: dict[str, AbstractAdapter] = {}
_adapters_lock = threading.RLock()

_scopes: ContextVar[tuple[Repository, ...]] = ContextVar("finder_repository_scopes", default=())


class Repository:
    """One repository scope: a named adapter, a connection and an identity map."""

    def __init__(self, name: str, adapter: AbstractAdapter) -> None:
        self.name = name
        self.adapter = adapter
        self.identity_map = IdentityMap()
        self._stack: ExitStack | None = None
        self._connection: Any = None

    @property
    def is_open(self) -> bool:
        return self._stack is not None

    @property
    def connection(self) -> Any:
        if self._stack is None:
            raise PersistenceError(f"Repository scope {self.name!r} is not open")
        return self._connection

    def open(self) -> Repository:
        if self._stack is not None:
            return self
        stack = ExitStack()
        try:
            self._connection = stack.enter_context(self.adapter.acquire())
        except FinderError as e:
            logger.warning("repository_scope_open_failed", repository=self.name, retryable=e.retryable, error=e.to_dict())
            raise
        self._stack = stack
        logger.debug("repository_scope_opened", repository=self.name, adapter=type(self.adapter).__name__)
        return self

    def close(self) -> None:
        if self._stack is None:
            return
        stack, self._stack = self._stack, None
        try:
            stack.close()
        finally:
            self._connection = None
            logger.debug("repository_scope_closed", repository=self.name, identity_map_size=len(self.identity_map))

    def __enter__(self) -> Repository:
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # -- Store operations --------------------------------------------------

    def read(self, query: Query) -> list[Row]:
        return self.adapter.read(self.connection, query)

    def select(self, sql: str, binds: Sequence[Any] = ()) -> list[Row]:
        return self.adapter.select(self.connection, sql, binds)

    def create(self, model: type, values: Mapping[Any, Any]) -> Any:
        return self.adapter.create(self.connection, model, values)

    def update(self, model: type, key: Mapping[Any, Any], values: Mapping[Any, Any]) -> int:
        return self.adapter.update(self.connection, model, key, values)

    def delete(self, model: type, conditions: Mapping[Any, Any]) -> int:
        return self.adapter.delete(self.connection, model, conditions)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Repository):
            return self.name == other.name and self.adapter is other.adapter
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self.name, id(self.adapter)))

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"<Repository {self.name!r} {state} {self.adapter!r}>"


# =========================================================================
# Named adapters
# =========================================================================


def setup(name: str, url_or_adapter: str | AbstractAdapter | None = None, **kwargs: Any) -> AbstractAdapter:
    """Bind repository *name* to an adapter or a repository URL.

    Re-running ``setup`` for a name disconnects the adapter it replaces.
    """
    if not isinstance(name, str) or not name:
        raise ConfigError(f"Repository name must be a non-empty string, got {name!r}")
    name = name.lower()
    if isinstance(url_or_adapter, AbstractAdapter):
        adapter = url_or_adapter
    else:
        adapter = adapter_from_url(url_or_adapter, **kwargs)

    with _adapters_lock:
        previous = _adapters.get(name)
        _adapters[name] = adapter
    if previous is not None and previous is not adapter:
        previous.disconnect()
    logger.info("repository_setup", repository=name, adapter=type(adapter).__name__)
    return adapter


def setup_from_settings(settings: FinderSettings | None = None) -> dict[str, AbstractAdapter]:
    """Set up ``default`` and every entry of ``settings.repositories``."""
    settings = settings or get_settings()
    adapters = {DEFAULT_REPOSITORY: setup(DEFAULT_REPOSITORY, settings.default_repository_url, log_sql=settings.log_sql)}
    for name, url in settings.repositories.items():
        adapters[name] = setup(name, url, log_sql=settings.log_sql)
    return adapters


def teardown(name: str | None = None) -> None:
    """Disconnect and forget one repository, or all of them."""
    with _adapters_lock:
        if name is None:
            removed = list(_adapters.values())
            _adapters.clear()
        else:
            adapter = _adapters.pop(name.lower(), None)
            removed = [adapter] if adapter is not None else []
    for adapter in removed:
        adapter.disconnect()


def adapter_for(name: str) -> AbstractAdapter:
    """The adapter bound to *name*.

    ``default`` is set up from settings on first use; any other name must
    have been set up explicitly.
    """
    name = name.lower()
    with _adapters_lock:
        adapter = _adapters.get(name)
        if adapter is None and name == DEFAULT_REPOSITORY:
            settings = get_settings()
            adapter = setup(DEFAULT_REPOSITORY, settings.default_repository_url, log_sql=settings.log_sql)
    if adapter is None:
        raise RepositoryNotFoundError(name)
    return adapter


def repository_names() -> list[str]:
    with _adapters_lock:
        return sorted(_adapters)


# =========================================================================
# Scopes
# =========================================================================


def current_scope(name: str | None = None) -> Repository | None:
    """Innermost open scope, or the innermost one named *name*."""
    for scope in reversed(_scopes.get()):
        if name is None or scope.name == name:
            return scope
    return None


def default_repository_name() -> str:
    """Name of the innermost open scope, else ``"default"``."""
    scope = current_scope()
    return scope.name if scope is not None else DEFAULT_REPOSITORY


@contextmanager
def repository(name: str | None = None) -> Iterator[Repository]:
    """Open a repository scope, or reuse the open one of the same name.

    Without a name the innermost open scope is reused, falling back to
    ``default``.
    """
    if name is None:
        name = default_repository_name()
    elif not isinstance(name, str) or not name:
        raise ConfigError(f"Repository name must be a non-empty string, got {name!r}")
    name = name.lower()

    existing = current_scope(name)
    if existing is not None:
        yield existing
        return

    scope = Repository(name, adapter_for(name))
    token = _scopes.set(_scopes.get() + (scope,))
    try:
        with scope:
            yield scope
    finally:
        _scopes.reset(token)


_open_scope = repository


def auto_migrate(*models: type, repository: str | None = None) -> None:
    """Drop and recreate storage for *models* (destructive)."""
    with _open_scope(repository) as scope:
        for model in models:
            scope.adapter.destroy_model_storage(scope.connection, model)
            scope.adapter.create_model_storage(scope.connection, model)
            scope.identity_map.clear(model)
            logger.info("model_storage_migrated", model=model.__name__, repository=scope.name)


def auto_upgrade(*models: type, repository: str | None = None) -> None:
    """Create storage for *models* where it does not exist yet."""
    with _open_scope(repository) as scope:
        for model in models:
            scope.adapter.create_model_storage(scope.connection, model)


__all__ = [
    "Repository",
    "adapter_for",
    "auto_migrate",
    "auto_upgrade",
    "current_scope",
    "default_repository_name",
    "repository",
    "repository_names",
    "setup",
    "setup_from_settings",
    "teardown",
]
