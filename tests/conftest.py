"""
Shared pytest fixtures for finder-core tests.

This module provides:
- Repository isolation: every test starts with no repositories set up
  and a fresh settings cache
- ``default_repository``: an in-memory SQLite store with all test models migrated
- ``alternate_repository``: a second, independent in-memory SQLite store
- ``memory_repository``: the default repository backed by the in-memory adapter
"""

from __future__ import annotations

import pytest

import finder
from finder.core.adapters import MemoryAdapter, SQLiteAdapter
from finder.core.settings import clear_settings_cache
from tests._support.models import ALL_MODELS


@pytest.fixture(autouse=True)
def _isolated_repositories(monkeypatch):
    """No repository or cached settings leaks between tests."""
    for name in ("FINDER_DEFAULT_REPOSITORY_URL", "FINDER_LOG_SQL", "FINDER_REPOSITORIES"):
        monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    finder.teardown()
    yield
    finder.teardown()
    clear_settings_cache()


@pytest.fixture
def default_repository() -> SQLiteAdapter:
    adapter = finder.setup("default", SQLiteAdapter(":memory:", log_sql=True))
    finder.auto_migrate(*ALL_MODELS)
    return adapter


@pytest.fixture
def alternate_repository(default_repository) -> SQLiteAdapter:
    adapter = finder.setup("alternate", SQLiteAdapter(":memory:"))
    finder.auto_migrate(*ALL_MODELS, repository="alternate")
    return adapter


@pytest.fixture
def memory_repository() -> MemoryAdapter:
    adapter = finder.setup("default", MemoryAdapter())
    finder.auto_migrate(*ALL_MODELS)
    return adapter
