"""Centralized settings for finder-core.

Manifesto:
    Repository URLs and logging switches are read once, validated, and
    cached.  Every value can come from ``FINDER_*`` environment variables
    or a ``.env`` file, so test suites and applications configure the same
    object the same way.

Examples:
    >>> import os
    >>> os.environ["FINDER_REPOSITORIES__ALTERNATE"] = "sqlite:///alt.db"
    >>> get_settings(_force_reload=True).repositories
    {'alternate': 'sqlite:///alt.db'}

Tags:
    finder-core, configuration, settings, pydantic
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FinderSettings(BaseSettings):
    """finder-core configuration.

    Fields
    ──────
    default_repository_url : URL of the ``default`` repository
    repositories           : Extra named repositories (name → URL)
    log_level              : Structlog log level
    log_format             : ``console`` or ``json``
    log_sql                : Log every executed statement at debug level
    """

    model_config = SettingsConfigDict(
        env_prefix="FINDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    # ── Repositories ─────────────────────────────────────────────
    default_repository_url: str = Field(default="sqlite:///:memory:")
    repositories: dict[str, str] = Field(default_factory=dict)

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")
    log_sql: bool = Field(default=False)

    @field_validator("log_format")
    @classmethod
    def _check_log_format(cls, value: str) -> str:
        value = value.lower()
        if value not in ("console", "json"):
            raise ValueError("log_format must be 'console' or 'json'")
        return value

    @field_validator("repositories")
    @classmethod
    def _lower_repository_names(cls, value: dict[str, str]) -> dict[str, str]:
        return {name.lower(): url for name, url in value.items()}


_settings_cache: dict[str, FinderSettings] = {}


def get_settings(*, _force_reload: bool = False) -> FinderSettings:
    """Load, validate, and cache a :class:`FinderSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]
    settings = FinderSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = [
    "FinderSettings",
    "get_settings",
    "clear_settings_cache",
]
