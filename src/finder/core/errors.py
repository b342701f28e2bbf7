"""
Structured error types for finder-core.

Every failure the finder layer raises on its own account is a
:class:`FinderError`.  Errors carry a category, a retryable flag and an
:class:`ErrorContext` so that callers can log them with structure instead
of parsing messages.

Manifesto:
    - **Typed hierarchy:** argument-shape problems, configuration problems
      and store connectivity problems are different types
    - **Python-native signals:** argument errors are ``ValueError`` and
      unknown dynamic finders are ``AttributeError`` so ordinary ``except``
      clauses and ``hasattr()`` keep working
    - **No wrapping of store failures:** malformed SQL and constraint
      violations propagate exactly as the driver raised them

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                       FinderError                           │
        │  (category, retryable, context, cause)                      │
        ├─────────────────────────────────────────────────────────────┤
        │  ValidationError            ConfigError                     │
        │    QueryArgumentError         RepositoryNotFoundError       │
        │      UnknownPropertyError                                   │
        │  UnknownFinderError         DatabaseConnectionError         │
        │  UnsupportedQueryError      PersistenceError                │
        └─────────────────────────────────────────────────────────────┘

Examples:
    >>> error = QueryArgumentError("find requires a selector")
    >>> isinstance(error, ValueError)
    True
    >>> error.category.value
    'VALIDATION'

Tags:
    error-handling, exception-hierarchy, finder-core

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    DATABASE = "DATABASE"         # Connection pool, driver failures
    VALIDATION = "VALIDATION"     # Argument shape, unknown properties
    CONFIG = "CONFIG"             # Missing/invalid repository setup
    QUERY = "QUERY"               # Unsupported query for a store
    PERSISTENCE = "PERSISTENCE"   # Resource lifecycle violations
    INTERNAL = "INTERNAL"         # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        model: Name of the model class involved
        repository: Name of the repository scope
        operation: Finder operation (``find``, ``find_by_sql`` ...)
        sql: Statement text, for raw-query errors
        metadata: Additional key-value pairs
    """

    model: str | None = None
    repository: str | None = None
    operation: str | None = None
    sql: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["model", "repository", "operation", "sql"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class FinderError(Exception):
    """
    Base exception for all finder-core errors.

    Subclasses set ``default_category`` and ``default_retryable`` so the
    common case needs only a message.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> FinderError:
        """
        Add context to this error (fluent API).

        Usage:
            raise QueryArgumentError("bad selector").with_context(
                model="GreenSmoothie", operation="find"
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# VALIDATION ERRORS (Never Retryable)
# =============================================================================


class ValidationError(FinderError):
    """Input failed validation before reaching the store."""

    default_category = ErrorCategory.VALIDATION
    default_retryable = False


class QueryArgumentError(ValidationError, ValueError):
    """A finder was called with an argument of the wrong shape.

    Raised synchronously, before any store round trip.
    """


class UnknownPropertyError(QueryArgumentError):
    """A condition, order or ``properties`` option names no property."""

    def __init__(self, model: str, name: Any, message: str | None = None):
        super().__init__(
            message or f"{model} has no property {name!r}",
            context=ErrorContext(model=model, metadata={"property": name}),
        )
        self.model = model
        self.name = name


class UnknownFinderError(FinderError, AttributeError):
    """Dynamic finder referencing an attribute the model does not define."""

    default_category = ErrorCategory.VALIDATION

    def __init__(self, model: str, method: str, message: str | None = None):
        super().__init__(
            message or f"type object {model!r} has no attribute {method!r}",
            context=ErrorContext(model=model, operation=method),
        )
        self.model = model
        self.method = method


# =============================================================================
# QUERY / PERSISTENCE ERRORS
# =============================================================================


class UnsupportedQueryError(FinderError):
    """The repository's adapter cannot execute this kind of query."""

    default_category = ErrorCategory.QUERY


class PersistenceError(FinderError):
    """A resource lifecycle operation is not valid in its current state."""

    default_category = ErrorCategory.PERSISTENCE


# =============================================================================
# CONFIGURATION / CONNECTIVITY ERRORS
# =============================================================================


class ConfigError(FinderError):
    """Invalid or missing configuration."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class RepositoryNotFoundError(ConfigError):
    """No adapter was set up under the requested repository name."""

    def __init__(self, name: str):
        super().__init__(
            f"No repository named {name!r} has been set up",
            context=ErrorContext(repository=name),
        )
        self.name = name


class DatabaseConnectionError(FinderError):
    """Could not acquire a connection to the backing store."""

    default_category = ErrorCategory.DATABASE
    default_retryable = True


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "FinderError",
    "ValidationError",
    "QueryArgumentError",
    "UnknownPropertyError",
    "UnknownFinderError",
    "UnsupportedQueryError",
    "PersistenceError",
    "ConfigError",
    "RepositoryNotFoundError",
    "DatabaseConnectionError",
]
