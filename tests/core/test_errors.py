"""Tests for finder.core.errors module."""

import pytest

from finder.core.errors import (
    ConfigError,
    DatabaseConnectionError,
    ErrorCategory,
    ErrorContext,
    FinderError,
    PersistenceError,
    QueryArgumentError,
    RepositoryNotFoundError,
    UnknownFinderError,
    UnknownPropertyError,
    UnsupportedQueryError,
    ValidationError,
)


class TestErrorContext:
    """Test ErrorContext dataclass."""

    def test_create_empty_context(self):
        ctx = ErrorContext()
        assert ctx.model is None
        assert ctx.repository is None
        assert ctx.metadata == {}

    def test_to_dict_skips_unset_fields(self):
        ctx = ErrorContext(model="GreenSmoothie", operation="find")
        assert ctx.to_dict() == {"model": "GreenSmoothie", "operation": "find"}

    def test_to_dict_merges_metadata(self):
        ctx = ErrorContext(repository="alternate", metadata={"property": "name"})
        assert ctx.to_dict() == {"repository": "alternate", "property": "name"}


class TestFinderError:
    def test_defaults(self):
        error = FinderError("boom")
        assert error.message == "boom"
        assert error.category == ErrorCategory.INTERNAL
        assert error.retryable is False
        assert error.cause is None

    def test_cause_is_chained(self):
        cause = RuntimeError("driver")
        error = FinderError("wrapped", cause=cause)
        assert error.cause is cause
        assert error.__cause__ is cause

    def test_with_context_sets_known_fields_and_metadata(self):
        error = QueryArgumentError("bad").with_context(model="Milkshake", attempt=2)
        assert error.context.model == "Milkshake"
        assert error.context.metadata == {"attempt": 2}

    def test_to_dict(self):
        error = ConfigError("missing url", cause=KeyError("url"))
        data = error.to_dict()
        assert data["error_type"] == "ConfigError"
        assert data["category"] == "CONFIG"
        assert data["retryable"] is False
        assert "url" in data["cause"]

    def test_repr(self):
        assert repr(PersistenceError("gone")) == "PersistenceError('gone', category=PERSISTENCE)"


class TestPythonNativeSignals:
    """Finder errors double as the builtin exceptions callers already catch."""

    def test_query_argument_error_is_value_error(self):
        error = QueryArgumentError("find requires a selector")
        assert isinstance(error, ValueError)
        assert isinstance(error, ValidationError)
        assert error.category == ErrorCategory.VALIDATION

    def test_unknown_property_error(self):
        error = UnknownPropertyError("GreenSmoothie", "colour")
        assert isinstance(error, QueryArgumentError)
        assert str(error) == "GreenSmoothie has no property 'colour'"
        assert error.context.metadata == {"property": "colour"}

    def test_unknown_finder_error_is_attribute_error(self):
        error = UnknownFinderError("GreenSmoothie", "find_by_colour")
        assert isinstance(error, AttributeError)
        assert str(error) == "type object 'GreenSmoothie' has no attribute 'find_by_colour'"
        assert error.method == "find_by_colour"

    def test_repository_not_found(self):
        error = RepositoryNotFoundError("alternate")
        assert isinstance(error, ConfigError)
        assert error.context.repository == "alternate"
        assert "alternate" in str(error)


class TestRetryable:
    def test_connection_errors_are_retryable(self):
        assert DatabaseConnectionError("refused").retryable is True

    @pytest.mark.parametrize(
        "error",
        [
            QueryArgumentError("x"),
            UnsupportedQueryError("x"),
            PersistenceError("x"),
            ConfigError("x"),
        ],
    )
    def test_other_finder_errors_are_not(self, error):
        assert error.retryable is False

    def test_override_retryable(self):
        assert FinderError("x", retryable=True).retryable is True
