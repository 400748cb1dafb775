"""Tests for error classification."""

import pytest

from cronpilot.engine import (
    ConfigError,
    CronPilotError,
    DuplicateItemError,
    ErrorCategory,
    GenerationError,
    NotConfiguredError,
    NotFoundError,
    ProviderError,
)
from cronpilot.engine.errors import categorize, classify_error_message, classify_http_error


class TestErrorTypes:
    """Tests for the error hierarchy."""

    def test_str_includes_category(self) -> None:
        """Test the string form carries the category."""
        error = ProviderError("backend down", category=ErrorCategory.TRANSIENT)
        assert str(error) == "[transient] backend down"
        assert error.message == "backend down"

    def test_defaults(self) -> None:
        """Test each error's default classification."""
        assert ConfigError("x").category is ErrorCategory.PERMANENT
        assert NotConfiguredError("x").retryable is False
        assert NotFoundError("x").category is ErrorCategory.PERMANENT
        assert DuplicateItemError("x").retryable is False
        assert CronPilotError("x").category is ErrorCategory.UNKNOWN

    def test_hierarchy(self) -> None:
        """Test the error subclasses."""
        assert issubclass(NotConfiguredError, ConfigError)
        assert issubclass(GenerationError, ProviderError)

    def test_context(self) -> None:
        """Test context is kept on the error."""
        error = DuplicateItemError("dup", context={"external_id": "c1"})
        assert error.context == {"external_id": "c1"}

    def test_raise_and_catch(self) -> None:
        """Test errors behave as exceptions."""
        with pytest.raises(CronPilotError, match="missing"):
            raise NotFoundError("missing")


class TestClassification:
    """Tests for classification helpers."""

    @pytest.mark.parametrize(
        ("status", "body", "category", "retryable"),
        [
            (403, '{"error": {"message": "quotaExceeded"}}', ErrorCategory.RESOURCE, True),
            (403, "forbidden", ErrorCategory.PERMANENT, False),
            (429, "", ErrorCategory.RESOURCE, True),
            (408, "", ErrorCategory.TRANSIENT, True),
            (503, "", ErrorCategory.TRANSIENT, True),
            (404, "", ErrorCategory.PERMANENT, False),
        ],
    )
    def test_http(
        self, status: int, body: str, category: ErrorCategory, retryable: bool
    ) -> None:
        """Test HTTP status classification."""
        result_category, result_retryable, _ = classify_http_error(status, body)
        assert result_category is category
        assert result_retryable is retryable

    @pytest.mark.parametrize(
        ("message", "category"),
        [
            ("Rate limit reached", ErrorCategory.RESOURCE),
            ("Request timed out", ErrorCategory.TRANSIENT),
            ("Connection refused", ErrorCategory.TRANSIENT),
            ("Invalid API key", ErrorCategory.PERMANENT),
            ("Something odd", ErrorCategory.UNKNOWN),
        ],
    )
    def test_message(self, message: str, category: ErrorCategory) -> None:
        """Test message-based classification."""
        assert classify_error_message(message)[0] is category

    def test_categorize(self) -> None:
        """Test CronPilot errors keep their own category."""
        assert categorize(ProviderError("rate limit", category=ErrorCategory.TRANSIENT)) is (
            ErrorCategory.TRANSIENT
        )
        assert categorize(ValueError("timeout")) is ErrorCategory.TRANSIENT
