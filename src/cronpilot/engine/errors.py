"""Error classification and handling for CronPilot jobs."""

from __future__ import annotations

import contextlib
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Classification of errors for logging and outcome reporting."""

    TRANSIENT = "transient"  # Rate limits, timeouts, network
    PERMANENT = "permanent"  # Auth, validation, not found, missing credentials
    RESOURCE = "resource"  # Capacity, quota
    UNKNOWN = "unknown"


@dataclass
class CronPilotError(Exception):
    """Base error with classification and context."""

    message: str
    category: ErrorCategory = ErrorCategory.UNKNOWN
    retryable: bool = True
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"[{self.category.value}] {self.message}"

    def __post_init__(self) -> None:
        super().__init__(self.message)


@dataclass
class ConfigError(CronPilotError):
    """Invalid or missing configuration."""

    category: ErrorCategory = ErrorCategory.PERMANENT
    retryable: bool = False


@dataclass
class NotConfiguredError(ConfigError):
    """A collaborator was used without its credentials."""


@dataclass
class ProviderError(CronPilotError):
    """Failure reported by an external provider or its transport."""

    status_code: int | None = None


@dataclass
class GenerationError(ProviderError):
    """Content generation failed or returned nothing usable."""


@dataclass
class NotFoundError(CronPilotError):
    """A requested entity does not exist."""

    category: ErrorCategory = ErrorCategory.PERMANENT
    retryable: bool = False


@dataclass
class DuplicateItemError(CronPilotError):
    """An ingested item with the same dedup key already exists."""

    category: ErrorCategory = ErrorCategory.PERMANENT
    retryable: bool = False


def categorize(error: BaseException) -> ErrorCategory:
    """Get the category of any exception raised by a job.

    Args:
        error: The exception to categorize.

    Returns:
        The error's own category for CronPilot errors, otherwise a category
        derived from the message text.
    """
    if isinstance(error, CronPilotError):
        return error.category
    category, _, _ = classify_error_message(str(error))
    return category


def classify_anthropic_error(error: Exception) -> tuple[ErrorCategory, bool, int | None]:
    """Classify Anthropic SDK errors.

    Args:
        error: The exception from Anthropic SDK.

    Returns:
        Tuple of (category, retryable, retry_after_seconds).
    """
    import anthropic

    if isinstance(error, anthropic.RateLimitError):
        retry_after = 60
        headers = getattr(getattr(error, "response", None), "headers", None) or {}
        if "retry-after" in headers:
            with contextlib.suppress(ValueError, TypeError):
                retry_after = int(headers["retry-after"])
        return ErrorCategory.RESOURCE, True, retry_after

    if isinstance(error, anthropic.APITimeoutError):
        return ErrorCategory.TRANSIENT, True, 10

    if isinstance(error, anthropic.APIConnectionError):
        return ErrorCategory.TRANSIENT, True, 5

    if isinstance(error, anthropic.AuthenticationError | anthropic.BadRequestError):
        return ErrorCategory.PERMANENT, False, None

    if isinstance(error, anthropic.APIStatusError):
        if error.status_code >= 500:
            return ErrorCategory.TRANSIENT, True, 30
        return ErrorCategory.PERMANENT, False, None

    return ErrorCategory.UNKNOWN, True, 5


def classify_http_error(
    status_code: int, response_text: str = ""
) -> tuple[ErrorCategory, bool, int | None]:
    """Classify HTTP response errors.

    Args:
        status_code: HTTP status code.
        response_text: Response body text.

    Returns:
        Tuple of (category, retryable, retry_after_seconds).
    """
    # YouTube reports exhausted quota as 403 with a quota reason
    if status_code == 403 and "quota" in response_text.lower():
        return ErrorCategory.RESOURCE, True, 3600

    if status_code == 429:
        return ErrorCategory.RESOURCE, True, 60

    if 500 <= status_code < 600:
        return ErrorCategory.TRANSIENT, True, 5

    if status_code == 408:
        return ErrorCategory.TRANSIENT, True, 5

    if 400 <= status_code < 500:
        return ErrorCategory.PERMANENT, False, None

    return ErrorCategory.UNKNOWN, True, 5


def classify_error_message(error_message: str) -> tuple[ErrorCategory, bool, int | None]:
    """Classify errors based on error message content.

    Args:
        error_message: The error message string.

    Returns:
        Tuple of (category, retryable, retry_after_seconds).
    """
    error_lower = error_message.lower()

    if any(kw in error_lower for kw in ["rate limit", "429", "too many requests", "quota"]):
        return ErrorCategory.RESOURCE, True, 60

    if any(kw in error_lower for kw in ["timeout", "timed out", "deadline exceeded"]):
        return ErrorCategory.TRANSIENT, True, 5

    if any(kw in error_lower for kw in ["connection", "network", "dns", "unreachable", "refused"]):
        return ErrorCategory.TRANSIENT, True, 5

    if any(
        kw in error_lower
        for kw in ["unauthorized", "authentication", "forbidden", "invalid key", "api key"]
    ):
        return ErrorCategory.PERMANENT, False, None

    if any(kw in error_lower for kw in ["not found", "does not exist", "404"]):
        return ErrorCategory.PERMANENT, False, None

    return ErrorCategory.UNKNOWN, True, 5
