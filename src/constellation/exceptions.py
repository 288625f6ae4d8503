"""Exception hierarchy for constellation."""

from __future__ import annotations


class ConstellationError(Exception):
    """Base exception for all constellation errors."""


class NotFoundError(ConstellationError):
    """Raised when a requested record does not exist."""


class ValidationFailedError(ConstellationError):
    """Raised when request data fails domain validation."""

    def __init__(self, message: str, issues: list[dict[str, object]] | None = None) -> None:
        super().__init__(message)
        self.issues = issues or []


class LLMClientError(ConstellationError):
    """Raised when LLM API calls fail after exhausting retries."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RetryableError(LLMClientError):
    """Transient upstream failure (rate limit, timeout or 5xx); safe to retry."""


class NonRetryableError(LLMClientError):
    """Upstream rejected the request outright; retrying will not help."""


class LLMNotConfiguredError(LLMClientError):
    """Raised when an AI route is called without provider credentials."""


class JSONParseError(ConstellationError):
    """LLM response could not be parsed as JSON."""

    def __init__(self, message: str, raw_response: str = "") -> None:
        super().__init__(message)
        self.raw_response = raw_response


class PersistenceError(ConstellationError):
    """Raised when a storage backend cannot complete an operation."""


class BlobStorageError(ConstellationError):
    """Raised when an upload or delete against blob storage fails."""
