"""
Standardized error classification system.

Two layers:
- Provider errors (APIError hierarchy): raised inside a source client while
  talking to one provider. They never leave the client; they are folded into
  a failed FetchResult tagged with a FetchErrorCode.
- Aggregation errors (AggregationError hierarchy): the only failures that
  propagate to callers of the aggregator.
"""

from enum import Enum
from typing import Optional, Dict, Any, List


class FetchErrorCode(str, Enum):
    """Per-source failure reasons. All of them are recovered locally."""

    SOURCE_TIMEOUT = "SOURCE_TIMEOUT"
    SOURCE_ERROR = "SOURCE_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    NORMALIZATION_SKIPPED = "NORMALIZATION_SKIPPED"


class AggregationErrorCode(str, Enum):
    """Failures surfaced to the caller of an aggregation."""

    QUALITY_INSUFFICIENT = "QUALITY_INSUFFICIENT"
    NO_SOURCES_AVAILABLE = "NO_SOURCES_AVAILABLE"


# =============================================================================
# Provider errors
# =============================================================================


class APIError(Exception):
    """
    Base exception for all provider API errors.

    Attributes:
        message: Human-readable error description
        source: Source identifier (e.g., 'openweather', 'ndbc')
        status_code: HTTP status code if applicable
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.source = source
        self.status_code = status_code

    def __str__(self) -> str:
        parts = [self.message]
        if self.source:
            parts.insert(0, f"[{self.source}]")
        if self.status_code:
            parts.append(f"(HTTP {self.status_code})")
        return " ".join(parts)


class RetryableError(APIError):
    """
    Transient errors (5xx, network resets, temporary unavailability).
    """


class RateLimitError(APIError):
    """
    Provider-side throttling (HTTP 429).

    Distinct from RATE_LIMITED, which is our own limiter refusing to dispatch.
    """

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message=message, source=source, status_code=429)


class FatalError(APIError):
    """
    Errors that indicate a permanent problem (400/401/403/404).
    """


class AuthenticationError(FatalError):
    """Authentication failed - invalid or missing API key."""

    def __init__(
        self,
        message: str = "Authentication failed - check API key",
        source: Optional[str] = None,
    ):
        super().__init__(message=message, source=source, status_code=401)


class NotFoundError(FatalError):
    """Requested resource not found."""

    def __init__(
        self,
        message: str = "Resource not found",
        source: Optional[str] = None,
        resource_id: Optional[str] = None,
    ):
        if resource_id:
            message = f"{message}: {resource_id}"
        super().__init__(message=message, source=source, status_code=404)
        self.resource_id = resource_id


class ValidationError(FatalError):
    """Request validation failed - invalid parameters."""

    def __init__(
        self,
        message: str = "Invalid request parameters",
        source: Optional[str] = None,
    ):
        super().__init__(message=message, source=source, status_code=400)


class MalformedPayloadError(FatalError):
    """The provider answered 2xx but the body is not what the client expects."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message=message, source=source)


class ConfigurationError(FatalError):
    """
    Configuration error - missing required settings.

    Raised when a required API key is not configured.
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        missing_config: Optional[str] = None,
    ):
        super().__init__(message=message, source=source)
        self.missing_config = missing_config


def classify_http_error(
    status_code: int, response_text: str = "", source: Optional[str] = None
) -> APIError:
    """
    Classify an HTTP error into the appropriate APIError subclass.

    Args:
        status_code: HTTP status code
        response_text: Response body text
        source: Source identifier

    Returns:
        Appropriate APIError subclass instance
    """
    if status_code == 429:
        return RateLimitError(
            message=f"Rate limited: {response_text[:200]}", source=source
        )
    elif status_code == 401:
        return AuthenticationError(
            message=f"Authentication failed: {response_text[:200]}", source=source
        )
    elif status_code == 403:
        return FatalError(
            message=f"Access forbidden: {response_text[:200]}",
            source=source,
            status_code=403,
        )
    elif status_code == 404:
        return NotFoundError(message=f"Not found: {response_text[:200]}", source=source)
    elif status_code == 400:
        return ValidationError(
            message=f"Bad request: {response_text[:200]}", source=source
        )
    elif 500 <= status_code < 600:
        return RetryableError(
            message=f"Server error: {response_text[:200]}",
            source=source,
            status_code=status_code,
        )
    else:
        return APIError(
            message=f"HTTP error {status_code}: {response_text[:200]}",
            source=source,
            status_code=status_code,
        )


# =============================================================================
# Aggregation errors
# =============================================================================


class AggregationError(Exception):
    """
    Base exception for a failed aggregation call.

    Attributes:
        code: AggregationErrorCode
        message: Human-readable summary
        issues: Diagnostic issue strings (quality gate findings)
        source_failures: source_id -> {"code": ..., "error": ...} for every
            source that was tried and did not contribute
    """

    code: AggregationErrorCode = AggregationErrorCode.NO_SOURCES_AVAILABLE

    def __init__(
        self,
        message: str,
        issues: Optional[List[str]] = None,
        source_failures: Optional[Dict[str, Dict[str, Optional[str]]]] = None,
        score: Optional[float] = None,
    ):
        super().__init__(message)
        self.message = message
        self.issues = list(issues or [])
        self.source_failures = dict(source_failures or {})
        self.score = score

    def __str__(self) -> str:
        if self.issues:
            return f"{self.code.value}: {self.message} ({', '.join(self.issues)})"
        return f"{self.code.value}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to a JSON-compatible dictionary."""
        return {
            "error": self.code.value,
            "message": self.message,
            "issues": self.issues,
            "score": self.score,
            "source_failures": self.source_failures,
        }


class QualityInsufficientError(AggregationError):
    """Fused result scored below the category threshold. Never cached."""

    code = AggregationErrorCode.QUALITY_INSUFFICIENT


class NoSourcesAvailableError(AggregationError):
    """No eligible source, or no source produced a usable record."""

    code = AggregationErrorCode.NO_SOURCES_AVAILABLE
