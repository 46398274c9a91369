"""Error handling and retry logic for reelcut.

Provides:
- Custom exception hierarchy, categorised by how the pipeline reacts to it
- A pure, injectable retry loop with exponential backoff
- Helpers to render errors with their video/segment/cut context
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Generic, TypeVar

from reelcut.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class ErrorCategory(str, Enum):
    """Categories of errors for handling decisions."""

    PROBE = "probe"  # Source media unreadable - abandon the video
    TRANSPORT = "transport"  # Semantic service call failed - retry
    VALIDATION = "validation"  # Bad cut window - skip the cut
    ENCODING = "encoding"  # Encoder failed - skip variant or fall back
    CREDENTIAL = "credential"  # Publishing credentials unusable - skip upload
    CONFIGURATION = "configuration"  # Bad config - stop at startup
    RESOURCE = "resource"  # Missing file, download or feed failure
    INTERNAL = "internal"  # Bug in code - don't retry


class ReelcutError(Exception):
    """Base exception for reelcut errors.

    Attributes:
        message: Human-readable error message
        category: Error category for handling
        context: Additional context information (video, segment, cut, stage)
        recoverable: Whether the error is recoverable
    """

    category: ErrorCategory = ErrorCategory.INTERNAL
    recoverable: bool = False

    def __init__(self, message: str, context: dict | None = None, recoverable: bool | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        if recoverable is not None:
            self.recoverable = recoverable

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} (context: {self.context})"
        return self.message


class ProbeError(ReelcutError):
    """Media inspection failed."""

    category = ErrorCategory.PROBE


class DurationProbeError(ProbeError):
    """Duration of a media file could not be determined."""


class TransportError(ReelcutError):
    """A semantic service call failed.

    Covers network failures, non-success statuses, missing choices and
    unparsable response content. Always retryable.
    """

    category = ErrorCategory.TRANSPORT
    recoverable = True


class ValidationError(ReelcutError):
    """Input validation error."""

    category = ErrorCategory.VALIDATION


class CutWindowError(ValidationError):
    """A proposed cut window lies outside its segment or is empty."""


class SubtitleParseError(ValidationError):
    """A caption file could not be read or decoded."""


class EncodingError(ReelcutError):
    """The media encoder failed or timed out."""

    category = ErrorCategory.ENCODING
    recoverable = True


class MediaToolNotFoundError(ReelcutError):
    """A required media executable is not available."""

    category = ErrorCategory.CONFIGURATION


class CredentialError(ReelcutError):
    """Publishing credentials are missing, expired or unrefreshable."""

    category = ErrorCategory.CREDENTIAL


class PublishError(ReelcutError):
    """Uploading an artifact to the publishing target failed."""

    category = ErrorCategory.RESOURCE
    recoverable = True


class ConfigurationError(ReelcutError):
    """Configuration error.

    Examples: missing config file, invalid channel entry.
    """

    category = ErrorCategory.CONFIGURATION


class DownloadError(ReelcutError):
    """Fetching a source video failed."""

    category = ErrorCategory.RESOURCE


class FeedError(ReelcutError):
    """The channel feed could not be fetched or parsed."""

    category = ErrorCategory.RESOURCE


@dataclass
class RetryConfig:
    """Configuration for retry behavior.

    Attributes:
        max_attempts: Maximum number of attempts (including the first)
        backoff_base: Base for exponential backoff; attempt k waits base**k
        retryable_errors: Error types that trigger another attempt
    """

    max_attempts: int = 3
    backoff_base: float = 2.0
    retryable_errors: tuple = (TransportError,)


@dataclass
class AttemptResult(Generic[T]):
    """Outcome of a retried operation.

    Attributes:
        value: Return value of the successful attempt, if any
        error: Last error when every attempt failed
        attempts: Number of attempts made
        delays: Delay applied before each attempt (0 for the first)
    """

    value: T | None = None
    error: Exception | None = None
    attempts: int = 0
    delays: list[float] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.attempts > 0


def backoff_delay(attempt_index: int, base: float = 2.0) -> float:
    """Calculate delay before an attempt.

    Args:
        attempt_index: Zero-based attempt index
        base: Exponential base

    Returns:
        0 for the first attempt, otherwise base ** attempt_index
    """
    if attempt_index <= 0:
        return 0.0
    return float(base**attempt_index)


def attempt(
    fn: Callable[[], T],
    max_attempts: int = 3,
    backoff_base: float = 2.0,
    sleep: Callable[[float], None] = time.sleep,
    retry_on: tuple = (TransportError,),
) -> AttemptResult[T]:
    """Call ``fn`` until it succeeds or attempts are exhausted.

    Errors outside ``retry_on`` propagate immediately. Exhaustion is reported
    through the returned result rather than raised.

    Args:
        fn: Zero-argument callable performing one attempt
        max_attempts: Maximum number of attempts
        backoff_base: Base for the delay before attempt k (base**k, 0 for k=0)
        sleep: Sleep function, injectable for tests
        retry_on: Error types that count as a failed attempt

    Returns:
        AttemptResult with the value or the last error
    """
    result: AttemptResult[T] = AttemptResult()

    for index in range(max_attempts):
        delay = backoff_delay(index, backoff_base)
        result.delays.append(delay)
        if delay > 0:
            logger.info(
                f"Retrying in {delay:.0f}s (attempt {index + 1}/{max_attempts})",
                extra={"delay": delay, "attempt": index + 1},
            )
            sleep(delay)

        result.attempts = index + 1
        try:
            result.value = fn()
            result.error = None
            return result
        except retry_on as e:
            result.error = e
            logger.warning(
                f"Attempt {index + 1}/{max_attempts} failed: {e}",
                extra={"error_type": type(e).__name__},
            )

    return result


def attempt_with_config(
    fn: Callable[[], T],
    config: RetryConfig,
    sleep: Callable[[float], None] = time.sleep,
) -> AttemptResult[T]:
    """Run :func:`attempt` with settings from a RetryConfig."""
    return attempt(
        fn,
        max_attempts=config.max_attempts,
        backoff_base=config.backoff_base,
        sleep=sleep,
        retry_on=config.retryable_errors,
    )


def format_error_for_display(error: Exception) -> str:
    """Format an error message for user display.

    Args:
        error: Error to format

    Returns:
        Human-readable error message
    """
    if isinstance(error, ReelcutError):
        category = error.category.value
        base_message = error.message

        if error.context:
            context_str = ", ".join(f"{k}={v}" for k, v in error.context.items())
            return f"[{category}] {base_message} ({context_str})"

        return f"[{category}] {base_message}"

    return f"[error] {type(error).__name__}: {error}"


def with_context(error: ReelcutError, **context: Any) -> ReelcutError:
    """Attach additional context keys to an error and return it."""
    error.context = {**context, **error.context}
    return error
