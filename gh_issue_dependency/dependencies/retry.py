"""Retry policy for GitHub API calls."""

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from ..errors import AppError, ErrorKind

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503})
MAX_ATTEMPTS = 3
BASE_DELAY = 1.0


def is_retryable(error: BaseException) -> bool:
    """Return True if the error is transient and the call may be repeated.

    Network errors, rate limiting and server-side failures are retryable.
    Authentication, permission, not-found and local validation errors are not.
    """
    if not isinstance(error, AppError):
        return False
    if error.kind is ErrorKind.NETWORK:
        return True
    return error.kind is ErrorKind.API and error.status_code in RETRYABLE_STATUS_CODES


def attempts_exhausted_error(
    operation: str, attempts: int, last_error: AppError
) -> AppError:
    """Wrap the last error of a retried call, keeping its kind and status."""
    error = AppError(
        last_error.kind,
        f"{operation} failed after {attempts} attempts: {last_error.message}",
        last_error,
        last_error.status_code,
    )
    for key, value in last_error.context.items():
        error.with_context(key, value)
    error.with_context("attempts", attempts)
    for suggestion in last_error.suggestions:
        error.with_suggestion(suggestion)
    return error


class RetryPolicy:
    """Bounded retries with linear backoff (``attempt * base_delay``)."""

    def __init__(
        self,
        max_attempts: int = MAX_ATTEMPTS,
        base_delay: float = BASE_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.sleep = sleep

    def classify(self, error: BaseException) -> bool:
        return is_retryable(error)

    def backoff_delay(self, attempt: int) -> float:
        """Delay in seconds before the retry that follows ``attempt``."""
        return attempt * self.base_delay

    def call(self, operation: str, func: Callable[[], T]) -> T:
        """Run ``func``, retrying transient failures.

        Args:
            operation: Description used in log and error messages
            func: Zero-argument callable performing one attempt

        Raises:
            AppError: The first non-retryable error, or the last error
                wrapped with an attempts-exhausted message
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                return func()
            except AppError as e:
                if not self.classify(e):
                    raise
                if attempt == self.max_attempts:
                    raise attempts_exhausted_error(operation, attempt, e) from e

                delay = self.backoff_delay(attempt)
                logger.warning(
                    "%s failed (attempt %d/%d): %s; retrying in %.1fs",
                    operation,
                    attempt,
                    self.max_attempts,
                    e.message,
                    delay,
                )
                self.sleep(delay)

        raise AssertionError("unreachable")
