"""Retry handler with exponential backoff.

Filter and merge tasks are deterministic, so a failed partition or graph
read can be re-executed from scratch. Only failures of the environment
(network, database availability) are worth another attempt; anything the
input itself causes propagates on the first occurrence.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from typing import Callable, TypeVar

from neo4j.exceptions import ServiceUnavailable, SessionExpired, TransientError

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_DELAY = 2.0  # seconds
MAX_DELAY_CAP = 60.0

# Errors that trigger a retry: lost connections and timeouts, and Neo4j
# deadlocks or leader switches.
RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (
    ConnectionError,
    TimeoutError,
    TransientError,
    ServiceUnavailable,
    SessionExpired,
)

T = TypeVar("T")


class FatalPassError(Exception):
    """Raised when a task still fails after all retries."""


class RetryHandler:
    """Re-runs a callable on transient failures, backing off exponentially."""

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        max_delay: float = MAX_DELAY_CAP,
        verbose: bool = False,
        retryable: tuple[type[BaseException], ...] = RETRYABLE_ERRORS,
    ) -> None:
        """Initialize retry handler.

        Args:
            max_retries: Retries after the first attempt.
            initial_delay: Seconds to wait before the first retry.
            max_delay: Cap on the doubled delay.
            verbose: Whether to print retry messages.
            retryable: Exception types that trigger a retry.
        """
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.verbose = verbose
        self.retryable = retryable

    @property
    def attempts(self) -> int:
        return self.max_retries + 1

    def backoff(self) -> Iterator[float]:
        """Yield the wait before each retry, doubling up to ``max_delay``."""
        delay = self.initial_delay
        for _ in range(self.max_retries):
            yield delay
            delay = min(delay * 2, self.max_delay)

    def execute(self, func: Callable[[], T], operation_name: str) -> T:
        """Call ``func`` until it succeeds or the retries run out.

        ``func`` must be safe to call again after a failure.

        Raises:
            FatalPassError: Chained to the last error once every attempt failed.
        """
        waits = self.backoff()
        attempt = 0
        while True:
            attempt += 1
            try:
                return func()
            except self.retryable as e:
                delay = next(waits, None)
                if delay is None:
                    raise FatalPassError(
                        f"{operation_name} failed after {attempt} attempts: {e}"
                    ) from e

                logger.warning(
                    "%s failed (attempt %d/%d): %s", operation_name, attempt, self.attempts, e
                )
                if self.verbose:
                    print(
                        f"  ⚠ {operation_name} failed (attempt {attempt}/{self.attempts}), "
                        f"retrying in {delay:.1f}s..."
                    )
                time.sleep(delay)
