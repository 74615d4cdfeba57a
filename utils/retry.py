"""
Retry with exponential backoff.

Shared by the web fetch core and the provider clients so both apply the
same discipline: a fixed attempt budget, a delay of
``base_delay * 2 ** (attempt - 1)`` before every attempt after the first,
and retries only for transient failures.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, TypeVar

from .errors import ServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_ATTEMPTS = 3
BASE_RETRY_DELAY = 1.0  # seconds


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and backoff base."""

    max_attempts: int = MAX_ATTEMPTS
    base_delay: float = BASE_RETRY_DELAY

    def delay_before(self, attempt: int) -> float:
        """Delay before the given 0-based attempt (no delay before the first)."""
        if attempt <= 0:
            return 0.0
        return self.base_delay * (2 ** (attempt - 1))


def call_with_retry(
    operation: Callable[[], T],
    policy: RetryPolicy | None = None,
    sleep: Callable[[float], None] = time.sleep,
    label: str = "request",
) -> T:
    """
    Run ``operation`` until it succeeds or the attempt budget is spent.

    The operation signals failure by raising ServiceError. Non-retryable
    errors are re-raised immediately; after the last attempt the most
    recent error is re-raised.

    Args:
        operation: Zero-argument callable performing one attempt
        policy: Attempt budget and backoff base
        sleep: Sleep function (injectable for tests)
        label: Description used in log lines

    Returns:
        Whatever the successful attempt returned

    Raises:
        ServiceError: The last observed error
    """
    policy = policy or RetryPolicy()
    last_error: ServiceError | None = None

    for attempt in range(policy.max_attempts):
        if attempt > 0:
            delay = policy.delay_before(attempt)
            logger.debug(f"Waiting {delay:.1f}s before retry {attempt + 1} of {label}")
            sleep(delay)

        try:
            return operation()
        except ServiceError as e:
            last_error = e
            if not e.retryable:
                raise
            logger.warning(
                f"Transient failure on {label} "
                f"(attempt {attempt + 1}/{policy.max_attempts}): {e.message}"
            )

    logger.error(f"Giving up on {label} after {policy.max_attempts} attempts")
    assert last_error is not None
    raise last_error
