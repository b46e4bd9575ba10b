"""
Bounded retry for transactions that lose a race on a unique value.

Two writers allocating an invoice number for the same day can both compute
the same sequence; the store rejects the second insert with a
UniqueConstraintError. Re-running the whole transaction reads the new
highest number and allocates the next one.
"""

import logging
import random
import threading
import time
from typing import Any, Callable, Optional

from timeledger.stores.interface import UniqueConstraintError

logger = logging.getLogger(__name__)


def is_unique_collision(error: Exception) -> bool:
    return isinstance(error, UniqueConstraintError)


class RetryExhaustedException(Exception):
    """Every attempt collided; ``last_exception`` holds the final error."""

    def __init__(self, message: str, last_exception: Optional[Exception] = None):
        self.last_exception = last_exception
        super().__init__(message)


class RetryHandler:
    """
    Re-runs a callable with exponential backoff while it keeps colliding.

    Counters for calls, retries and failures are kept under a lock so one
    handler can be shared by concurrent builders.

    Example:
        >>> handler = RetryHandler(max_retries=3, base_delay=0.01)
        >>> handler.execute_with_retry(allocate_and_insert, invoice)
    """

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 0.05,
        max_delay: float = 1.0,
        exponential_base: float = 2,
        jitter_factor: float = 0.1,
        retry_condition: Optional[Callable[[Exception], bool]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            max_retries: Attempts allowed after the first one
            base_delay: Wait before the first retry, in seconds
            max_delay: Upper bound for any single wait
            exponential_base: Growth factor of the wait per attempt
            jitter_factor: Relative random spread applied to each wait
            retry_condition: Predicate deciding which errors are retried
            sleep: Wait function, replaced in tests
        """
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter_factor = jitter_factor
        self.retry_condition = retry_condition or is_unique_collision
        self._sleep = sleep

        self._lock = threading.Lock()
        self._stats = {"total_calls": 0, "total_retries": 0, "total_failures": 0}

    def _calculate_delay(self, attempt: int) -> float:
        """Backoff for the given 0-based attempt, capped and jittered."""
        delay = min(self.base_delay * self.exponential_base**attempt, self.max_delay)
        spread = delay * self.jitter_factor
        return max(0.0, delay + random.uniform(-spread, spread))

    def _count(self, retries: int = 0, failed: bool = False):
        with self._lock:
            self._stats["total_retries"] += retries
            if failed:
                self._stats["total_failures"] += 1

    def execute_with_retry(self, func: Callable, *args, **kwargs) -> Any:
        """
        Call ``func(*args, **kwargs)`` until it succeeds or retries run out.

        Errors rejected by the retry condition propagate immediately.

        Raises:
            RetryExhaustedException: The last allowed attempt still collided
        """
        with self._lock:
            self._stats["total_calls"] += 1

        name = getattr(func, "__name__", repr(func))
        attempt = 0
        while True:
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                if not self.retry_condition(e):
                    raise
                if attempt == self.max_retries:
                    self._count(retries=attempt, failed=True)
                    logger.warning(f"{name} still colliding after {attempt} retries")
                    raise RetryExhaustedException(
                        f"Gave up after {self.max_retries} retries: {type(e).__name__}: {e}",
                        last_exception=e,
                    ) from e

                delay = self._calculate_delay(attempt)
                attempt += 1
                logger.debug(
                    f"{name} collided ({e}); attempt {attempt + 1}/{self.max_retries + 1} "
                    f"in {delay:.2f}s"
                )
                self._sleep(delay)
            else:
                if attempt:
                    self._count(retries=attempt)
                    logger.info(f"{name} succeeded after {attempt} retries")
                return result

    def get_retry_statistics(self) -> dict:
        with self._lock:
            return dict(self._stats)

    def reset_statistics(self):
        with self._lock:
            for key in self._stats:
                self._stats[key] = 0
