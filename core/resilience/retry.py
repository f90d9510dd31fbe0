"""Retry policy with exponential backoff."""

import logging
from typing import Awaitable, Callable, Optional, TypeVar

from .rate_limit import Clock, MonotonicClock

logger = logging.getLogger(__name__)

T = TypeVar("T")

RetryCallback = Callable[[int, Exception], None]


def retry_if_retryable(error: Exception) -> bool:
    """Default predicate: honour a ``retryable`` flag, retry everything else."""
    return getattr(error, "retryable", True)


class RetryPolicy:
    """
    Run an async callable up to ``max_attempts`` times.

    The delay after failed attempt ``n`` is ``base_delay * 2 ** (n - 1)``.
    No delay follows the final attempt; its error is re-raised as-is.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        retry_predicate: Callable[[Exception], bool] = retry_if_retryable,
        clock: Optional[Clock] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.retry_predicate = retry_predicate
        self.clock = clock or MonotonicClock()

    def delay_for(self, attempt: int) -> float:
        """Backoff delay in seconds after the given 1-based attempt."""
        return self.base_delay * (2 ** (attempt - 1))

    async def run(
        self,
        fn: Callable[[], Awaitable[T]],
        on_retry: Optional[RetryCallback] = None,
        label: str = "operation",
    ) -> T:
        """
        Execute ``fn`` with retries.

        Args:
            fn: Zero-argument coroutine factory, called once per attempt
            on_retry: Invoked as ``on_retry(attempt, error)`` after each failure
            label: Name used in log messages

        Returns:
            Result of the first successful attempt

        Raises:
            The last error once attempts are exhausted, or immediately when
            the predicate rejects an error.
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await fn()
            except Exception as e:
                logger.warning(f"{label} attempt {attempt}/{self.max_attempts} failed: {e}")

                if on_retry is not None:
                    on_retry(attempt, e)

                if attempt >= self.max_attempts or not self.retry_predicate(e):
                    raise

                delay = self.delay_for(attempt)
                logger.info(f"Retrying {label} in {delay:.1f} seconds...")
                await self.clock.sleep(delay)

        raise RuntimeError("unreachable")
