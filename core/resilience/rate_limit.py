"""Rate limiting primitives shared by every provider call site.

All limiters take a ``Clock`` so throttle behaviour can be exercised in tests
with a fake clock instead of real timers.
"""

import asyncio
import logging
import time
from typing import Optional

logger = logging.getLogger(__name__)


class Clock:
    """Time source used by limiters and retry policies."""

    def now(self) -> float:
        raise NotImplementedError

    async def sleep(self, seconds: float) -> None:
        raise NotImplementedError


class MonotonicClock(Clock):
    """Real clock backed by ``time.monotonic`` and ``asyncio.sleep``."""

    def now(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        if seconds > 0:
            await asyncio.sleep(seconds)


class RateLimiter:
    """Base rate limiter. ``acquire`` suspends until a call may proceed."""

    async def acquire(self) -> None:
        raise NotImplementedError


class NullRateLimiter(RateLimiter):
    """Limiter that never waits."""

    async def acquire(self) -> None:
        return None


class TokenBucketRateLimiter(RateLimiter):
    """
    Token bucket limiter.

    Tokens refill continuously at ``rate`` per second up to ``capacity``.
    Each acquisition consumes one token, waiting for a refill when empty.
    """

    def __init__(self, rate: float, capacity: int = 1, clock: Optional[Clock] = None):
        if rate <= 0:
            raise ValueError("rate must be positive")
        if capacity < 1:
            raise ValueError("capacity must be at least 1")

        self.rate = rate
        self.capacity = capacity
        self.clock = clock or MonotonicClock()
        self._tokens = float(capacity)
        self._updated_at = self.clock.now()
        self._lock = asyncio.Lock()

    @classmethod
    def per_minute(cls, requests_per_minute: int, burst: int = 1, clock: Optional[Clock] = None) -> "TokenBucketRateLimiter":
        """Create a limiter from a requests-per-minute budget."""
        return cls(rate=requests_per_minute / 60.0, capacity=burst, clock=clock)

    def _refill(self) -> None:
        now = self.clock.now()
        elapsed = now - self._updated_at
        if elapsed > 0:
            self._tokens = min(self.capacity, self._tokens + elapsed * self.rate)
        self._updated_at = now

    async def acquire(self) -> None:
        async with self._lock:
            self._refill()
            if self._tokens < 1:
                wait = (1 - self._tokens) / self.rate
                logger.debug(f"Rate limit reached, waiting {wait:.2f}s")
                await self.clock.sleep(wait)
                self._refill()
            self._tokens -= 1


class MinIntervalRateLimiter(RateLimiter):
    """
    Fixed spacing between consecutive acquisitions.

    The first acquisition is immediate; each later one waits until at least
    ``interval`` seconds have passed since the previous acquisition.
    """

    def __init__(self, interval: float, clock: Optional[Clock] = None):
        self.interval = interval
        self.clock = clock or MonotonicClock()
        self._last: Optional[float] = None
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        async with self._lock:
            if self._last is not None:
                wait = self._last + self.interval - self.clock.now()
                if wait > 0:
                    await self.clock.sleep(wait)
            self._last = self.clock.now()

    def reset(self) -> None:
        """Forget the previous acquisition so the next one is immediate."""
        self._last = None
