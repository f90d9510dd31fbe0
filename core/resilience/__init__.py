"""Retry and rate-limit primitives shared by the AI and storage layers."""

from .rate_limit import (
    Clock,
    MinIntervalRateLimiter,
    MonotonicClock,
    NullRateLimiter,
    RateLimiter,
    TokenBucketRateLimiter,
)
from .retry import RetryPolicy, retry_if_retryable

__all__ = [
    "Clock",
    "MonotonicClock",
    "RateLimiter",
    "NullRateLimiter",
    "TokenBucketRateLimiter",
    "MinIntervalRateLimiter",
    "RetryPolicy",
    "retry_if_retryable",
]
