"""Rate limiting adapters.

This package provides a small abstraction layer so the service can run with an
in-memory fixed-window limiter and later move to a shared store without
changing the API layer.
"""

from throttle_service.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimitPolicy,
    RateLimitResult,
)
from throttle_service.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from throttle_service.adapters.rate_limit.sweeper import ExpiredEntrySweeper

__all__ = [
    "AbstractRateLimiter",
    "ExpiredEntrySweeper",
    "InMemoryFixedWindowRateLimiter",
    "RateLimitPolicy",
    "RateLimitResult",
]
