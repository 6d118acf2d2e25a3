from .lockout import LockoutStatus, LockoutTracker
from .rate_limiter import (
    POLICIES,
    CounterStore,
    InMemoryCounterStore,
    RateLimiter,
    RateLimitPolicy,
    RateLimitResult,
)

__all__ = [
    "LockoutStatus",
    "LockoutTracker",
    "POLICIES",
    "CounterStore",
    "InMemoryCounterStore",
    "RateLimiter",
    "RateLimitPolicy",
    "RateLimitResult",
]
