"""Fixed-window request rate limiting keyed by action and client IP"""

import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, Optional, Tuple

from ..utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RateLimitPolicy:
    name: str
    window_seconds: int
    max_requests: int


# Named policies applied by the API handlers
POLICIES: Dict[str, RateLimitPolicy] = {
    "login": RateLimitPolicy("login", 15 * 60, 5),
    "sms-code": RateLimitPolicy("sms-code", 10 * 60, 3),
    "contact": RateLimitPolicy("contact", 60 * 60, 5),
    "booking": RateLimitPolicy("booking", 60 * 60, 10),
    "api": RateLimitPolicy("api", 60, 100),
}


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: float
    retry_after: Optional[int] = None


class CounterStore(ABC):
    """Window counters. Implementations must make increment atomic per key."""

    @abstractmethod
    def increment(self, key: str, window_seconds: float, now: float) -> Tuple[int, float]:
        """Count one hit; returns (count in current window, window reset time)"""

    @abstractmethod
    def reap(self, now: float) -> int:
        """Drop entries whose window has ended; returns how many were removed"""


class InMemoryCounterStore(CounterStore):
    """
    Process-local counters.

    Not shared between workers or instances and lost on restart; back the
    limiter with an external atomic counter store for multi-instance
    deployments.
    """

    def __init__(self):
        self._entries: Dict[str, Tuple[int, float]] = {}
        self._lock = Lock()

    def increment(self, key: str, window_seconds: float, now: float) -> Tuple[int, float]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or now > entry[1]:
                entry = (1, now + window_seconds)
            else:
                entry = (entry[0] + 1, entry[1])
            self._entries[key] = entry
            return entry

    def reap(self, now: float) -> int:
        with self._lock:
            expired = [key for key, (_, reset_at) in self._entries.items() if now > reset_at]
            for key in expired:
                del self._entries[key]
            return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


class RateLimiter:
    """
    Fixed-window limiter.

    A counter keyed by "<action>:<ip>" starts at the first request and resets
    entirely once its window elapses. Bursts straddling a window boundary can
    reach twice the limit; that is accepted.
    """

    def __init__(self, store: Optional[CounterStore] = None, clock: Callable[[], float] = time.time):
        self.store = store if store is not None else InMemoryCounterStore()
        self.clock = clock

    def check(self, key: str, window_seconds: float, max_requests: int) -> RateLimitResult:
        now = self.clock()
        count, reset_at = self.store.increment(key, window_seconds, now)

        if count > max_requests:
            retry_after = max(1, math.ceil(reset_at - now))
            return RateLimitResult(allowed=False, remaining=0, reset_at=reset_at, retry_after=retry_after)

        return RateLimitResult(allowed=True, remaining=max_requests - count, reset_at=reset_at)

    def hit(self, policy: RateLimitPolicy, client_ip: str) -> RateLimitResult:
        result = self.check(f"{policy.name}:{client_ip}", policy.window_seconds, policy.max_requests)
        if not result.allowed:
            logger.warning(
                "Rate limit exceeded",
                action=policy.name,
                client_ip=client_ip,
                retry_after=result.retry_after,
            )
        return result

    def reap_expired(self) -> int:
        return self.store.reap(self.clock())
