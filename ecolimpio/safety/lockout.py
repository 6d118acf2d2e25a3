"""Temporary lockout of an identity after repeated failed attempts"""

import math
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, Optional

from ..utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class LockoutStatus:
    locked: bool
    attempts_remaining: Optional[int] = None
    lockout_minutes: Optional[int] = None


@dataclass
class _Entry:
    count: int = 0
    locked_until: Optional[float] = None


class LockoutTracker:
    """
    Failure counter per identity (email for logins, phone for SMS codes).

    The failure that reaches `max_attempts` locks the identity for
    `lockout_seconds`. A success clears the counter. Once a lock has passed the
    entry is dropped, so counting restarts from zero. One tracker instance per
    identity kind keeps keyspaces apart.
    """

    def __init__(
        self,
        kind: str,
        max_attempts: int = 5,
        lockout_seconds: int = 15 * 60,
        clock: Callable[[], float] = time.time,
    ):
        self.kind = kind
        self.max_attempts = max_attempts
        self.lockout_seconds = lockout_seconds
        self.clock = clock
        self._entries: Dict[str, _Entry] = {}
        self._lock = Lock()

    @staticmethod
    def _key(identity: str) -> str:
        return identity.strip().lower()

    def _active_lock(self, key: str, now: float) -> Optional[LockoutStatus]:
        """Caller holds the lock."""
        entry = self._entries.get(key)
        if entry is None or entry.locked_until is None:
            return None
        if now < entry.locked_until:
            minutes = math.ceil((entry.locked_until - now) / 60)
            return LockoutStatus(locked=True, lockout_minutes=minutes)
        del self._entries[key]
        return None

    def is_locked(self, identity: str) -> LockoutStatus:
        with self._lock:
            status = self._active_lock(self._key(identity), self.clock())
        return status or LockoutStatus(locked=False)

    def record_attempt(self, identity: str, success: bool) -> LockoutStatus:
        key = self._key(identity)
        now = self.clock()
        with self._lock:
            status = self._active_lock(key, now)
            if status is not None:
                return status

            if success:
                self._entries.pop(key, None)
                return LockoutStatus(locked=False)

            entry = self._entries.setdefault(key, _Entry())
            entry.count += 1
            if entry.count >= self.max_attempts:
                entry.locked_until = now + self.lockout_seconds
                locked_minutes = math.ceil(self.lockout_seconds / 60)
            else:
                return LockoutStatus(locked=False, attempts_remaining=self.max_attempts - entry.count)

        logger.warning("Identity locked out", kind=self.kind, failures=self.max_attempts)
        return LockoutStatus(locked=True, lockout_minutes=locked_minutes)

    def reset(self, identity: str) -> None:
        with self._lock:
            self._entries.pop(self._key(identity), None)

    def reap_expired(self) -> int:
        """Drop entries whose lock has passed"""
        now = self.clock()
        with self._lock:
            expired = [
                key for key, entry in self._entries.items()
                if entry.locked_until is not None and now >= entry.locked_until
            ]
            for key in expired:
                del self._entries[key]
        return len(expired)
