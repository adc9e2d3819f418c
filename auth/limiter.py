"""
auth/limiter.py -- Per-identity login attempt limiter.

Policy (defaults: 5 attempts per 15-minute window):
  - No entry, or the window has passed: ALLOWED, entry reset to (1, now + window).
  - Entry live and attempt_count < max: ALLOWED, attempt_count += 1.
  - Entry live and attempt_count >= max: THROTTLED. The count is not bumped and
    the remaining window time is never disclosed.
  - reset(identity) after a successful credential check drops the entry, so a
    good login always clears accumulated attempts.

Every attempt counts, not only failures: the check happens before the password
is verified, which is why five wrong passwords lock out even a correct sixth.

Known weaknesses, kept as-is:
  - The key is the username verbatim. "Admin" and "admin" are separate
    counters, so case variations bypass the limit.
  - There is no per-source dimension; an attacker spraying many usernames is
    not slowed down.
  - State lives in this process only. Multiple replicas each keep their own.

Memory: entries whose window has passed are swept out, so a spray of unique
usernames cannot grow the map without bound.

Concurrency: one threading.Lock around every check-then-update so concurrent
logins for the same identity cannot lose increments.

Layer rule: no imports from api/ or records/.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from enum import Enum

from auth.models import RateLimitEntry

logger = logging.getLogger("meshauth.auth")

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_WINDOW_SECONDS = 15 * 60
DEFAULT_SWEEP_THRESHOLD = 10_000


class LimitDecision(str, Enum):
    ALLOWED = "allowed"
    THROTTLED = "throttled"


class LoginRateLimiter:
    """Fixed-window attempt counter keyed by identity string.

    clock returns the current time in epoch seconds; tests inject a fake one.

    Expired entries are dropped by an opportunistic sweep inside check(): once
    per window, and whenever the map reaches sweep_threshold entries. After a
    sweep the size trigger moves to twice the surviving count, so a burst of
    live keys costs amortized O(1) per check.
    """

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
        sweep_threshold: int = DEFAULT_SWEEP_THRESHOLD,
    ) -> None:
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self.sweep_threshold = sweep_threshold
        self._clock = clock
        self._entries: dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()
        self._sweep_at = sweep_threshold
        self._next_sweep = 0.0

    def check(self, identity: str) -> LimitDecision:
        """Record one login attempt for identity and decide whether it may proceed."""
        with self._lock:
            now = self._clock()
            if len(self._entries) >= self._sweep_at or now >= self._next_sweep:
                self._sweep(now)
            entry = self._entries.get(identity)
            if entry is None or now >= entry.window_reset_at:
                self._entries[identity] = RateLimitEntry(attempt_count=1, window_reset_at=now + self.window_seconds)
                return LimitDecision.ALLOWED
            if entry.attempt_count >= self.max_attempts:
                logger.warning("login throttled for identity=%r", identity)
                return LimitDecision.THROTTLED
            entry.attempt_count += 1
            return LimitDecision.ALLOWED

    def reset(self, identity: str) -> None:
        """Forget all attempts for identity. Called after a successful login."""
        with self._lock:
            self._entries.pop(identity, None)

    def attempts(self, identity: str) -> int:
        """Return the live attempt count for identity (0 if none or expired)."""
        with self._lock:
            entry = self._entries.get(identity)
            if entry is None or self._clock() >= entry.window_reset_at:
                return 0
            return entry.attempt_count

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _sweep(self, now: float) -> None:
        # Caller holds self._lock.
        expired = [key for key, entry in self._entries.items() if now >= entry.window_reset_at]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("limiter sweep dropped %d expired entries", len(expired))
        self._sweep_at = max(self.sweep_threshold, 2 * len(self._entries))
        self._next_sweep = now + self.window_seconds
