"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: identifiers hash onto a pool of striped locks, so the
  read-modify-write for one identifier is atomic without serializing
  unrelated identifiers behind a single lock.
- Expired entries are treated as absent on read; sweep() only reclaims memory.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from throttle_service.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimitPolicy,
    RateLimitResult,
    validate_policy,
)


@dataclass
class _ThrottleEntry:
    count: int
    reset_at_ms: int


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter using a fixed time window per identifier.

    A window starts at the first request for an identifier (or the first
    request after the previous window ended) and lasts ``window_seconds``.
    The policy is supplied per call, so one instance can serve every policy
    as long as callers namespace their identifiers.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.time,
        lock_stripes: int = 64,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            clock: Time source function returning UNIX time in seconds.
            lock_stripes: Number of locks identifiers are spread across.

        Raises:
            ValueError: If lock_stripes is invalid.
        """
        if lock_stripes < 1:
            raise ValueError("lock_stripes must be >= 1")

        self._clock = clock
        self._locks = [threading.Lock() for _ in range(lock_stripes)]
        self._entries: dict[str, _ThrottleEntry] = {}

    @property
    def size(self) -> int:
        """Number of stored entries, including expired ones not yet swept."""
        return len(self._entries)

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _lock_for(self, identifier: str) -> threading.Lock:
        return self._locks[hash(identifier) % len(self._locks)]

    def _build_allowed_result(self, *, limit: int, remaining: int, reset_at_ms: int) -> RateLimitResult:
        """Build a RateLimitResult for an allowed request."""
        return RateLimitResult(
            allowed=True,
            limit=limit,
            remaining=remaining,
            reset_at_ms=reset_at_ms,
            retry_after_seconds=None,
        )

    def _build_blocked_result(self, *, now_ms: int, limit: int, reset_at_ms: int) -> RateLimitResult:
        """Build a RateLimitResult for a blocked request."""
        retry_after = max(0, int(math.ceil((reset_at_ms - now_ms) / 1000)))
        return RateLimitResult(
            allowed=False,
            limit=limit,
            remaining=0,
            reset_at_ms=reset_at_ms,
            retry_after_seconds=retry_after,
        )

    def check(self, identifier: str, policy: RateLimitPolicy) -> RateLimitResult:
        """Count one request for identifier and decide whether it may proceed.

        This method both checks the current window usage and mutates the state
        if the request is allowed. A blocked request leaves the entry untouched.

        Args:
            identifier: Key naming the caller. Any string is accepted, the empty
                string included; callers are responsible for namespacing.
            policy: Limit and window to enforce.

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            InvalidPolicyError: If the policy limit or window is not positive.
        """
        validate_policy(policy)

        with self._lock_for(identifier):
            now_ms = self._now_ms()
            entry = self._entries.get(identifier)

            if entry is None or entry.reset_at_ms <= now_ms:
                entry = _ThrottleEntry(count=1, reset_at_ms=now_ms + policy.window_ms)
                self._entries[identifier] = entry
                return self._build_allowed_result(
                    limit=policy.limit,
                    remaining=policy.limit - 1,
                    reset_at_ms=entry.reset_at_ms,
                )

            if entry.count < policy.limit:
                entry.count += 1
                return self._build_allowed_result(
                    limit=policy.limit,
                    remaining=max(0, policy.limit - entry.count),
                    reset_at_ms=entry.reset_at_ms,
                )

            return self._build_blocked_result(
                now_ms=now_ms,
                limit=policy.limit,
                reset_at_ms=entry.reset_at_ms,
            )

    def sweep(self) -> int:
        """Remove entries whose window has ended.

        Returns:
            Number of entries removed.
        """
        now_ms = self._now_ms()
        removed = 0

        # dict.copy() is atomic, iterating self._entries directly is not.
        for identifier, entry in self._entries.copy().items():
            if entry.reset_at_ms > now_ms:
                continue
            with self._lock_for(identifier):
                current = self._entries.get(identifier)
                # A concurrent check may already have started a fresh window.
                if current is not None and current.reset_at_ms <= now_ms:
                    del self._entries[identifier]
                    removed += 1

        return removed

    def reset(self, identifier: str | None = None) -> None:
        """Forget one identifier, or every identifier when none is given."""
        if identifier is None:
            for lock in self._locks:
                lock.acquire()
            try:
                self._entries.clear()
            finally:
                for lock in self._locks:
                    lock.release()
            return

        with self._lock_for(identifier):
            self._entries.pop(identifier, None)
