"""Background sweep of expired rate limit entries.

The limiter already treats expired entries as absent, so sweeping only bounds
memory for identifiers that stopped sending requests. Without it the store
grows with every distinct identifier ever seen.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Union

from throttle_service.adapters.rate_limit.base import AbstractRateLimiter

logger = logging.getLogger(__name__)

LimiterSource = Union[AbstractRateLimiter, Callable[[], AbstractRateLimiter]]


class ExpiredEntrySweeper:
    """Run ``limiter.sweep()`` on a daemon thread at a fixed interval.

    ``limiter`` may be an instance or a zero-argument factory. A factory is
    called on every sweep, so a limiter rebuilt after startup is the one swept.
    """

    def __init__(self, limiter: LimiterSource, *, interval_seconds: float = 60.0) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")

        self._limiter = limiter
        self._interval = interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> int:
        """Sweep synchronously and return the number of entries removed."""

        limiter = self._limiter() if callable(self._limiter) else self._limiter
        removed = limiter.sweep()
        if removed:
            logger.info(
                "rate_limit.sweep",
                extra={"removed": removed, "interval_s": self._interval},
            )
        return removed

    def start(self) -> None:
        """Start the sweep thread. Calling start() on a running sweeper is a no-op."""

        with self._lock:
            if self.running:
                return
            self._stop_event.clear()
            self._thread = threading.Thread(
                target=self._run,
                name="rate-limit-sweeper",
                daemon=True,
            )
            self._thread.start()

        logger.debug("rate_limit.sweeper_started", extra={"interval_s": self._interval})

    def stop(self, timeout: float = 5.0) -> None:
        """Signal the sweep thread to exit and wait for it."""

        with self._lock:
            thread = self._thread
            self._thread = None
            self._stop_event.set()

        if thread is not None:
            thread.join(timeout=timeout)
            logger.debug("rate_limit.sweeper_stopped")

    def _run(self) -> None:
        # Event.wait returns True once stop() is called.
        while not self._stop_event.wait(self._interval):
            try:
                self.run_once()
            except Exception:
                logger.exception("rate_limit.sweep_failed")
