"""
Sliding-window rate limiter for outbound navigations.

Every browser navigation and raw HTTP request to a remote site is admitted
here first. At most `limit` admissions fall inside any trailing window of
`window_seconds`; the caller that would exceed it sleeps until the oldest
admission leaves the window.

Design:
- One asyncio.Lock guards the window; it is held across the wait so queued
  callers are admitted strictly in arrival order
- Timestamps come from a monotonic clock (injectable for tests)
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from collections.abc import Callable

from partscout.utils.logging import get_logger

logger = get_logger(__name__)


class SlidingWindowRateLimiter:
    """Process-wide admission control over a trailing time window.

    Example:
        limiter = get_navigation_rate_limiter()
        await limiter.admit()
        await page.goto(url)
    """

    def __init__(
        self,
        limit: int = 60,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize rate limiter.

        Args:
            limit: Maximum admissions within one window.
            window_seconds: Length of the trailing window in seconds.
            clock: Monotonic time source.
        """
        if limit < 1:
            raise ValueError("limit must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._window: deque[float] = deque()
        self._lock = asyncio.Lock()
        self._total_admitted = 0
        self._total_waits = 0

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    def _evict(self, now: float) -> None:
        cutoff = now - self._window_seconds
        while self._window and self._window[0] <= cutoff:
            self._window.popleft()

    async def admit(self) -> None:
        """Wait until the window has room, then record one admission."""
        async with self._lock:
            now = self._clock()
            self._evict(now)

            while len(self._window) >= self._limit:
                wait = self._window[0] + self._window_seconds - now
                self._total_waits += 1
                logger.debug(
                    "Rate limiting: waiting",
                    wait_seconds=round(wait, 3),
                    in_window=len(self._window),
                    limit=self._limit,
                )
                await asyncio.sleep(max(wait, 0.0))
                now = self._clock()
                self._evict(now)

            self._window.append(now)
            self._total_admitted += 1

    def get_stats(self) -> dict[str, float | int]:
        """Get limiter statistics."""
        now = self._clock()
        cutoff = now - self._window_seconds
        return {
            "limit": self._limit,
            "window_seconds": self._window_seconds,
            "in_window": sum(1 for ts in self._window if ts > cutoff),
            "total_admitted": self._total_admitted,
            "total_waits": self._total_waits,
        }


_rate_limiter: SlidingWindowRateLimiter | None = None


def get_navigation_rate_limiter() -> SlidingWindowRateLimiter:
    """Get or create the global navigation rate limiter."""
    global _rate_limiter
    if _rate_limiter is None:
        from partscout.utils.config import get_settings

        settings = get_settings().rate_limit
        _rate_limiter = SlidingWindowRateLimiter(
            limit=settings.limit,
            window_seconds=settings.window_seconds,
        )
    return _rate_limiter


def reset_navigation_rate_limiter() -> None:
    """Reset the global rate limiter (for testing only)."""
    global _rate_limiter
    _rate_limiter = None
