"""
Sliding-window rate limiter for the completion API.

Owned by whoever constructs the completion client, so each client (and
each test) gets its own counters instead of sharing process-wide state.
"""

import asyncio
import logging
import time
from collections import deque
from typing import Awaitable, Callable, Deque, Optional


logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Allows at most `max_requests` acquisitions per `window_seconds`.

    After the upstream reports a rate-limit response, `record_rate_limited`
    pauses all acquisitions for `backoff_seconds`.

    Attributes:
        max_requests: Requests allowed inside one window
        window_seconds: Length of the sliding window
        backoff_seconds: Pause applied after an upstream 429
    """

    def __init__(
        self,
        max_requests: int = 50,
        window_seconds: float = 60.0,
        backoff_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.backoff_seconds = backoff_seconds
        self._clock = clock
        self._sleep = sleep
        self._timestamps: Deque[float] = deque(maxlen=max_requests)
        self._backoff_until: Optional[float] = None
        self._lock = asyncio.Lock()

    @property
    def in_flight_window(self) -> int:
        """Number of acquisitions still inside the current window."""
        self._prune(self._clock())
        return len(self._timestamps)

    def _prune(self, now: float) -> None:
        while self._timestamps and now - self._timestamps[0] >= self.window_seconds:
            self._timestamps.popleft()

    def _wait_time(self, now: float) -> float:
        if self._backoff_until is not None:
            if now < self._backoff_until:
                return self._backoff_until - now
            self._backoff_until = None

        self._prune(now)
        if len(self._timestamps) < self.max_requests:
            return 0.0
        return self.window_seconds - (now - self._timestamps[0])

    async def acquire(self) -> None:
        """Wait until a request slot is available, then take it."""
        async with self._lock:
            while True:
                now = self._clock()
                wait = self._wait_time(now)
                if wait <= 0:
                    self._timestamps.append(now)
                    return
                logger.debug(f"Rate limit reached, waiting {wait:.2f}s")
                await self._sleep(wait)

    def record_rate_limited(self) -> None:
        """Start a backoff period after an upstream rate-limit response."""
        self._backoff_until = self._clock() + self.backoff_seconds
        logger.warning(
            f"Upstream rate limit hit, backing off for {self.backoff_seconds:.0f}s"
        )
