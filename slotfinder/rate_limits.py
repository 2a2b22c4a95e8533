"""Request pacing for the destination tracker of a check run."""

from __future__ import annotations

import asyncio
import time
from collections import deque

from slotfinder.tracker_profile import TrackerProfile

# Minimum spacing between two request starts on one tracker.
TRACKER_MIN_INTERVAL_SECONDS = 2.0
TRACKER_WAIT_LOG_THRESHOLD_SECONDS = 1.75
TRACKER_RATE_LIMIT_WINDOW_SECONDS = 10.0


class RequestPacer:
    """Spaces request starts and caps how many start inside a sliding window.

    One pacer belongs to one destination adapter; concurrent callers queue on
    its lock so the spacing holds across the adapter's semaphore slots.
    """

    def __init__(
        self,
        min_interval_seconds: float = TRACKER_MIN_INTERVAL_SECONDS,
        request_limit: int | None = None,
        window_seconds: float = TRACKER_RATE_LIMIT_WINDOW_SECONDS,
    ):
        self.min_interval_seconds = max(0.0, float(min_interval_seconds))
        self.request_limit = request_limit
        self.window_seconds = window_seconds
        self._lock = asyncio.Lock()
        self._last_start: float | None = None
        self._window_starts: deque[float] = deque()

    @classmethod
    def for_profile(
        cls,
        profile: TrackerProfile,
        min_interval_seconds: float = TRACKER_MIN_INTERVAL_SECONDS,
    ) -> "RequestPacer":
        return cls(min_interval_seconds, request_limit=profile.request_limit)

    def _delay(self, now: float) -> float:
        delay = 0.0
        if self._last_start is not None:
            delay = self._last_start + self.min_interval_seconds - now
        if self.request_limit:
            while self._window_starts and self._window_starts[0] <= now - self.window_seconds:
                self._window_starts.popleft()
            if len(self._window_starts) >= self.request_limit:
                delay = max(delay, self._window_starts[0] + self.window_seconds - now)
        return max(delay, 0.0)

    async def wait(self) -> float:
        """Sleep until the next request may start; returns the seconds waited."""
        async with self._lock:
            delay = self._delay(time.monotonic())
            if delay > 0:
                await asyncio.sleep(delay)
            started = time.monotonic()
            self._last_start = started
            if self.request_limit:
                self._window_starts.append(started)
            return delay
