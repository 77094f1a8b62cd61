"""In-memory sliding-window rate limiter for the HTTP endpoint."""

from __future__ import annotations

import math
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after: int


class SlidingWindowRateLimiter:
    """Allow at most ``max_requests`` hits per key within any ``window_seconds`` span.

    A non-positive ``max_requests`` disables limiting. Keys whose hits have all
    expired are dropped, and a full sweep of stale keys runs at most once per
    window, so client-chosen keys cannot grow memory without bound.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._hits: Dict[str, Deque[float]] = {}
        self._last_sweep = clock()

    def hit(self, key: str) -> RateLimitDecision:
        """Record a request for ``key`` unless it would exceed the window budget."""
        if self.max_requests <= 0:
            return RateLimitDecision(allowed=True, limit=0, remaining=0, retry_after=0)

        now = self._clock()
        with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(now)

            window = self._hits.get(key)
            if window is not None:
                self._prune(window, now)
            if not window:
                window = self._hits[key] = deque()

            if len(window) >= self.max_requests:
                retry_after = max(1, math.ceil(window[0] + self.window_seconds - now))
                return RateLimitDecision(
                    allowed=False, limit=self.max_requests, remaining=0, retry_after=retry_after
                )

            window.append(now)
            reset = math.ceil(window[0] + self.window_seconds - now)
            return RateLimitDecision(
                allowed=True,
                limit=self.max_requests,
                remaining=self.max_requests - len(window),
                retry_after=reset,
            )

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._hits)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()

    def _prune(self, window: Deque[float], now: float) -> None:
        while window and (now - window[0]) >= self.window_seconds:
            window.popleft()

    def _sweep(self, now: float) -> None:
        for key in list(self._hits):
            window = self._hits[key]
            self._prune(window, now)
            if not window:
                del self._hits[key]
        self._last_sweep = now
