"""Per-client rate limiting.

Design:
- Sliding window per client address (default 100 requests per 60 seconds).
- In-memory and per process.
- Keys whose window is empty are dropped, and idle keys are swept at most
  once per window, so memory tracks active clients only.
"""

from __future__ import annotations

import time
from collections import deque
from typing import Callable

from fastapi import HTTPException, status


class RateLimitExceeded(HTTPException):
    pass


class SlidingWindowRateLimiter:
    """Simple per-process limiter.

    Intended for single-worker deployments; with several workers the limit
    applies per worker.
    """

    def __init__(
        self,
        *,
        max_requests: int,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max = max_requests
        self._window = window_seconds
        self._clock = clock
        self._requests: dict[str, deque[float]] = {}
        self._last_sweep = clock()

    def __len__(self) -> int:
        return len(self._requests)

    def _trim(self, q: deque[float], now: float) -> None:
        window_start = now - self._window
        while q and q[0] <= window_start:
            q.popleft()

    def _sweep(self, now: float) -> None:
        if now - self._last_sweep < self._window:
            return
        self._last_sweep = now
        for key in list(self._requests):
            q = self._requests[key]
            self._trim(q, now)
            if not q:
                del self._requests[key]

    def is_allowed(self, key: str) -> bool:
        now = self._clock()
        self._sweep(now)
        q = self._requests.get(key)
        if q is not None:
            self._trim(q, now)
            if len(q) >= self._max:
                return False
        else:
            q = self._requests[key] = deque()
        q.append(now)
        return True

    def remaining(self, key: str) -> int:
        q = self._requests.get(key)
        if q is None:
            return self._max
        self._trim(q, self._clock())
        if not q:
            del self._requests[key]
            return self._max
        return max(0, self._max - len(q))

    def check(self, key: str) -> None:
        if not self.is_allowed(key):
            raise RateLimitExceeded(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Rate limit exceeded. Please try again later.",
            )
