"""In-memory sliding window rate limiter implementation."""

from __future__ import annotations

import math
import time
from collections import deque
from threading import Lock
from typing import Callable, DefaultDict, Deque


class SlidingWindowRateLimiter:
    """Thread-safe per-key sliding window limiter for the auth endpoints."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialise limiter parameters and per-key storage."""
        self._max_requests = max_requests
        self._window = window_seconds
        self._clock = clock
        self._events: DefaultDict[str, Deque[float]] = DefaultDict(deque)
        self._lock = Lock()

    def hit(self, key: str) -> int:
        """Record a request for ``key``.

        Returns ``0`` when the request is admitted, otherwise the number of seconds
        until the oldest request in the window expires.
        """
        now = self._clock()
        with self._lock:
            window = self._events[key]
            while window and now - window[0] >= self._window:
                window.popleft()
            if len(window) >= self._max_requests:
                return max(1, math.ceil(self._window - (now - window[0])))
            window.append(now)
            return 0

    def allow(self, key: str) -> bool:
        return self.hit(key) == 0
