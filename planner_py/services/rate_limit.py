# planner_py/services/rate_limit.py
# Sliding-window request quota per client address (in-process, per worker).

from __future__ import annotations

import math
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict


@dataclass(frozen=True)
class RateLimitResult:
    success: bool
    limit: int
    remaining: int
    reset: int  # epoch seconds

    def headers(self) -> Dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset),
        }


class SlidingWindowRateLimiter:
    """Clients with no hits left in the window are forgotten; check() sweeps
    them at most once per window, so memory tracks recent clients only."""

    def __init__(self, limit: int, window_seconds: float, clock: Callable[[], float] = time.time):
        self.limit = limit
        self.window = window_seconds
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    @property
    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._hits)

    def check(self, key: str) -> RateLimitResult:
        now = self._clock()
        with self._lock:
            if now - self._last_sweep >= self.window:
                self._sweep(now)

            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= now - self.window:
                hits.popleft()

            if len(hits) >= self.limit:
                reset = math.ceil(hits[0] + self.window)
                return RateLimitResult(False, self.limit, 0, reset)

            hits.append(now)
            return RateLimitResult(True, self.limit, self.limit - len(hits), math.ceil(now + self.window))

    def cleanup(self) -> int:
        """Drop keys with no hits left in the window; returns how many were dropped."""
        with self._lock:
            return self._sweep(self._clock())

    def _sweep(self, now: float) -> int:
        # caller holds the lock
        stale = [k for k, hits in self._hits.items() if not hits or hits[-1] <= now - self.window]
        for k in stale:
            del self._hits[k]
        self._last_sweep = now
        return len(stale)
