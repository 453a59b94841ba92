"""
In-memory sliding window rate limiter

Module: transport.rate_limit
Date: 2026-10-05
Version: 0.1.1

CHANGELOG:
[2026-10-16 v0.1.1] Bounded key table
  - Keys with no hits left in the window are dropped
  - Idle keys swept at most once per window
[2026-10-05 v0.1.0] Initial implementation

Used on the login route to slow down credential guessing across
accounts. Per-account lockout is handled separately by
AccountAuthenticator.
"""

import threading
import time
from collections import deque
from typing import Callable, Deque, Dict


class InMemoryRateLimiter:
    """Allows at most `limit` hits per key inside a sliding `window_seconds`"""

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._limit = max(1, int(limit))
        self._window = max(0.1, float(window_seconds))
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def allow(self, key: str) -> bool:
        now = self._clock()
        with self._lock:
            if now - self._last_sweep >= self._window:
                self._sweep(now)

            hits = self._hits.get(key)
            if hits is not None:
                self._drop_old(hits, now)
                if not hits:
                    del self._hits[key]
                    hits = None

            if hits is not None and len(hits) >= self._limit:
                return False
            if hits is None:
                hits = self._hits[key] = deque()
            hits.append(now)
            return True

    def reset(self, key: str) -> None:
        with self._lock:
            self._hits.pop(key, None)

    def __len__(self) -> int:
        """Number of keys currently tracked"""
        with self._lock:
            return len(self._hits)

    def _drop_old(self, hits: Deque[float], now: float) -> None:
        while hits and (now - hits[0]) >= self._window:
            hits.popleft()

    def _sweep(self, now: float) -> None:
        for key in list(self._hits):
            hits = self._hits[key]
            self._drop_old(hits, now)
            if not hits:
                del self._hits[key]
        self._last_sweep = now
