# beacon_sdk/limits.py
# SPDX-License-Identifier: Apache-2.0
"""
Local request rate limiting.

Only the gating contract matters to the client: ``check()`` records one
request attempt and returns True when that attempt is over the limit. The
orchestrator never waits for capacity; a limited request fails immediately.
"""

from __future__ import annotations

import collections
import time
from typing import Callable, Deque, Optional, Protocol

TimeFn = Callable[[], float]


class RateLimiter(Protocol):
    """Non-blocking limiter interface."""
    def check(self) -> bool: ...


class NoopLimiter:
    """Never limits."""
    def check(self) -> bool:
        return False


class SlidingWindowLimiter:
    """
    Count attempts over a rolling window; per-process only.

    Every call to ``check`` counts, including refused ones, so a caller
    hammering the client stays limited until it backs off for a full window.
    Disabled if limit <= 0 or window_s <= 0.
    """

    def __init__(
        self,
        *,
        limit: int = 2,
        window_s: float = 5.0,
        now_fn: Optional[TimeFn] = None,
    ) -> None:
        self.limit = max(0, int(limit))
        self.window_s = max(0.0, float(window_s))
        self._now = now_fn or time.monotonic
        self._events: Deque[float] = collections.deque()
        self._enabled = self.limit > 0 and self.window_s > 0

    def check(self) -> bool:
        if not self._enabled:
            return False

        now = self._now()
        cutoff = now - self.window_s
        events = self._events
        while events and events[0] <= cutoff:
            events.popleft()

        events.append(now)
        return len(events) > self.limit

    def reset(self) -> None:
        self._events.clear()


__all__ = ["RateLimiter", "NoopLimiter", "SlidingWindowLimiter"]
