from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass
from threading import Lock
from time import monotonic

from video_library.errors import RateLimitedError


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after_seconds: int


class SlidingWindowRateLimiter:
    """Per-key attempt counter over a sliding time window, shared across request threads."""

    def __init__(self, *, max_requests: int, window_seconds: int) -> None:
        self._max_requests = max(1, max_requests)
        self._window_seconds = max(1, window_seconds)
        self._lock = Lock()
        self._buckets: dict[str, deque[float]] = {}

    def take(self, key: str) -> RateLimitDecision:
        now = monotonic()
        cutoff = now - self._window_seconds

        with self._lock:
            bucket = self._buckets.setdefault(key, deque())
            while bucket and bucket[0] <= cutoff:
                bucket.popleft()

            if len(bucket) >= self._max_requests:
                return RateLimitDecision(
                    allowed=False,
                    limit=self._max_requests,
                    remaining=0,
                    retry_after_seconds=max(
                        1,
                        math.ceil((bucket[0] + self._window_seconds) - now),
                    ),
                )

            bucket.append(now)
            return RateLimitDecision(
                allowed=True,
                limit=self._max_requests,
                remaining=max(self._max_requests - len(bucket), 0),
                retry_after_seconds=0,
            )

    def enforce(self, key: str) -> RateLimitDecision:
        decision = self.take(key)
        if not decision.allowed:
            raise RateLimitedError(
                "Too many login attempts, try again later",
                retry_after_seconds=decision.retry_after_seconds,
            )
        return decision

    def forget(self, key: str) -> None:
        with self._lock:
            self._buckets.pop(key, None)
