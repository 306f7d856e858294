"""Per-tool token bucket rate limiting."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from mcpk8s.runtime.errors import RateLimitExceededError

Clock = Callable[[], float]


@dataclass
class TokenBucket:
    """Holds up to ``capacity`` tokens and refills ``refill_per_second`` per second."""

    capacity: int
    refill_per_second: float
    tokens: float
    last_refill: float

    def try_take(self, now: float) -> bool:
        elapsed = max(now - self.last_refill, 0.0)
        self.tokens = min(float(self.capacity), self.tokens + elapsed * self.refill_per_second)
        self.last_refill = now
        if self.tokens >= 1:
            self.tokens -= 1
            return True
        return False


class RateLimiter:
    """Token buckets keyed by tool name, shared by every caller of that tool.

    Buckets are created lazily with ``capacity=burst`` and a full set of
    tokens.  All bucket access goes through one lock.
    """

    def __init__(self, clock: Clock = time.monotonic) -> None:
        self._clock = clock
        self._buckets: dict[str, TokenBucket] = {}
        self._lock = threading.Lock()

    def acquire(self, tool_name: str, burst: int, rate: float) -> None:
        """Take one token for *tool_name* or raise :class:`RateLimitExceededError`."""
        with self._lock:
            now = self._clock()
            bucket = self._buckets.get(tool_name)
            if bucket is None:
                bucket = TokenBucket(
                    capacity=burst, refill_per_second=rate, tokens=float(burst), last_refill=now
                )
                self._buckets[tool_name] = bucket
            if not bucket.try_take(now):
                raise RateLimitExceededError(tool_name)

    def tokens(self, tool_name: str) -> float | None:
        """Remaining tokens for *tool_name* (``None`` if never seen)."""
        with self._lock:
            bucket = self._buckets.get(tool_name)
            return None if bucket is None else bucket.tokens
