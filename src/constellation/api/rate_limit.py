"""Process-local sliding-window rate limiter."""

from __future__ import annotations

import ipaddress
import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable

log = logging.getLogger(__name__)

ANONYMOUS_CLIENT = "anonymous"


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    retry_after_seconds: float = 0.0


class SlidingWindowRateLimiter:
    """Counts request timestamps per key over a trailing window.

    State lives in this process only; several workers each enforce their
    own limit. Idle keys are evicted once more than ``max_tracked_keys``
    are held.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, max_tracked_keys: int = 10_000) -> None:
        self._clock = clock
        self._max_tracked_keys = max_tracked_keys
        self._hits: dict[str, deque[float]] = {}
        self._lock = threading.Lock()

    def check(self, key: str, max_requests: int, window_seconds: float) -> RateLimitDecision:
        """Record a hit for ``key`` if it is under ``max_requests`` in the window."""
        now = self._clock()
        cutoff = now - window_seconds
        with self._lock:
            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= cutoff:
                hits.popleft()
            if len(hits) >= max_requests:
                retry_after = window_seconds - (now - hits[0]) if hits else window_seconds
                return RateLimitDecision(allowed=False, retry_after_seconds=max(retry_after, 0.0))
            hits.append(now)
            if len(self._hits) > self._max_tracked_keys:
                self._evict(cutoff)
        return RateLimitDecision(allowed=True)

    def _evict(self, cutoff: float) -> None:
        stale = [k for k, hits in self._hits.items() if not hits or hits[-1] <= cutoff]
        for key in stale:
            del self._hits[key]
        log.debug("Evicted %d idle rate-limit keys", len(stale))

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._hits)


def client_identifier(forwarded_for: str | None) -> str:
    """First ``X-Forwarded-For`` hop when it is a valid IP, else ``anonymous``."""
    if not forwarded_for:
        return ANONYMOUS_CLIENT
    candidate = forwarded_for.split(",")[0].strip()
    try:
        return str(ipaddress.ip_address(candidate))
    except ValueError:
        return ANONYMOUS_CLIENT
