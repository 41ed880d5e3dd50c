"""
Per-caller request rate limiting.

RateLimiter is the seam callers depend on. FixedWindowRateLimiter is an
in-memory, single-process implementation; counters are not shared between
instances, so a multi-instance deployment needs a shared-store
implementation behind the same interface.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Tuple

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 5
DEFAULT_WINDOW_SECONDS = 60 * 60
DEFAULT_PRUNE_EVERY = 256


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after_seconds: float = 0.0


class RateLimiter(ABC):
    """Decides whether a caller may make another request"""

    @abstractmethod
    def check(self, key: str) -> RateLimitDecision:
        """Count one request for key and return the decision"""

    def reset(self, key: str = None) -> None:
        """Forget counters for key, or for everyone"""


class FixedWindowRateLimiter(RateLimiter):
    """
    Fixed-window counter: the first request from a caller opens a window of
    window_seconds; at most `limit` requests are allowed inside it.
    """

    def __init__(
        self,
        limit: int = DEFAULT_LIMIT,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        prune_every: int = DEFAULT_PRUNE_EVERY,
    ):
        if limit < 1:
            raise ValueError("limit must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        # key -> (count, window reset time)
        self._windows: Dict[str, Tuple[int, float]] = {}
        self._prune_every = max(1, prune_every)
        self._checks = 0

    def check(self, key: str) -> RateLimitDecision:
        now = self._clock()
        with self._lock:
            self._checks += 1
            if self._checks % self._prune_every == 0:
                self._prune(now)

            count, reset_at = self._windows.get(key, (0, 0.0))

            if count == 0 or now >= reset_at:
                self._windows[key] = (1, now + self.window_seconds)
                return RateLimitDecision(allowed=True, remaining=self.limit - 1)

            if count >= self.limit:
                retry_after = reset_at - now
                logger.warning(f"Rate limit exceeded for {key} - retry in {retry_after:.0f}s")
                return RateLimitDecision(allowed=False, remaining=0, retry_after_seconds=retry_after)

            self._windows[key] = (count + 1, reset_at)
            return RateLimitDecision(allowed=True, remaining=self.limit - count - 1)

    def reset(self, key: str = None) -> None:
        with self._lock:
            if key is None:
                self._windows.clear()
            else:
                self._windows.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def _prune(self, now: float) -> None:
        # Caller holds the lock
        expired = [key for key, (_, reset_at) in self._windows.items() if now >= reset_at]
        for key in expired:
            del self._windows[key]
        if expired:
            logger.debug(f"Pruned {len(expired)} expired rate-limit window(s)")
