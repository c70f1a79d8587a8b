from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from logger import get_logger
from pipeline.cancel import CancelToken
from pipeline.errors import RunCancelled

logger = get_logger(__name__)


class TokenBucket:
    """
    Shared request budget for one run.

    Every provider call (search or playlist mutation) takes one token.
    `acquire()` blocks until a token is available; it never fails because
    the budget is spent. A bucket with `refill_per_second <= 0` is unlimited.
    """

    def __init__(
        self,
        capacity: int,
        refill_per_second: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], object] = time.sleep,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self.refill_per_second = refill_per_second
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(capacity)
        self._last = clock()
        self._lock = threading.Lock()
        self.waits = 0

    @classmethod
    def per_window(cls, requests: int, window_seconds: float, **kwargs) -> TokenBucket:
        if requests <= 0 or window_seconds <= 0:
            return cls.unlimited(**kwargs)
        return cls(requests, requests / float(window_seconds), **kwargs)

    @classmethod
    def unlimited(cls, **kwargs) -> TokenBucket:
        return cls(1, 0.0, **kwargs)

    @property
    def limited(self) -> bool:
        return self.refill_per_second > 0

    def _refill(self, now: float) -> None:
        elapsed = max(0.0, now - self._last)
        self._tokens = min(self.capacity, self._tokens + elapsed * self.refill_per_second)
        self._last = now

    def try_acquire(self) -> float:
        """Take a token if one is available; otherwise return seconds to wait."""
        if not self.limited:
            return 0.0
        with self._lock:
            self._refill(self._clock())
            if self._tokens >= 1.0:
                self._tokens -= 1.0
                return 0.0
            return (1.0 - self._tokens) / self.refill_per_second

    def acquire(self, cancel: Optional[CancelToken] = None) -> None:
        while True:
            wait = self.try_acquire()
            if wait <= 0:
                return
            self.waits += 1
            logger.debug(f"Rate limit budget spent; waiting {wait:.3f}s for a token")
            self._sleep(wait)
            if cancel is not None and cancel.cancelled:
                raise RunCancelled(cancel.reason)
