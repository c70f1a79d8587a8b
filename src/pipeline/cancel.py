from __future__ import annotations

import threading
from typing import Optional

from logger import get_logger
from pipeline.errors import RunCancelled

logger = get_logger(__name__)

RUN_CANCELLED = "run-cancelled"


class CancelToken:
    """
    Cooperative cancellation for one run.

    Stages poll it at safe boundaries (between records, between batches,
    between stages). It never interrupts an in-flight provider call.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason: Optional[str] = None
        self._timer: Optional[threading.Timer] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason or RUN_CANCELLED

    def cancel(self, reason: str = RUN_CANCELLED) -> None:
        if not self._event.is_set():
            self._reason = reason
            logger.warning(f"Cancellation requested: {reason}")
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RunCancelled(self.reason)

    def wait(self, seconds: float) -> bool:
        """Sleep up to `seconds`; True if woken by cancellation."""
        if seconds <= 0:
            return self._event.is_set()
        return self._event.wait(seconds)

    def arm_timeout(self, seconds: float) -> None:
        """Cancel automatically after `seconds` (0 disables)."""
        if seconds <= 0:
            return
        self.disarm()
        self._timer = threading.Timer(
            seconds, self.cancel, kwargs={"reason": f"{RUN_CANCELLED}: timeout after {seconds:g}s"}
        )
        self._timer.daemon = True
        self._timer.start()

    def disarm(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
