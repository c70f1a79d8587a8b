"""
pipeline/retry.py

Retry engine shared by the resolver and the submitter.

Responsibilities:
- Exponential backoff with a bounded attempt count
- Honour provider Retry-After hints
- Re-raise permanent errors without retrying
- Stop waiting when the run is cancelled
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

import config
from logger import get_logger
from pipeline.cancel import CancelToken
from pipeline.errors import RunCancelled, TransientProviderError

logger = get_logger(__name__)
T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = config.DEFAULT_MAX_ATTEMPTS
    base_delay: float = config.DEFAULT_BACKOFF_BASE_SEC
    backoff_multiplier: float = config.DEFAULT_BACKOFF_MULTIPLIER
    max_delay: float = config.DEFAULT_BACKOFF_MAX_SEC

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0 or self.backoff_multiplier < 1:
            raise ValueError("base_delay must be >= 0 and backoff_multiplier >= 1")

    def delay_for(self, attempt: int) -> float:
        """Delay after the failed `attempt` (1-based)."""
        delay = self.base_delay * (self.backoff_multiplier ** (attempt - 1))
        return min(delay, self.max_delay) if self.max_delay > 0 else delay

    @classmethod
    def from_env(cls, env) -> RetryPolicy:
        return cls(
            max_attempts=env.max_attempts,
            base_delay=env.backoff_base,
            backoff_multiplier=env.backoff_multiplier,
            max_delay=env.backoff_max,
        )


def execute_with_retry(
    operation: Callable[[], T],
    policy: RetryPolicy,
    name: str = "",
    *,
    sleep: Optional[Callable[[float], object]] = None,
    cancel: Optional[CancelToken] = None,
) -> T:
    """
    Run `operation`, retrying TransientProviderError per `policy`.

    Any other exception (permanent provider errors included) propagates on
    the first occurrence. After the last attempt the final transient error
    is raised.
    """
    if sleep is None:
        sleep = cancel.wait if cancel is not None else time.sleep

    last_exception: Optional[TransientProviderError] = None

    for attempt in range(1, policy.max_attempts + 1):
        try:
            return operation()
        except TransientProviderError as e:
            last_exception = e

        if attempt == policy.max_attempts:
            break

        wait = policy.delay_for(attempt)
        if last_exception.retry_after is not None:
            wait = max(wait, float(last_exception.retry_after))

        logger.warning(
            f"{name or 'provider call'} failed (attempt {attempt}/{policy.max_attempts}), "
            f"retrying in {wait:.2f}s: {last_exception}"
        )

        sleep(wait)
        if cancel is not None and cancel.cancelled:
            raise RunCancelled(cancel.reason)

    logger.warning(
        f"{name or 'provider call'} gave up after {policy.max_attempts} attempt(s): {last_exception}"
    )
    if last_exception is not None:
        raise last_exception

    raise TransientProviderError(f"{name or 'provider call'} failed")
