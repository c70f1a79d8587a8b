"""
submit.py

Batch submission of unique, new tracks to the target playlist.

Rules:
1) Batches are sent sequentially, in input order.
2) A batch is "added" only once the provider confirmed the call.
3) Transient batch failure: retry the whole batch; after the cap, mark that
   batch submission-failed and move on.
4) Permanent batch failure: mark that batch AND every later record
   submission-failed with the same cause. No further calls.
5) Sub-sets of a failed batch are never retried separately.
6) Cancellation is honoured between batches, never during a call.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence

from logger import get_logger
from pipeline.cancel import CancelToken
from pipeline.errors import (
    PermanentProviderError,
    RunCancelled,
    TransientProviderError,
    describe,
)
from pipeline.models import PendingTrack, SyncOutcome, SyncStatus
from pipeline.rate_limit import TokenBucket
from pipeline.retry import RetryPolicy, execute_with_retry
from providers.base import MediaProvider

logger = get_logger(__name__)


@dataclass
class SubmitProgress:
    """Track submission progress for periodic reporting."""

    total_batches: int
    sent: int = 0
    failed: int = 0
    aborted_reason: Optional[str] = None

    def log(self) -> None:
        logger.info(
            f"Batches: {self.sent + self.failed}/{self.total_batches} "
            f"(ok={self.sent} failed={self.failed})"
        )


def chunked(items: Sequence[PendingTrack], size: int) -> Iterator[List[PendingTrack]]:
    for i in range(0, len(items), size):
        yield list(items[i : i + size])


class BatchSubmitter:
    def __init__(
        self,
        provider: MediaProvider,
        playlist_id: str,
        bucket: TokenBucket,
        policy: RetryPolicy,
        batch_size: Optional[int] = None,
        cancel: Optional[CancelToken] = None,
    ) -> None:
        limit = max(1, int(provider.max_batch_size))
        requested = batch_size if batch_size and batch_size > 0 else limit
        if requested > limit:
            logger.debug(
                f"Batch size {requested} exceeds {provider.name} limit; using {limit}"
            )

        self.provider = provider
        self.playlist_id = playlist_id
        self.bucket = bucket
        self.policy = policy
        self.batch_size = min(requested, limit)
        self.cancel = cancel or CancelToken()
        self.progress: Optional[SubmitProgress] = None

    def submit(self, pending: Sequence[PendingTrack]) -> Dict[int, SyncOutcome]:
        """Returns one outcome per pending entry, keyed by input index."""
        outcomes: Dict[int, SyncOutcome] = {}
        batches = list(chunked(pending, self.batch_size))
        self.progress = SubmitProgress(total_batches=len(batches))

        for number, batch in enumerate(batches, start=1):
            if self.progress.aborted_reason is not None:
                self._fail(outcomes, batch, self.progress.aborted_reason)
                continue

            if self.cancel.cancelled:
                self._fail(outcomes, batch, self.cancel.reason)
                continue

            ids = [p.track_id for p in batch]

            def _op(ids=ids):
                self.bucket.acquire(self.cancel)
                self.provider.add_tracks(self.playlist_id, ids)

            try:
                execute_with_retry(
                    _op,
                    self.policy,
                    name=f"add batch {number}/{len(batches)} ({len(ids)} tracks)",
                    cancel=self.cancel,
                )
            except RunCancelled as e:
                self._fail(outcomes, batch, e.reason)
                self.progress.failed += 1
                continue
            except TransientProviderError as e:
                logger.error(f"Batch {number} failed after retries: {e}")
                self._fail(outcomes, batch, f"retries exhausted: {describe(e)}")
                self.progress.failed += 1
                continue
            except PermanentProviderError as e:
                reason = f"aborted: {describe(e)}"
                logger.error(
                    f"Batch {number} rejected permanently; aborting remaining submission. ({e})"
                )
                self.progress.aborted_reason = reason
                self.progress.failed += 1
                self._fail(outcomes, batch, reason)
                continue

            self.progress.sent += 1
            for p in batch:
                outcomes[p.index] = SyncOutcome(
                    record=p.record,
                    status=SyncStatus.ADDED,
                    track_id=p.track_id,
                    confidence=p.confidence,
                )
            logger.debug(f"Batch {number}/{len(batches)} added {len(ids)} track(s)")

        if batches:
            self.progress.log()
        return outcomes

    @staticmethod
    def _fail(
        outcomes: Dict[int, SyncOutcome], batch: Sequence[PendingTrack], reason: str
    ) -> None:
        for p in batch:
            outcomes[p.index] = SyncOutcome(
                record=p.record,
                status=SyncStatus.SUBMISSION_FAILED,
                track_id=p.track_id,
                confidence=p.confidence,
                diagnostic=reason,
            )

    @property
    def aborted_reason(self) -> Optional[str]:
        return self.progress.aborted_reason if self.progress else None
