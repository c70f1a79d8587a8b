"""
stages/sync.py

Sync orchestrator: request records -> playlist additions -> outcome report.

Linear state machine, never stepping back:

    fetch-snapshot -> resolve -> dedup -> submit -> report

Guarantees:
- exactly one SyncOutcome per input record, in input order
- a track id is "added" at most once per run
- tracks already on the playlist never reach the submitter
- cancellation is checked between stages (and inside them at record /
  batch boundaries); records not yet processed are reported with the
  cancellation reason, confirmed additions keep their outcome

The only fatal path is a playlist that cannot be read at start
(SnapshotUnavailable); everything else ends up in the report.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from logger import get_logger
from pipeline.cancel import CancelToken
from pipeline.errors import ProviderError, RunCancelled, describe
from pipeline.models import (
    PlaylistSnapshot,
    RequestRecord,
    ResolvedTrack,
    SyncOutcome,
    SyncStatus,
)
from pipeline.rate_limit import TokenBucket
from pipeline.retry import RetryPolicy, execute_with_retry
from pipeline.run_state import RunMetadata, RunStage, RunState, RunStatus
from providers.base import MediaProvider
from stages.dedup import dedup
from stages.resolve import TrackResolver
from stages.submit import BatchSubmitter

logger = get_logger(__name__)


# ----------------------------
# Exceptions
# ----------------------------


class SyncSetupError(Exception):
    """Base exception for failures before any record is processed."""


class SnapshotUnavailable(SyncSetupError):
    """Raised when the target playlist cannot be read at start."""


# ----------------------------
# Report
# ----------------------------

EXIT_OK = 0
EXIT_INCOMPLETE = 3
EXIT_CANCELLED = 10


@dataclass
class SyncReport:
    state: RunState
    outcomes: List[SyncOutcome] = field(default_factory=list)
    snapshot_size: int = 0

    @property
    def counts(self):
        return self.state.counts

    @property
    def exit_code(self) -> int:
        if self.state.status == RunStatus.CANCELLED:
            return EXIT_CANCELLED
        if self.state.status == RunStatus.OK:
            return EXIT_OK
        return EXIT_INCOMPLETE


# ----------------------------
# Orchestrator
# ----------------------------


class SyncOrchestrator:
    def __init__(
        self,
        provider: MediaProvider,
        playlist_id: str,
        *,
        bucket: Optional[TokenBucket] = None,
        policy: Optional[RetryPolicy] = None,
        batch_size: Optional[int] = None,
        workers: int = 1,
        cancel: Optional[CancelToken] = None,
        run_id: Optional[str] = None,
    ) -> None:
        self.provider = provider
        self.playlist_id = playlist_id
        self.bucket = bucket or TokenBucket.unlimited()
        self.policy = policy or RetryPolicy()
        self.workers = max(1, workers)
        self.cancel = cancel or CancelToken()
        self.run_id = (
            run_id
            or os.environ.get("REQUESTARR_RUN_ID")
            or datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        )

        self.resolver = TrackResolver(provider, self.bucket, self.policy, self.cancel)
        self.submitter = BatchSubmitter(
            provider,
            playlist_id,
            self.bucket,
            self.policy,
            batch_size=batch_size,
            cancel=self.cancel,
        )

    # ------------------------------------------------------------------

    def fetch_snapshot(self) -> PlaylistSnapshot:
        def _op() -> PlaylistSnapshot:
            return self.provider.get_tracks(
                self.playlist_id, throttle=lambda: self.bucket.acquire(self.cancel)
            )

        try:
            return execute_with_retry(
                _op,
                self.policy,
                name=f"fetch playlist {self.playlist_id}",
                cancel=self.cancel,
            )
        except ProviderError as e:
            raise SnapshotUnavailable(
                f"Cannot read playlist {self.playlist_id}: {describe(e)}"
            ) from e

    def run(self, records: Iterable[RequestRecord]) -> SyncReport:
        records = list(records)
        state = RunState(
            metadata=RunMetadata(
                run_id=self.run_id,
                provider=self.provider.name,
                playlist_id=self.playlist_id,
            )
        )
        state.counts.records = len(records)
        report = SyncReport(state=state)
        outcomes: Dict[int, SyncOutcome] = {}

        logger.info(
            f"Sync start: {len(records)} request(s) -> {self.provider.name} playlist {self.playlist_id}"
        )

        # 1) Snapshot
        state.set_stage(RunStage.FETCH_SNAPSHOT)
        try:
            self.cancel.raise_if_cancelled()
            snapshot = self.fetch_snapshot()
        except RunCancelled as e:
            state.mark_cancelled(e.reason)
            return self._finish(report, records, outcomes, SyncStatus.UNRESOLVED)

        report.snapshot_size = len(snapshot)
        logger.info(f"Playlist has {len(snapshot)} track(s)")

        # 2) Resolve
        if self.cancel.cancelled:
            state.mark_cancelled(self.cancel.reason)
            return self._finish(report, records, outcomes, SyncStatus.UNRESOLVED)

        state.set_stage(RunStage.RESOLVE)
        resolved: List[ResolvedTrack] = self.resolver.resolve_all(records, self.workers)

        # 3) Dedup (unresolved-by-cancellation records surface here as unresolved)
        state.set_stage(RunStage.DEDUP)
        result = dedup(resolved, snapshot)
        outcomes.update(result.skipped)
        logger.info(
            f"Resolved: {len(result.pending)} new, "
            f"{sum(1 for o in result.skipped.values() if o.status == SyncStatus.ALREADY_PRESENT)} already present, "
            f"{sum(1 for o in result.skipped.values() if o.status == SyncStatus.UNRESOLVED)} unresolved"
        )

        # 4) Submit
        state.set_stage(RunStage.SUBMIT)
        if self.cancel.cancelled:
            state.mark_cancelled(self.cancel.reason)
            for p in result.pending:
                outcomes[p.index] = SyncOutcome(
                    record=p.record,
                    status=SyncStatus.SUBMISSION_FAILED,
                    track_id=p.track_id,
                    confidence=p.confidence,
                    diagnostic=self.cancel.reason,
                )
        else:
            outcomes.update(self.submitter.submit(result.pending))
            if self.submitter.progress is not None:
                state.counts.batches = self.submitter.progress.total_batches
            if self.submitter.aborted_reason:
                state.mark_aborted(self.submitter.aborted_reason)

        if self.cancel.cancelled and state.status != RunStatus.CANCELLED:
            state.mark_cancelled(self.cancel.reason)

        return self._finish(report, records, outcomes, SyncStatus.SUBMISSION_FAILED)

    # ------------------------------------------------------------------

    def _finish(
        self,
        report: SyncReport,
        records: List[RequestRecord],
        outcomes: Dict[int, SyncOutcome],
        fill_status: SyncStatus,
    ) -> SyncReport:
        """Assemble outcomes in input order; anything missing was never processed."""
        state = report.state
        state.set_stage(RunStage.REPORT)

        ordered: List[SyncOutcome] = []
        for index, record in enumerate(records):
            outcome = outcomes.get(index)
            if outcome is None:
                outcome = SyncOutcome(
                    record=record,
                    status=fill_status,
                    diagnostic=state.stop_reason or self.cancel.reason,
                )
            ordered.append(outcome)
            state.counts.record(outcome.status)

        if len(ordered) != len(records):
            raise RuntimeError("outcome count does not match input count")

        report.outcomes = ordered
        state.finish()

        c = state.counts
        logger.info(
            f"Sync done ({state.status.value}): added={c.added} "
            f"already_present={c.already_present} unresolved={c.unresolved} "
            f"submission_failed={c.submission_failed} in {state.runtime_seconds}s"
        )
        if state.stop_reason:
            logger.warning(f"Stop reason: {state.stop_reason}")
        return report
