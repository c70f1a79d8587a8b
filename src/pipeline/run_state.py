from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional
import time

from pipeline.models import SyncStatus


class RunStatus(str, Enum):
    RUNNING = "running"
    OK = "ok"
    INCOMPLETE = "incomplete"
    ABORTED = "aborted"
    CANCELLED = "cancelled"


class RunStage(str, Enum):
    INIT = "init"
    FETCH_SNAPSHOT = "fetch-snapshot"
    RESOLVE = "resolve"
    DEDUP = "dedup"
    SUBMIT = "submit"
    REPORT = "report"
    DONE = "done"


# Stages only ever move forward.
_STAGE_ORDER = list(RunStage)


@dataclass
class RunCounts:
    records: int = 0
    added: int = 0
    already_present: int = 0
    unresolved: int = 0
    submission_failed: int = 0
    batches: int = 0

    def record(self, status: SyncStatus) -> None:
        if status == SyncStatus.ADDED:
            self.added += 1
        elif status == SyncStatus.ALREADY_PRESENT:
            self.already_present += 1
        elif status == SyncStatus.UNRESOLVED:
            self.unresolved += 1
        elif status == SyncStatus.SUBMISSION_FAILED:
            self.submission_failed += 1

    @property
    def failures(self) -> int:
        return self.unresolved + self.submission_failed


@dataclass
class RunMetadata:
    run_id: str
    provider: str
    playlist_id: Optional[str]
    started_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None


@dataclass
class RunState:
    """
    Canonical runtime state for one sync run.

    This object is mutated by the orchestrator only.
    Report rendering and the CLI must treat it as read-only.
    """

    metadata: RunMetadata
    status: RunStatus = RunStatus.RUNNING
    stage: RunStage = RunStage.INIT

    counts: RunCounts = field(default_factory=RunCounts)
    stage_seconds: Dict[str, float] = field(default_factory=dict)

    stop_reason: Optional[str] = None
    _stage_started: float = field(default_factory=time.monotonic, repr=False)

    # ------------------------------------------------------------------
    # Stage management
    # ------------------------------------------------------------------

    def set_stage(self, stage: RunStage) -> None:
        if _STAGE_ORDER.index(stage) < _STAGE_ORDER.index(self.stage):
            raise RuntimeError(f"Stage cannot move back from {self.stage.value} to {stage.value}")
        now = time.monotonic()
        if self.stage != RunStage.INIT:
            self.stage_seconds[self.stage.value] = round(now - self._stage_started, 3)
        self._stage_started = now
        self.stage = stage

    # ------------------------------------------------------------------
    # Terminal states
    # ------------------------------------------------------------------

    def mark_aborted(self, reason: str) -> None:
        if self.stop_reason is None:
            self.stop_reason = reason
        if self.status == RunStatus.RUNNING:
            self.status = RunStatus.ABORTED

    def mark_cancelled(self, reason: str) -> None:
        self.stop_reason = reason
        self.status = RunStatus.CANCELLED

    def finish(self) -> None:
        self.set_stage(RunStage.DONE)
        if self.status == RunStatus.RUNNING:
            self.status = RunStatus.INCOMPLETE if self.counts.failures else RunStatus.OK
        self.metadata.finished_at = time.time()

    # ------------------------------------------------------------------
    # Derived helpers (read-only)
    # ------------------------------------------------------------------

    @property
    def runtime_seconds(self) -> float:
        end = self.metadata.finished_at or time.time()
        return round(end - self.metadata.started_at, 2)
