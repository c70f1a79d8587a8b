import pytest

from pipeline.models import SyncStatus
from pipeline.run_state import RunMetadata, RunStage, RunState, RunStatus


def _state():
    return RunState(metadata=RunMetadata(run_id="r", provider="fake", playlist_id="PL"))


def test_stages_only_move_forward():
    state = _state()
    state.set_stage(RunStage.FETCH_SNAPSHOT)
    state.set_stage(RunStage.RESOLVE)

    assert "fetch-snapshot" in state.stage_seconds

    with pytest.raises(RuntimeError):
        state.set_stage(RunStage.FETCH_SNAPSHOT)


def test_finish_derives_status_from_counts():
    ok = _state()
    ok.counts.record(SyncStatus.ADDED)
    ok.counts.record(SyncStatus.ALREADY_PRESENT)
    ok.finish()
    assert ok.status == RunStatus.OK

    bad = _state()
    bad.counts.record(SyncStatus.UNRESOLVED)
    bad.finish()
    assert bad.status == RunStatus.INCOMPLETE
    assert bad.metadata.finished_at is not None


def test_first_abort_reason_wins():
    state = _state()
    state.mark_aborted("first")
    state.mark_aborted("second")
    state.finish()

    assert state.stop_reason == "first"
    assert state.status == RunStatus.ABORTED


def test_cancel_overrides_abort():
    state = _state()
    state.mark_aborted("permanent error")
    state.mark_cancelled("run-cancelled")

    assert state.status == RunStatus.CANCELLED
    assert state.stop_reason == "run-cancelled"
