from fakes import FakeProvider
from pipeline.cancel import CancelToken
from pipeline.errors import PermanentProviderError, TransientProviderError
from pipeline.models import PendingTrack, RequestRecord, SyncStatus
from pipeline.rate_limit import TokenBucket
from pipeline.retry import RetryPolicy
from stages.submit import BatchSubmitter, chunked

FAST = RetryPolicy(max_attempts=2, base_delay=0.0)


def _pending(*ids):
    return [PendingTrack(index=i, record=RequestRecord(title=t), track_id=t) for i, t in enumerate(ids)]


def _submitter(provider, **kwargs):
    kwargs.setdefault("batch_size", 100)
    return BatchSubmitter(provider, "PL1", TokenBucket.unlimited(), FAST, **kwargs)


def test_chunked_keeps_order():
    assert [[p.track_id for p in c] for c in chunked(_pending("a", "b", "c"), 2)] == [["a", "b"], ["c"]]


def test_batch_size_is_clamped_to_provider_limit():
    provider = FakeProvider(max_batch_size=2)
    submitter = _submitter(provider, batch_size=100)

    outcomes = submitter.submit(_pending("a", "b", "c", "d", "e"))

    assert submitter.batch_size == 2
    assert provider.add_calls == [["a", "b"], ["c", "d"], ["e"]]
    assert all(o.status == SyncStatus.ADDED for o in outcomes.values())
    assert submitter.progress.total_batches == 3


def test_failed_batch_is_never_split():
    provider = FakeProvider(add_errors=[TransientProviderError("503")] * 2)
    submitter = _submitter(provider)

    outcomes = submitter.submit(_pending("a", "b"))

    assert provider.add_calls == [["a", "b"], ["a", "b"]]
    assert {o.status for o in outcomes.values()} == {SyncStatus.SUBMISSION_FAILED}
    assert submitter.aborted_reason is None


def test_transient_failure_only_affects_its_batch():
    provider = FakeProvider(
        max_batch_size=1,
        add_errors=[TransientProviderError("503"), TransientProviderError("503")],
    )
    outcomes = _submitter(provider).submit(_pending("a", "b"))

    assert outcomes[0].status == SyncStatus.SUBMISSION_FAILED
    assert outcomes[1].status == SyncStatus.ADDED


def test_permanent_failure_aborts_the_rest():
    provider = FakeProvider(max_batch_size=1, add_errors=[PermanentProviderError("gone", status=404)])
    submitter = _submitter(provider)

    outcomes = submitter.submit(_pending("a", "b", "c"))

    assert provider.add_calls == [["a"]]
    assert [outcomes[i].status for i in range(3)] == [SyncStatus.SUBMISSION_FAILED] * 3
    assert submitter.aborted_reason.startswith("aborted: PermanentProviderError (HTTP 404)")


def test_cancelled_before_batch_sends_nothing():
    provider = FakeProvider()
    cancel = CancelToken()
    cancel.cancel()

    outcomes = _submitter(provider, cancel=cancel).submit(_pending("a"))

    assert provider.add_calls == []
    assert outcomes[0].status == SyncStatus.SUBMISSION_FAILED
    assert outcomes[0].diagnostic == "run-cancelled"


def test_cancel_after_first_batch_keeps_confirmed_additions():
    cancel = CancelToken()
    provider = FakeProvider(max_batch_size=1, after_add=cancel.cancel)
    submitter = _submitter(provider, cancel=cancel)

    outcomes = submitter.submit(_pending("a", "b", "c"))

    assert provider.add_calls == [["a"]]
    assert outcomes[0].status == SyncStatus.ADDED
    for i in (1, 2):
        assert outcomes[i].status == SyncStatus.SUBMISSION_FAILED
        assert outcomes[i].diagnostic == "run-cancelled"
    assert submitter.aborted_reason is None
