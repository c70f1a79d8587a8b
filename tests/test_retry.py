import pytest

from pipeline.cancel import CancelToken
from pipeline.errors import PermanentProviderError, RunCancelled, TransientProviderError
from pipeline.retry import RetryPolicy, execute_with_retry


def _flaky(errors, result="ok"):
    calls = []

    def op():
        calls.append(1)
        if errors:
            raise errors.pop(0)
        return result

    return op, calls


def test_delay_grows_and_is_capped():
    policy = RetryPolicy(max_attempts=5, base_delay=1.0, backoff_multiplier=2.0, max_delay=5.0)

    assert [policy.delay_for(a) for a in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 5.0]


def test_policy_rejects_zero_attempts():
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)


def test_transient_errors_are_retried():
    sleeps = []
    op, calls = _flaky([TransientProviderError("a"), TransientProviderError("b")])

    assert execute_with_retry(op, RetryPolicy(max_attempts=3), sleep=sleeps.append) == "ok"
    assert len(calls) == 3
    assert sleeps == [1.0, 2.0]


def test_permanent_errors_are_not_retried():
    sleeps = []
    op, calls = _flaky([PermanentProviderError("nope")])

    with pytest.raises(PermanentProviderError):
        execute_with_retry(op, RetryPolicy(max_attempts=3), sleep=sleeps.append)

    assert len(calls) == 1
    assert sleeps == []


def test_last_transient_error_is_raised_after_cap():
    last = TransientProviderError("third")
    op, calls = _flaky([TransientProviderError("1"), TransientProviderError("2"), last])

    with pytest.raises(TransientProviderError) as exc:
        execute_with_retry(op, RetryPolicy(max_attempts=3), sleep=lambda s: None)

    assert exc.value is last
    assert len(calls) == 3


def test_retry_after_wins_when_longer():
    sleeps = []
    op, _ = _flaky([TransientProviderError("429", status=429, retry_after=7)])

    execute_with_retry(op, RetryPolicy(max_attempts=2, base_delay=1.0), sleep=sleeps.append)

    assert sleeps == [7.0]


def test_cancellation_during_wait_stops_retrying():
    cancel = CancelToken()
    op, calls = _flaky([TransientProviderError("a"), TransientProviderError("b")])

    def sleep(_):
        cancel.cancel("run-cancelled")

    with pytest.raises(RunCancelled):
        execute_with_retry(op, RetryPolicy(max_attempts=3), sleep=sleep, cancel=cancel)

    assert len(calls) == 1
