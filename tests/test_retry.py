"""Tests for the bounded retry policy."""
from __future__ import annotations

import pytest

from conftest import SleepRecorder
from jobnado.retry import RetryPolicy, linear_backoff, no_backoff, retry


class Flaky:
    def __init__(self, failures: int, result: str = "ok") -> None:
        self.failures = failures
        self.result = result
        self.calls = 0

    def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionError(f"boom {self.calls}")
        return self.result


def test_returns_first_success_without_sleeping():
    sleep = SleepRecorder()
    op = Flaky(0)
    assert RetryPolicy(3, linear_backoff(1.0), sleep=sleep).execute(op) == "ok"
    assert op.calls == 1
    assert sleep.delays == []


def test_linear_backoff_between_attempts():
    sleep = SleepRecorder()
    op = Flaky(2)
    assert RetryPolicy(3, linear_backoff(1.0), sleep=sleep).execute(op) == "ok"
    assert op.calls == 3
    assert sleep.delays == [1.0, 2.0]


def test_exhaustion_reraises_last_error_unchanged():
    sleep = SleepRecorder()
    op = Flaky(10)
    with pytest.raises(ConnectionError, match="boom 3"):
        RetryPolicy(3, linear_backoff(1.0), sleep=sleep).execute(op)
    assert op.calls == 3
    assert sleep.delays == [1.0, 2.0]


def test_no_backoff_never_sleeps():
    sleep = SleepRecorder()
    op = Flaky(1)
    assert RetryPolicy(2, no_backoff, sleep=sleep).execute(op) == "ok"
    assert sleep.delays == []


def test_non_retryable_error_propagates_immediately():
    calls = []

    def op():
        calls.append(1)
        raise KeyError("bad input")

    with pytest.raises(KeyError):
        RetryPolicy(3, retryable=(ConnectionError,), sleep=SleepRecorder()).execute(op)
    assert len(calls) == 1


def test_rejects_zero_attempts():
    with pytest.raises(ValueError):
        RetryPolicy(0)


def test_decorator_retries_listed_exceptions(monkeypatch):
    delays = []
    monkeypatch.setattr("jobnado.retry.time.sleep", delays.append)
    op = Flaky(1, result="done")

    @retry(max_attempts=2, backoff=linear_backoff(0.5), retryable=(ConnectionError,))
    def fetch():
        return op()

    assert fetch() == "done"
    assert delays == [0.5]
