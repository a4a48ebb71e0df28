"""Tests for the retry state machine."""

from __future__ import annotations

import random

import grpc
import pytest

from qdrant_wire.core.exceptions import (
    DeadlineExceededError,
    RetriesExhaustedError,
    ServerError,
    TransportError,
)
from qdrant_wire.services.retry import RetryLoop, RetryPolicy, RetryState

POLICY = RetryPolicy(max_attempts=3, initial_backoff=0.1, max_backoff=1.0, jitter=False)


def _unavailable() -> TransportError:
    return TransportError("unavailable", transient=True, code=grpc.StatusCode.UNAVAILABLE)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class Sleeper:
    def __init__(self, clock: FakeClock | None = None) -> None:
        self.delays: list[float] = []
        self.clock = clock

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if self.clock is not None:
            self.clock.now += delay


def _flaky(failures: list[Exception], result: str = "ok"):
    calls: list[float | None] = []

    async def attempt(remaining: float | None) -> str:
        calls.append(remaining)
        if failures:
            raise failures.pop(0)
        return result

    return attempt, calls


@pytest.mark.asyncio
async def test_first_attempt_succeeds():
    sleeper = Sleeper()
    loop = RetryLoop(POLICY, sleep=sleeper)
    attempt, calls = _flaky([])

    assert await loop.run(attempt) == "ok"
    assert loop.attempts == 1
    assert loop.state is RetryState.SUCCEEDED
    assert sleeper.delays == []
    assert calls == [None]


@pytest.mark.asyncio
async def test_transient_failures_back_off_exponentially():
    sleeper = Sleeper()
    loop = RetryLoop(POLICY, sleep=sleeper)
    attempt, _ = _flaky([_unavailable(), _unavailable()])

    assert await loop.run(attempt) == "ok"
    assert loop.attempts == 3
    assert sleeper.delays == pytest.approx([0.1, 0.2])
    assert loop.total_delay == pytest.approx(0.3)


@pytest.mark.asyncio
async def test_attempts_never_exceed_max_attempts():
    sleeper = Sleeper()
    loop = RetryLoop(POLICY, sleep=sleeper)
    attempt, calls = _flaky([_unavailable() for _ in range(10)])

    with pytest.raises(RetriesExhaustedError) as exc_info:
        await loop.run(attempt)

    assert len(calls) == 3
    assert exc_info.value.attempts == 3
    assert exc_info.value.last_error.code == grpc.StatusCode.UNAVAILABLE
    assert len(sleeper.delays) == 2
    assert loop.state is RetryState.FAILED


@pytest.mark.asyncio
async def test_non_transient_error_is_not_retried():
    loop = RetryLoop(POLICY, sleep=Sleeper())
    attempt, calls = _flaky([ServerError(grpc.StatusCode.NOT_FOUND, "no such collection")])

    with pytest.raises(ServerError):
        await loop.run(attempt)

    assert len(calls) == 1
    assert loop.state is RetryState.FAILED


@pytest.mark.asyncio
async def test_non_idempotent_call_only_retries_unavailable():
    loop = RetryLoop(POLICY, idempotent=False, sleep=Sleeper())
    attempt, calls = _flaky([_unavailable()])
    assert await loop.run(attempt) == "ok"
    assert len(calls) == 2

    loop = RetryLoop(POLICY, idempotent=False, sleep=Sleeper())
    aborted = TransportError("aborted", transient=True, code=grpc.StatusCode.ABORTED)
    attempt, calls = _flaky([aborted])
    with pytest.raises(TransportError) as exc_info:
        await loop.run(attempt)
    assert exc_info.value is aborted
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_attempt_receives_remaining_budget():
    clock = FakeClock()
    loop = RetryLoop(POLICY, timeout=5.0, sleep=Sleeper(clock), clock=clock)
    attempt, calls = _flaky([_unavailable()])

    await loop.run(attempt)

    assert calls == pytest.approx([5.0, 4.9])


@pytest.mark.asyncio
async def test_budget_exhausted_during_attempt():
    clock = FakeClock()
    loop = RetryLoop(POLICY, timeout=1.0, sleep=Sleeper(clock), clock=clock)

    async def slow(remaining: float | None) -> str:
        clock.now += 2.0
        raise DeadlineExceededError()

    with pytest.raises(DeadlineExceededError):
        await loop.run(slow)
    assert loop.attempts == 1


@pytest.mark.asyncio
async def test_no_retry_when_backoff_outlasts_budget():
    clock = FakeClock()
    loop = RetryLoop(POLICY, timeout=0.15, sleep=Sleeper(clock), clock=clock)

    async def attempt(remaining: float | None) -> str:
        clock.now += 0.1
        raise _unavailable()

    with pytest.raises(DeadlineExceededError) as exc_info:
        await loop.run(attempt)
    assert isinstance(exc_info.value.__cause__, TransportError)
    assert loop.attempts == 1


@pytest.mark.asyncio
async def test_backoff_hooks_bracket_each_sleep():
    events: list[str] = []

    async def sleep(delay: float) -> None:
        events.append("sleep")

    loop = RetryLoop(
        POLICY,
        sleep=sleep,
        on_backoff_start=lambda: events.append("start"),
        on_backoff_end=lambda: events.append("end"),
    )
    attempt, _ = _flaky([_unavailable()])

    await loop.run(attempt)

    assert events == ["start", "sleep", "end"]


def test_jittered_delay_stays_within_backoff():
    policy = RetryPolicy(max_attempts=5, initial_backoff=0.5, max_backoff=2.0)
    rng = random.Random(7)
    for retry in range(6):
        delay = policy.delay(retry, rng)
        assert 0.0 <= delay <= policy.backoff(retry)


def test_backoff_is_capped():
    policy = RetryPolicy(initial_backoff=0.5, max_backoff=2.0, multiplier=3.0)
    assert [policy.backoff(i) for i in range(4)] == [0.5, 1.5, 2.0, 2.0]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_attempts": 0},
        {"initial_backoff": 0},
        {"multiplier": 0.5},
        {"initial_backoff": 3.0, "max_backoff": 1.0},
    ],
)
def test_policy_validation(kwargs):
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)


def test_policy_from_settings(test_settings):
    policy = RetryPolicy.from_settings(test_settings, max_attempts=7)
    assert policy.max_attempts == 7
    assert policy.initial_backoff == test_settings.initial_backoff
    assert policy.jitter is False
