"""Tests for the bounded polling loop."""

from __future__ import annotations

import pytest

from multicam_scribe.exceptions import PollingTimeoutError
from multicam_scribe.pipelines.asr.polling import PollingPolicy


class FakeClock:
    def __init__(self) -> None:
        self.sleeps: list[float] = []

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)


def test_returns_first_finished_state() -> None:
    clock = FakeClock()
    states = iter(["queued", "processing", "completed"])
    policy = PollingPolicy(interval_seconds=3.0, max_attempts=10, sleep=clock.sleep)

    result = policy.wait_for(lambda: next(states), lambda state: state == "completed")

    assert result == "completed"
    assert clock.sleeps == [3.0, 3.0, 3.0]


def test_initial_state_short_circuits() -> None:
    clock = FakeClock()
    policy = PollingPolicy(sleep=clock.sleep)

    result = policy.wait_for(
        lambda: pytest.fail("fetch should not be called"),
        lambda state: state == "done",
        initial="done",
    )

    assert result == "done"
    assert clock.sleeps == []


def test_on_poll_sees_every_attempt() -> None:
    seen: list[tuple[str, int]] = []
    states = iter(["a", "b"])
    policy = PollingPolicy(interval_seconds=0.0, max_attempts=5, sleep=lambda _: None)

    policy.wait_for(
        lambda: next(states),
        lambda state: state == "b",
        on_poll=lambda state, attempt: seen.append((state, attempt)),
    )

    assert seen == [("a", 1), ("b", 2)]


def test_times_out_after_max_attempts() -> None:
    clock = FakeClock()
    policy = PollingPolicy(interval_seconds=3.0, max_attempts=4, sleep=clock.sleep)

    with pytest.raises(PollingTimeoutError, match="4 polls"):
        policy.wait_for(lambda: "processing", lambda state: False, description="Transcript t1")

    assert len(clock.sleeps) == 4
    assert issubclass(PollingTimeoutError, TimeoutError)
