from __future__ import annotations

import time
from typing import Callable

import pytest
import structlog
from pydantic import ValidationError

from sortlab.core.engine.errors import InvalidSequenceError
from sortlab.core.events.system import RunCancelled, RunCompleted, RunFailed, RunStarted
from sortlab.core.run.components import SnapshotRecorder
from sortlab.core.run.session import SortSession


def _wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not reached in time")
        time.sleep(0.005)


def _session(data, **kwargs) -> tuple[SortSession, SnapshotRecorder]:
    session = SortSession(data, delay_ms=0, poll_interval_ms=10, **kwargs)
    recorder = SnapshotRecorder()
    session.attach([recorder])
    return session, recorder


def test_run_completes_and_updates_data() -> None:
    session, recorder = _session([5, 3, 8, 1])

    outcome = session.run("bubble")

    assert outcome.status == "completed"
    assert outcome.sequence == (1, 3, 5, 8)
    assert outcome.comparisons == 6
    assert outcome.swaps == 4
    assert session.data == (1, 3, 5, 8)
    assert session.status == "completed"
    assert session.last_outcome == outcome

    assert isinstance(recorder.lifecycle[0], RunStarted)
    assert isinstance(recorder.lifecycle[-1], RunCompleted)
    assert recorder.latest is not None
    assert recorder.latest.sequence == (1, 3, 5, 8)


def test_event_ordinals_follow_delivery_order() -> None:
    session = SortSession([3, 2, 1], delay_ms=0)
    ordinals: list[int] = []

    class OrdinalTap:
        def subscriptions(self):
            handler = lambda e: ordinals.append(e.ordinal)  # noqa: E731
            return [(et, handler) for et in ("run.started", "run.snapshot", "run.completed")]

    session.attach([OrdinalTap()])
    session.run("selection")

    assert ordinals == list(range(1, len(ordinals) + 1))


def test_next_run_starts_from_current_data() -> None:
    session, _ = _session([4, 1, 3, 2])
    session.run("quick")

    second = session.run("bubble")

    # Already sorted: one pass, no swaps
    assert second.comparisons == 3
    assert second.swaps == 0
    assert session.wait() is second


def test_each_run_gets_fresh_counters() -> None:
    session, _ = _session([2, 1])
    first = session.run("insertion")
    session.load([2, 1])
    second = session.run("insertion")

    assert first.comparisons == second.comparisons == 1
    assert first.run_id != second.run_id


def test_stop_reports_cancellation_as_outcome() -> None:
    session, recorder = _session([9, 8, 7, 6, 5], step_mode=True)

    session.start("merge")
    _wait_until(lambda: session.control is not None and session.control.waiting)

    session.stop()
    outcome = session.wait(timeout=5)

    assert outcome is not None
    assert outcome.status == "cancelled"
    assert session.status == "cancelled"
    assert isinstance(recorder.lifecycle[-1], RunCancelled)
    # data reflects the last emitted snapshot
    assert session.data == recorder.latest.sequence


def test_overlapping_runs_are_refused() -> None:
    session, _ = _session([3, 2, 1], step_mode=True)
    session.start("heap")

    try:
        with pytest.raises(RuntimeError):
            session.start("quick")
        with pytest.raises(RuntimeError):
            session.run("quick")
        with pytest.raises(RuntimeError):
            session.load([1])
    finally:
        session.stop()
        session.wait(timeout=5)


def test_toggle_pause_and_step_through() -> None:
    session, recorder = _session([3, 1, 2], step_mode=True)
    session.start("insertion")

    _wait_until(lambda: len(recorder.snapshots) == 1 and session.control.waiting)
    assert session.toggle_pause() == "paused"

    # Releases while paused are banked, not applied
    session.next_step()
    time.sleep(0.05)
    assert len(recorder.snapshots) == 1

    assert session.toggle_pause() == "running"
    _wait_until(lambda: len(recorder.snapshots) == 2 and session.control.waiting)

    session.set_step_mode(False)
    outcome = session.wait(timeout=5)

    assert outcome is not None
    assert outcome.status == "completed"
    assert outcome.sequence == (1, 2, 3)


def test_set_delay_is_forwarded_to_active_run() -> None:
    session, _ = _session([3, 2, 1], step_mode=True)
    session.start("bubble")
    _wait_until(lambda: session.control is not None and session.control.waiting)

    session.set_delay(250)
    assert session.delay_ms == 250
    # step mode keeps the engine delay at zero
    assert session.control.delay_ms == 0

    session.set_step_mode(False)
    assert session.control is None or session.control.delay_ms == 250

    session.stop()
    session.wait(timeout=5)


def test_distribution_sort_rejects_negative_data_before_running() -> None:
    session, recorder = _session([3, -1, 2])

    with pytest.raises(InvalidSequenceError):
        session.run("counting")

    assert session.status == "idle"
    assert recorder.snapshots == []


def test_unknown_algorithm_is_rejected() -> None:
    session, _ = _session([1])
    with pytest.raises(ValidationError):
        session.run("bogo")


def test_strings_and_bools_are_rejected_not_coerced() -> None:
    session, recorder = _session(["3", True])

    with pytest.raises(InvalidSequenceError):
        session.run("bubble")

    assert session.status == "idle"
    assert session.data == ("3", True)
    assert recorder.snapshots == []


def test_float_data_sorts_through_the_session() -> None:
    session, _ = _session([1.5, 0.5, 1])

    outcome = session.run("merge")

    assert outcome.status == "completed"
    assert outcome.sequence == (0.5, 1, 1.5)
    assert session.data == (0.5, 1, 1.5)


def test_float_data_is_rejected_by_radix_like_the_engine() -> None:
    session, _ = _session([2.0, 1])
    with pytest.raises(InvalidSequenceError, match="non-negative integers"):
        session.run("radix")


def test_synchronous_run_keeps_caller_logging_context() -> None:
    session, _ = _session([2, 1])

    with structlog.contextvars.bound_contextvars(caller="embedder"):
        session.run("bubble")
        ctx = structlog.contextvars.get_contextvars()

    assert ctx["caller"] == "embedder"
    assert "run_id" not in ctx
    assert "component" not in ctx


def test_failing_consumer_marks_run_as_error() -> None:
    session, recorder = _session([2, 1])

    class Exploding:
        def subscriptions(self):
            return [("run.snapshot", self._boom)]

        def _boom(self, e) -> None:
            raise RuntimeError("renderer crashed")

    session.attach([Exploding()])

    with pytest.raises(RuntimeError, match="renderer crashed"):
        session.run("bubble")

    outcome = session.last_outcome
    assert outcome is not None
    assert outcome.status == "error"
    assert outcome.error_type == "RuntimeError"
    assert isinstance(recorder.lifecycle[-1], RunFailed)
    assert session.status == "error"


def test_controls_are_noops_when_idle() -> None:
    session, _ = _session([1, 2])

    session.pause()
    session.resume()
    session.stop()
    session.next_step()

    assert session.status == "idle"
    assert session.wait() is None

    with pytest.raises(ValueError):
        session.set_delay(-1)
