from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from threading import Event as ThreadEvent
from threading import Lock, Thread
from typing import Iterable, Literal

import structlog
from pydantic import ValidationError

from sortlab.core.config.settings import settings
from sortlab.core.engine.control import RunControl
from sortlab.core.engine.engine import SortRun
from sortlab.core.engine.errors import InvalidSequenceError, SortCancelled
from sortlab.core.engine.router import EngineRouter, EventComponent, RouterWiring
from sortlab.core.engine.state import Snapshot
from sortlab.core.events.bus import EventBus
from sortlab.core.events.system import (
    RunCancelled,
    RunCompleted,
    RunFailed,
    RunStarted,
    SnapshotEmitted,
)
from sortlab.core.logging.setup import bound_context
from sortlab.core.run.spec import SortRequest

log = structlog.get_logger()

SessionStatus = Literal["idle", "running", "paused", "completed", "cancelled", "error"]
OutcomeStatus = Literal["completed", "cancelled", "error"]


@dataclass(frozen=True, slots=True)
class RunOutcome:
    """
    Immutable summary of a finished (or cancelled) run.
    """

    run_id: str
    algorithm: str
    status: OutcomeStatus
    sequence: tuple[float, ...]
    comparisons: int
    swaps: int
    memory_accesses: int
    error_type: str | None = None
    error_message: str | None = None


@dataclass(slots=True)
class _ActiveRun:
    run_id: str
    algorithm: str
    engine: SortRun
    done: ThreadEvent
    thread: Thread | None = None
    error: BaseException | None = None
    outcome: RunOutcome | None = None


def _new_run_id() -> str:
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    return f"{timestamp}_{secrets.token_hex(4)}"


class SortSession:
    """
    Embedder-facing driver for sort runs.

    Responsibilities:
    - hold the current data; every snapshot replaces it, so the next run
      starts from whatever the previous one left behind
    - create a fresh SortRun per invocation and refuse overlapping runs
    - relay pause / resume / stop / delay / step commands to the active run
    - publish run lifecycle and snapshot events on the EventBus
    """

    def __init__(
        self,
        data: Iterable[float] = (),
        *,
        bus: EventBus | None = None,
        delay_ms: float | None = None,
        step_mode: bool = False,
        poll_interval_ms: float | None = None,
    ) -> None:
        self._bus = bus if bus is not None else EventBus()
        self._lock = Lock()
        self._data: tuple[float, ...] = tuple(data)
        self._delay_ms = settings.default_delay_ms if delay_ms is None else delay_ms
        if self._delay_ms < 0:
            raise ValueError("delay_ms must be >= 0")
        self._step_mode = step_mode
        self._poll_interval_ms = poll_interval_ms
        self._ordinal = 0
        self._active: _ActiveRun | None = None
        self._last: RunOutcome | None = None

    # ---------------- Introspection ----------------

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def data(self) -> tuple[float, ...]:
        with self._lock:
            return self._data

    @property
    def delay_ms(self) -> float:
        return self._delay_ms

    @property
    def step_mode(self) -> bool:
        return self._step_mode

    @property
    def last_outcome(self) -> RunOutcome | None:
        with self._lock:
            return self._last

    @property
    def active_run_id(self) -> str | None:
        with self._lock:
            return None if self._active is None else self._active.run_id

    @property
    def control(self) -> RunControl | None:
        with self._lock:
            return None if self._active is None else self._active.engine.control

    @property
    def status(self) -> SessionStatus:
        with self._lock:
            active = self._active
            last = self._last
        if active is not None:
            return "paused" if active.engine.control.state == "paused" else "running"
        if last is None:
            return "idle"
        return last.status

    # ---------------- Wiring ----------------

    def attach(self, components: Iterable[EventComponent]) -> RouterWiring:
        return EngineRouter(bus=self._bus).register(components)

    # ---------------- Data ----------------

    def load(self, values: Iterable[float]) -> None:
        with self._lock:
            if self._active is not None:
                raise RuntimeError("cannot load data while a sort is running")
            self._data = tuple(values)
        log.info("session.data_loaded", size=len(self._data))

    # ---------------- Runs ----------------

    def run(self, algorithm: str | None = None) -> RunOutcome:
        """
        Run one algorithm synchronously in the calling thread.

        Cancellation is reported as an outcome; any other failure is re-raised.

        Data the algorithm cannot sort (strings, bools, non-finite floats,
        negatives or floats for radix/counting) raises InvalidSequenceError
        before the run starts; an unknown algorithm raises pydantic's
        ValidationError.
        """
        active = self._prepare(algorithm)
        self._execute(active)
        return self._result(active)

    def start(self, algorithm: str | None = None) -> str:
        """
        Run one algorithm on a worker thread and return its run_id.

        Validation errors are raised in the caller, as for run().
        """
        active = self._prepare(algorithm)
        active.thread = Thread(
            target=self._execute,
            args=(active,),
            name=f"sortlab-{active.run_id}",
            daemon=True,
        )
        active.thread.start()
        return active.run_id

    def wait(self, timeout: float | None = None) -> RunOutcome | None:
        """
        Block until the active run (if any) has finished.

        Returns None on timeout.
        """
        with self._lock:
            active = self._active
            last = self._last
        if active is None:
            return last
        if not active.done.wait(timeout):
            return None
        if active.thread is not None:
            active.thread.join()
        return self._result(active)

    # ---------------- Controls ----------------

    def pause(self) -> None:
        control = self.control
        if control is not None:
            control.pause()

    def resume(self) -> None:
        control = self.control
        if control is not None:
            control.resume()

    def toggle_pause(self) -> SessionStatus:
        control = self.control
        if control is not None:
            if control.state == "paused":
                control.resume()
            else:
                control.pause()
        return self.status

    def stop(self) -> None:
        control = self.control
        if control is not None:
            control.stop()

    def set_delay(self, delay_ms: float) -> None:
        if delay_ms < 0:
            raise ValueError("delay_ms must be >= 0")
        self._delay_ms = delay_ms
        control = self.control
        if control is not None and not control.step_mode:
            control.set_delay(delay_ms)

    def set_step_mode(self, enabled: bool) -> None:
        self._step_mode = enabled
        control = self.control
        if control is not None:
            control.set_step_mode(enabled)
            control.set_delay(0.0 if enabled else self._delay_ms)
        log.info("session.step_mode", enabled=enabled)

    def next_step(self) -> None:
        control = self.control
        if control is not None:
            control.release_step()

    # ---------------- Internals ----------------

    def _prepare(self, algorithm: str | None) -> _ActiveRun:
        with self._lock:
            if self._active is not None:
                raise RuntimeError(f"sort already running: run_id={self._active.run_id}")

            request = self._request(algorithm)

            run_id = _new_run_id()
            control = RunControl(
                delay_ms=request.effective_delay_ms(),
                step_mode=request.step_mode,
                poll_interval_ms=self._poll_interval_ms,
                run_id=run_id,
            )
            engine = SortRun(request.sequence, self._on_snapshot, control=control, run_id=run_id)

            active = _ActiveRun(
                run_id=run_id,
                algorithm=request.algorithm,
                engine=engine,
                done=ThreadEvent(),
            )
            self._active = active
            return active

    def _request(self, algorithm: str | None) -> SortRequest:
        try:
            return SortRequest(
                algorithm=algorithm if algorithm is not None else settings.default_algorithm,
                sequence=list(self._data),
                delay_ms=self._delay_ms,
                step_mode=self._step_mode,
            )
        except ValidationError as exc:
            # Same error type SortRun raises for the same bad data
            errors = exc.errors()
            if any(e["loc"][:1] not in ((), ("sequence",)) for e in errors):
                raise
            loc = ".".join(str(part) for part in errors[0]["loc"])
            msg = errors[0]["msg"].removeprefix("Value error, ")
            raise InvalidSequenceError(f"{loc}: {msg}" if loc else msg) from exc

    def _next_ordinal(self) -> int:
        with self._lock:
            self._ordinal += 1
            return self._ordinal

    def _on_snapshot(self, snapshot: Snapshot) -> None:
        with self._lock:
            self._data = tuple(snapshot.sequence)
            run_id = self._active.run_id if self._active is not None else ""
        self._bus.publish(
            SnapshotEmitted.create(
                ordinal=self._next_ordinal(),
                run_id=run_id,
                snapshot=snapshot,
            )
        )

    def _execute(self, active: _ActiveRun) -> None:
        with bound_context(run_id=active.run_id, component="session"):
            self._drive(active)

    def _drive(self, active: _ActiveRun) -> None:
        engine = active.engine
        status: OutcomeStatus = "completed"
        error_type: str | None = None
        error_message: str | None = None

        try:
            self._bus.publish(
                RunStarted.create(
                    ordinal=self._next_ordinal(),
                    run_id=active.run_id,
                    algorithm=active.algorithm,
                    size=len(engine.state.sequence),
                )
            )

            engine.run(active.algorithm)

            self._bus.publish(
                RunCompleted.create(
                    ordinal=self._next_ordinal(),
                    run_id=active.run_id,
                    algorithm=active.algorithm,
                    comparisons=engine.state.comparisons,
                    swaps=engine.state.swaps,
                    memory_accesses=engine.state.memory_accesses,
                )
            )

        except SortCancelled:
            status = "cancelled"
            self._bus.publish(
                RunCancelled.create(
                    ordinal=self._next_ordinal(),
                    run_id=active.run_id,
                    algorithm=active.algorithm,
                )
            )

        except Exception as exc:
            status = "error"
            error_type = type(exc).__name__
            error_message = str(exc)
            active.error = exc
            log.exception("session.run_failed", run_id=active.run_id, algorithm=active.algorithm)
            self._bus.publish(
                RunFailed.create(
                    ordinal=self._next_ordinal(),
                    run_id=active.run_id,
                    error_type=error_type,
                    error_message=error_message,
                )
            )

        finally:
            outcome = RunOutcome(
                run_id=active.run_id,
                algorithm=active.algorithm,
                status=status,
                sequence=tuple(engine.state.sequence),
                comparisons=engine.state.comparisons,
                swaps=engine.state.swaps,
                memory_accesses=engine.state.memory_accesses,
                error_type=error_type,
                error_message=error_message,
            )
            active.outcome = outcome
            with self._lock:
                self._last = outcome
                self._active = None
            active.done.set()
            log.info("session.run_finished", run_id=active.run_id, status=status)

    def _result(self, active: _ActiveRun) -> RunOutcome:
        if active.error is not None:
            raise active.error
        assert active.outcome is not None
        return active.outcome
