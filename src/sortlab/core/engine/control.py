from __future__ import annotations

from threading import Condition

import structlog

from sortlab.core.config.settings import settings
from sortlab.core.engine.errors import SortCancelled
from sortlab.core.engine.state import ControlState

log = structlog.get_logger()


class RunControl:
    """
    Explicit control surface for one sort run.

    The engine calls checkpoint() after every snapshot callback has returned;
    that is the only place a run ever blocks. Every other method may be called
    from any thread.

    Transitions:
      running <-> paused     (pause / resume, idempotent)
      running|paused -> stopped   (terminal)
    """

    def __init__(
        self,
        *,
        delay_ms: float = 0.0,
        step_mode: bool = False,
        poll_interval_ms: float | None = None,
        run_id: str | None = None,
    ) -> None:
        if delay_ms < 0:
            raise ValueError("delay_ms must be >= 0")

        poll = settings.pause_poll_interval_ms if poll_interval_ms is None else poll_interval_ms
        if poll <= 0:
            raise ValueError("poll_interval_ms must be > 0")

        self._cond = Condition()
        self._state: ControlState = "running"
        self._delay_ms = float(delay_ms)
        self._poll_s = poll / 1000.0
        self._step_mode = step_mode
        self._step_permits = 0
        self._waiting = False
        self._run_id = run_id

    # ---------------- Introspection ----------------

    @property
    def state(self) -> ControlState:
        with self._cond:
            return self._state

    @property
    def is_stopped(self) -> bool:
        return self.state == "stopped"

    @property
    def delay_ms(self) -> float:
        with self._cond:
            return self._delay_ms

    @property
    def step_mode(self) -> bool:
        with self._cond:
            return self._step_mode

    @property
    def waiting(self) -> bool:
        """True while the run is parked on a pause or an unreleased step."""
        with self._cond:
            return self._waiting

    # ---------------- Commands ----------------

    def set_delay(self, delay_ms: float) -> None:
        if delay_ms < 0:
            raise ValueError("delay_ms must be >= 0")
        with self._cond:
            self._delay_ms = float(delay_ms)

    def pause(self) -> None:
        with self._cond:
            if self._state != "running":
                return
            self._state = "paused"
            self._cond.notify_all()
        log.info("control.paused", run_id=self._run_id)

    def resume(self) -> None:
        with self._cond:
            if self._state != "paused":
                return
            self._state = "running"
            self._cond.notify_all()
        log.info("control.resumed", run_id=self._run_id)

    def stop(self) -> None:
        with self._cond:
            if self._state == "stopped":
                return
            self._state = "stopped"
            self._cond.notify_all()
        log.info("control.stop_requested", run_id=self._run_id)

    def set_step_mode(self, enabled: bool) -> None:
        with self._cond:
            self._step_mode = enabled
            if not enabled:
                self._step_permits = 0
            self._cond.notify_all()

    def release_step(self) -> None:
        """
        Let exactly one more checkpoint through while in step mode.

        Releases issued before the run reaches its next checkpoint are banked.
        """
        with self._cond:
            self._step_permits += 1
            self._cond.notify_all()

    # ---------------- Checkpoint ----------------

    def checkpoint(self) -> None:
        """
        Apply delay, then pause / step gating, then the stop check.

        Raises SortCancelled once the run has been stopped.
        """
        with self._cond:
            delay_s = self._delay_ms / 1000.0
            if delay_s > 0:
                self._cond.wait_for(lambda: self._state == "stopped", timeout=delay_s)

            self._waiting = True
            try:
                while True:
                    if self._state == "stopped":
                        raise SortCancelled(self._run_id)
                    if self._state == "paused":
                        self._cond.wait(timeout=self._poll_s)
                        continue
                    if self._step_mode:
                        if self._step_permits > 0:
                            self._step_permits -= 1
                            return
                        self._cond.wait(timeout=self._poll_s)
                        continue
                    return
            finally:
                self._waiting = False
