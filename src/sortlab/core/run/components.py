from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

import structlog

from sortlab.algorithms.describe import describe
from sortlab.core.engine.router import EventHandler
from sortlab.core.engine.state import Snapshot
from sortlab.core.events.base import Event
from sortlab.core.events.system import SnapshotEmitted

log = structlog.get_logger()

LIFECYCLE_EVENT_TYPES: tuple[str, ...] = (
    "run.started",
    "run.completed",
    "run.cancelled",
    "run.failed",
)


@dataclass(slots=True)
class SnapshotLogComponent:
    """
    Logs every snapshot at debug level, and lifecycle events at info.
    """

    def subscriptions(self) -> Sequence[tuple[str, EventHandler]]:
        subs: list[tuple[str, EventHandler]] = [("run.snapshot", self._on_snapshot)]
        subs.extend((et, self._on_lifecycle) for et in LIFECYCLE_EVENT_TYPES)
        return subs

    def _on_snapshot(self, e: Event) -> None:
        if not isinstance(e, SnapshotEmitted):
            return
        step = describe(e.snapshot)
        log.debug(
            "run.snapshot",
            run_id=e.run_id,
            ordinal=e.ordinal,
            phase=step.phase,
            status=step.status,
            comparisons=e.snapshot.comparisons,
            swaps=e.snapshot.swaps,
        )

    def _on_lifecycle(self, e: Event) -> None:
        log.info(e.event_type, ordinal=e.ordinal, run_id=getattr(e, "run_id", None))


@dataclass(slots=True)
class SnapshotRecorder:
    """
    Keeps every snapshot of the runs it observes, in delivery order.

    Useful for replaying a finished run frame by frame.
    """

    snapshots: list[Snapshot] = field(default_factory=list)
    lifecycle: list[Event] = field(default_factory=list)

    def subscriptions(self) -> Sequence[tuple[str, EventHandler]]:
        subs: list[tuple[str, EventHandler]] = [("run.snapshot", self._on_snapshot)]
        subs.extend((et, self._on_lifecycle) for et in LIFECYCLE_EVENT_TYPES)
        return subs

    @property
    def latest(self) -> Snapshot | None:
        return self.snapshots[-1] if self.snapshots else None

    def clear(self) -> None:
        self.snapshots.clear()
        self.lifecycle.clear()

    def _on_snapshot(self, e: Event) -> None:
        if isinstance(e, SnapshotEmitted):
            self.snapshots.append(e.snapshot)

    def _on_lifecycle(self, e: Event) -> None:
        self.lifecycle.append(e)
