from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from sortlab.core.engine.state import Snapshot
from sortlab.core.events.base import Event


@dataclass(frozen=True, slots=True)
class RunStarted(Event):
    """
    Emitted when a sort run begins.
    """

    event_type: ClassVar[str] = "run.started"

    run_id: str
    algorithm: str
    size: int


@dataclass(frozen=True, slots=True)
class SnapshotEmitted(Event):
    """
    Emitted once per engine checkpoint.

    Consumers must treat each snapshot as replacing all prior render state.
    """

    event_type: ClassVar[str] = "run.snapshot"

    run_id: str
    snapshot: Snapshot


@dataclass(frozen=True, slots=True)
class RunCompleted(Event):
    """
    Emitted when the algorithm returns normally.
    """

    event_type: ClassVar[str] = "run.completed"

    run_id: str
    algorithm: str
    comparisons: int
    swaps: int
    memory_accesses: int


@dataclass(frozen=True, slots=True)
class RunCancelled(Event):
    """
    Emitted when a stop request was observed at a checkpoint.
    """

    event_type: ClassVar[str] = "run.cancelled"

    run_id: str
    algorithm: str


@dataclass(frozen=True, slots=True)
class RunFailed(Event):
    """
    Emitted when the run raised anything other than cancellation.
    """

    event_type: ClassVar[str] = "run.failed"

    run_id: str

    error_type: str
    error_message: str
