from __future__ import annotations

from dataclasses import dataclass

from sortlab.core.engine.state import Snapshot


@dataclass(frozen=True, slots=True)
class StepDescription:
    status: str
    phase: str


def describe(snapshot: Snapshot) -> StepDescription:
    """
    Human-readable status line and phase label for one snapshot.
    """
    h = snapshot.highlight
    if h is not None:
        if h.kind == "comparing":
            i, j = h.indices
            return StepDescription(status=f"Comparing indices {i} and {j}", phase="Comparison")
        if h.kind == "swapping":
            i, j = h.indices
            return StepDescription(status=f"Swapping indices {i} and {j}", phase="Swap")
        return StepDescription(status=f"Partitioning around index {h.indices[0]}", phase="Partitioning")

    if len(snapshot.sorted_marks) == len(snapshot.sequence):
        return StepDescription(status="Sort complete", phase="Done")
    return StepDescription(status="Sorting", phase="Progress")
