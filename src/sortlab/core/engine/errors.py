from __future__ import annotations


class SortCancelled(Exception):
    """
    Raised at a checkpoint once stop() has been observed.

    A stopped sort is an expected outcome, not a crash.
    """

    def __init__(self, run_id: str | None = None) -> None:
        super().__init__("sorting stopped" if run_id is None else f"sorting stopped: run_id={run_id}")
        self.run_id = run_id


class InvalidSequenceError(ValueError):
    """
    Input does not meet the preconditions of the engine or of the chosen algorithm.

    Always raised before the first snapshot is emitted.
    """
