from __future__ import annotations

from dataclasses import dataclass, field
from numbers import Real
from typing import Any, Literal

import orjson

ControlState = Literal["running", "paused", "stopped"]
HighlightKind = Literal["comparing", "swapping", "pivot"]


@dataclass(frozen=True, slots=True)
class Highlight:
    """
    Transient annotation of the operation in progress.

    comparing / swapping carry two indices, pivot carries one.
    """

    kind: HighlightKind
    indices: tuple[int, ...]

    @classmethod
    def comparing(cls, i: int, j: int) -> "Highlight":
        return cls(kind="comparing", indices=(i, j))

    @classmethod
    def swapping(cls, i: int, j: int) -> "Highlight":
        return cls(kind="swapping", indices=(i, j))

    @classmethod
    def pivot(cls, i: int) -> "Highlight":
        return cls(kind="pivot", indices=(i,))

    def to_dict(self) -> dict[str, Any]:
        if self.kind == "pivot":
            return {"pivot": self.indices[0]}
        return {self.kind: list(self.indices)}


@dataclass(frozen=True, slots=True)
class Snapshot:
    """
    Immutable view of a run at one checkpoint.
    """

    sequence: tuple[Real, ...]
    comparisons: int
    swaps: int
    memory_accesses: int
    sorted_marks: tuple[int, ...]
    highlight: Highlight | None = None

    def to_dict(self) -> dict[str, Any]:
        """
        Render the consumer-facing contract.

        The highlight key is omitted entirely when nothing is highlighted.
        """
        d: dict[str, Any] = {
            "sequence": list(self.sequence),
            "comparisons": self.comparisons,
            "swaps": self.swaps,
            "memoryAccesses": self.memory_accesses,
            "sortedMarks": list(self.sorted_marks),
        }
        if self.highlight is not None:
            d["highlight"] = self.highlight.to_dict()
        return d

    def to_json(self) -> bytes:
        return orjson.dumps(self.to_dict())


@dataclass(slots=True)
class SortState:
    """
    Mutable state owned by a single sort run.

    Guardrails:
      - counters only ever grow
      - sorted_marks is append-only and never holds an index twice
    """

    sequence: list[Real]
    comparisons: int = 0
    swaps: int = 0
    memory_accesses: int = 0
    sorted_marks: list[int] = field(default_factory=list)
    highlight: Highlight | None = None
    _marked: set[int] = field(default_factory=set, repr=False)

    def mark_sorted(self, index: int) -> None:
        if not 0 <= index < len(self.sequence):
            raise IndexError(f"sorted mark out of range: {index}")
        if index in self._marked:
            return
        self._marked.add(index)
        self.sorted_marks.append(index)

    def is_marked(self, index: int) -> bool:
        return index in self._marked

    def snapshot(self) -> Snapshot:
        return Snapshot(
            sequence=tuple(self.sequence),
            comparisons=self.comparisons,
            swaps=self.swaps,
            memory_accesses=self.memory_accesses,
            sorted_marks=tuple(self.sorted_marks),
            highlight=self.highlight,
        )
