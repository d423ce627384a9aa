from __future__ import annotations

import math
from numbers import Real
from typing import Callable, Iterable

import structlog

from sortlab.core.engine.control import RunControl
from sortlab.core.engine.errors import InvalidSequenceError, SortCancelled
from sortlab.core.engine.state import Highlight, Snapshot, SortState

log = structlog.get_logger()

SnapshotCallback = Callable[[Snapshot], None]


def _validate_sequence(values: Iterable[object]) -> list[Real]:
    out: list[Real] = []
    for idx, v in enumerate(values):
        if isinstance(v, bool) or not isinstance(v, Real):
            raise InvalidSequenceError(f"element {idx} is not a real number: {v!r}")
        if not isinstance(v, int) and not math.isfinite(v):
            raise InvalidSequenceError(f"element {idx} is not finite: {v!r}")
        out.append(v)
    return out


class SortRun:
    """
    Instrumented, step-observable sort engine.

    One instance executes exactly one algorithm over a private copy of the
    input. Every primitive (compare, swap, direct write) goes through
    update_state(), which emits a snapshot and then hands control to the
    RunControl checkpoint. That checkpoint is the only suspension point, so
    pause / step / stop behave identically for every algorithm.

    Counting and radix sort require non-negative integers and raise
    InvalidSequenceError otherwise.
    """

    def __init__(
        self,
        sequence: Iterable[Real],
        on_snapshot: SnapshotCallback,
        delay_ms: float | None = None,
        *,
        control: RunControl | None = None,
        run_id: str | None = None,
    ) -> None:
        self._state = SortState(sequence=_validate_sequence(sequence))
        self._on_snapshot = on_snapshot
        self._run_id = run_id

        if control is None:
            control = RunControl(delay_ms=delay_ms or 0.0, run_id=run_id)
        elif delay_ms is not None:
            control.set_delay(delay_ms)
        self._control = control
        self._algorithm: str | None = None

    # ---------------- Introspection ----------------

    @property
    def state(self) -> SortState:
        return self._state

    @property
    def control(self) -> RunControl:
        return self._control

    @property
    def algorithm(self) -> str | None:
        return self._algorithm

    def snapshot(self) -> Snapshot:
        return self._state.snapshot()

    # ---------------- Control surface ----------------

    def set_delay(self, delay_ms: float) -> None:
        self._control.set_delay(delay_ms)

    def pause(self) -> None:
        self._control.pause()

    def resume(self) -> None:
        self._control.resume()

    def stop(self) -> None:
        self._control.stop()

    def set_step_mode(self, enabled: bool) -> None:
        self._control.set_step_mode(enabled)

    def release_step(self) -> None:
        self._control.release_step()

    # ---------------- Emission primitive ----------------

    def update_state(self, highlight: Highlight | None = None) -> None:
        """
        Apply the highlight, emit a snapshot, then block at the checkpoint.
        """
        self._state.highlight = highlight
        self._on_snapshot(self._state.snapshot())
        self._control.checkpoint()

    def checkpoint(self) -> None:
        self.update_state()

    # ---------------- Primitives ----------------

    def compare(self, i: int, j: int) -> bool:
        s = self._state
        s.comparisons += 1
        s.memory_accesses += 2
        self.update_state(Highlight.comparing(i, j))
        self.update_state()
        return s.sequence[i] > s.sequence[j]

    def swap(self, i: int, j: int) -> None:
        s = self._state
        s.swaps += 1
        s.memory_accesses += 4
        self.update_state(Highlight.swapping(i, j))

        s.sequence[i], s.sequence[j] = s.sequence[j], s.sequence[i]

        self.update_state()

    def mark_sorted(self, index: int) -> None:
        self._state.mark_sorted(index)

    def _mark_all(self) -> None:
        for i in range(len(self._state.sequence)):
            self._state.mark_sorted(i)

    # ---------------- Dispatch ----------------

    def run(self, algorithm: str) -> list[Real]:
        if algorithm == "bubble":
            return self.bubble_sort()
        elif algorithm == "selection":
            return self.selection_sort()
        elif algorithm == "insertion":
            return self.insertion_sort()
        elif algorithm == "quick":
            return self.quick_sort()
        elif algorithm == "merge":
            return self.merge_sort()
        elif algorithm == "heap":
            return self.heap_sort()
        elif algorithm == "radix":
            return self.radix_sort()
        elif algorithm == "counting":
            return self.counting_sort()
        raise ValueError(f"unknown algorithm: {algorithm!r}")

    def _execute(self, algorithm: str, body: Callable[[], None]) -> list[Real]:
        if self._algorithm is not None:
            raise RuntimeError(f"sort run already used for {self._algorithm!r}")
        self._algorithm = algorithm

        log.info("sort.started", run_id=self._run_id, algorithm=algorithm, size=len(self._state.sequence))
        try:
            body()
        except SortCancelled:
            log.info(
                "sort.cancelled",
                run_id=self._run_id,
                algorithm=algorithm,
                comparisons=self._state.comparisons,
                swaps=self._state.swaps,
            )
            raise

        log.info(
            "sort.completed",
            run_id=self._run_id,
            algorithm=algorithm,
            comparisons=self._state.comparisons,
            swaps=self._state.swaps,
            memory_accesses=self._state.memory_accesses,
        )
        return list(self._state.sequence)

    def _require_non_negative_ints(self, algorithm: str) -> None:
        for idx, v in enumerate(self._state.sequence):
            if not isinstance(v, int) or v < 0:
                raise InvalidSequenceError(f"{algorithm} sort requires non-negative integers; element {idx} is {v!r}")

    # ---------------- Comparison sorts ----------------

    def bubble_sort(self) -> list[Real]:
        return self._execute("bubble", self._bubble_sort)

    def _bubble_sort(self) -> None:
        n = len(self._state.sequence)

        for i in range(n - 1):
            swapped = False
            for j in range(n - i - 1):
                if self.compare(j, j + 1):
                    self.swap(j, j + 1)
                    swapped = True

            self.mark_sorted(n - i - 1)
            self.checkpoint()

            if not swapped:
                break

        # An early exit leaves the unvisited prefix already in place
        for k in reversed(range(n)):
            self.mark_sorted(k)
        self.checkpoint()

    def selection_sort(self) -> list[Real]:
        return self._execute("selection", self._selection_sort)

    def _selection_sort(self) -> None:
        n = len(self._state.sequence)

        for i in range(n - 1):
            min_idx = i
            for j in range(i + 1, n):
                if self.compare(min_idx, j):
                    min_idx = j

            if min_idx != i:
                self.swap(i, min_idx)

            self.mark_sorted(i)
            self.checkpoint()

        if n > 0:
            self.mark_sorted(n - 1)
        self.checkpoint()

    def insertion_sort(self) -> list[Real]:
        return self._execute("insertion", self._insertion_sort)

    def _insertion_sort(self) -> None:
        n = len(self._state.sequence)

        for i in range(1, n):
            j = i
            while j > 0 and self.compare(j - 1, j):
                self.swap(j - 1, j)
                j -= 1

            self.mark_sorted(i)
            self.checkpoint()

        if n > 0:
            self.mark_sorted(0)
        self.checkpoint()

    def quick_sort(self) -> list[Real]:
        return self._execute("quick", self._quick_sort_all)

    def _quick_sort_all(self) -> None:
        self._quick_sort(0, len(self._state.sequence) - 1)
        # No incremental notion of "settled" for quick sort
        self._mark_all()
        self.checkpoint()

    def _quick_sort(self, low: int, high: int) -> None:
        if low < high:
            pi = self._partition(low, high)
            self._quick_sort(low, pi - 1)
            self._quick_sort(pi + 1, high)

    def _partition(self, low: int, high: int) -> int:
        s = self._state
        pivot = s.sequence[high]
        self.update_state(Highlight.pivot(high))

        i = low - 1
        for j in range(low, high):
            s.comparisons += 1
            s.memory_accesses += 2
            self.update_state(Highlight.comparing(j, high))

            if s.sequence[j] < pivot:
                i += 1
                if i != j:
                    self.swap(i, j)

            self.update_state()

        self.swap(i + 1, high)
        self.update_state()
        return i + 1

    def merge_sort(self) -> list[Real]:
        return self._execute("merge", self._merge_sort_all)

    def _merge_sort_all(self) -> None:
        self._merge_sort(0, len(self._state.sequence) - 1)
        self._mark_all()
        self.checkpoint()

    def _merge_sort(self, left: int, right: int) -> None:
        if left < right:
            mid = (left + right) // 2
            self._merge_sort(left, mid)
            self._merge_sort(mid + 1, right)
            self._merge(left, mid, right)

    def _merge(self, left: int, mid: int, right: int) -> None:
        s = self._state
        left_part = s.sequence[left:mid + 1]
        right_part = s.sequence[mid + 1:right + 1]

        i = j = 0
        k = left

        while i < len(left_part) and j < len(right_part):
            s.comparisons += 1
            s.memory_accesses += 3
            self.update_state(Highlight.comparing(left + i, mid + 1 + j))

            # <= keeps equal keys in left-half order
            if left_part[i] <= right_part[j]:
                s.sequence[k] = left_part[i]
                i += 1
            else:
                s.sequence[k] = right_part[j]
                j += 1

            self.update_state()
            k += 1

        while i < len(left_part):
            s.sequence[k] = left_part[i]
            s.memory_accesses += 1
            i += 1
            k += 1
            self.checkpoint()

        while j < len(right_part):
            s.sequence[k] = right_part[j]
            s.memory_accesses += 1
            j += 1
            k += 1
            self.checkpoint()

    def heap_sort(self) -> list[Real]:
        return self._execute("heap", self._heap_sort)

    def _heap_sort(self) -> None:
        n = len(self._state.sequence)

        for i in range(n // 2 - 1, -1, -1):
            self._sift_down(n, i)

        for i in range(n - 1, 0, -1):
            self.swap(0, i)
            self.mark_sorted(i)
            self.checkpoint()
            self._sift_down(i, 0)

        if n > 0:
            self.mark_sorted(0)
        self.checkpoint()

    def _sift_down(self, n: int, i: int) -> None:
        s = self._state
        largest = i
        left = 2 * i + 1
        right = 2 * i + 2

        if left < n:
            s.comparisons += 1
            s.memory_accesses += 2
            self.update_state(Highlight.comparing(left, largest))
            if s.sequence[left] > s.sequence[largest]:
                largest = left
            self.update_state()

        if right < n:
            s.comparisons += 1
            s.memory_accesses += 2
            self.update_state(Highlight.comparing(right, largest))
            if s.sequence[right] > s.sequence[largest]:
                largest = right
            self.update_state()

        if largest != i:
            self.swap(i, largest)
            self._sift_down(n, largest)

    # ---------------- Distribution sorts ----------------

    def radix_sort(self) -> list[Real]:
        self._require_non_negative_ints("radix")
        return self._execute("radix", self._radix_sort)

    def _radix_sort(self) -> None:
        s = self._state
        largest = max(s.sequence, default=0)

        digits = 0
        while largest > 0:
            digits += 1
            largest //= 10

        for digit in range(digits):
            self._counting_pass_by_digit(10 ** digit)

        self._mark_all()
        self.checkpoint()

    def _counting_pass_by_digit(self, divisor: int) -> None:
        s = self._state
        n = len(s.sequence)
        output: list[Real] = [0] * n
        count = [0] * 10

        for i in range(n):
            count[(s.sequence[i] // divisor) % 10] += 1
            s.memory_accesses += 1

        for d in range(1, 10):
            count[d] += count[d - 1]

        for i in range(n - 1, -1, -1):
            d = (s.sequence[i] // divisor) % 10
            output[count[d] - 1] = s.sequence[i]
            count[d] -= 1
            s.memory_accesses += 2

            self.update_state(Highlight.comparing(i, count[d]))
            self.update_state()

        for i in range(n):
            s.sequence[i] = output[i]
            s.memory_accesses += 1
            self.checkpoint()

    def counting_sort(self) -> list[Real]:
        self._require_non_negative_ints("counting")
        return self._execute("counting", self._counting_sort)

    def _counting_sort(self) -> None:
        s = self._state
        n = len(s.sequence)
        if n == 0:
            self.checkpoint()
            return

        lo = min(s.sequence)
        span = max(s.sequence) - lo + 1
        count = [0] * span
        output: list[Real] = [0] * n

        for i in range(n):
            count[s.sequence[i] - lo] += 1
            s.memory_accesses += 1
            self.update_state(Highlight.comparing(i, i))
            self.update_state()

        for v in range(1, span):
            count[v] += count[v - 1]

        # Reverse scan keeps equal values in input order
        for i in range(n - 1, -1, -1):
            slot = s.sequence[i] - lo
            output[count[slot] - 1] = s.sequence[i]
            count[slot] -= 1
            s.memory_accesses += 2

        for i in range(n):
            s.sequence[i] = output[i]
            self.mark_sorted(i)
            s.memory_accesses += 1
            self.checkpoint()
