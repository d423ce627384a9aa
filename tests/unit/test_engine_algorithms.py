from __future__ import annotations

import pytest

from sortlab.core.engine.engine import SortRun
from sortlab.core.engine.errors import InvalidSequenceError
from sortlab.core.engine.state import Snapshot
from sortlab.core.run.spec import ALGORITHMS


class Tagged(int):
    """An int that remembers where it came from (stability checks)."""

    def __new__(cls, value: int, tag: str) -> "Tagged":
        obj = super().__new__(cls, value)
        obj.tag = tag
        return obj


def _run(algorithm: str, data: list) -> tuple[list, list[Snapshot], SortRun]:
    snapshots: list[Snapshot] = []
    engine = SortRun(data, snapshots.append, delay_ms=0)
    result = engine.run(algorithm)
    return result, snapshots, engine


INPUTS = [
    [5, 3, 8, 1],
    [],
    [7],
    [4, 4, 4],
    [2, 1],
    [9, 0, 12, 3, 3, 100, 7, 45, 2],
    [10, 9, 8, 7, 6, 5, 4, 3, 2, 1],
    [1, 2, 3, 4, 5, 6],
    [31, 4, 159, 26, 5, 35, 89, 79, 3, 238, 46, 0],
]


@pytest.mark.parametrize("algorithm", ALGORITHMS)
@pytest.mark.parametrize("data", INPUTS)
def test_final_snapshot_is_sorted(algorithm: str, data: list[int]) -> None:
    result, snapshots, _ = _run(algorithm, list(data))

    assert snapshots, "every run ends with at least one snapshot"
    assert list(snapshots[-1].sequence) == sorted(data)
    assert result == sorted(data)


@pytest.mark.parametrize("algorithm", ALGORITHMS)
@pytest.mark.parametrize("data", INPUTS)
def test_sorted_marks_cover_every_index_once(algorithm: str, data: list[int]) -> None:
    _, snapshots, engine = _run(algorithm, list(data))

    marks = snapshots[-1].sorted_marks
    assert len(marks) == len(set(marks)) == len(data)
    assert set(marks) == set(range(len(data)))
    assert tuple(engine.state.sorted_marks) == marks


@pytest.mark.parametrize("algorithm", ALGORITHMS)
def test_counters_and_marks_never_decrease(algorithm: str) -> None:
    _, snapshots, _ = _run(algorithm, [31, 4, 159, 26, 5, 35, 89, 79, 3, 238, 46, 0])

    for prev, cur in zip(snapshots, snapshots[1:]):
        assert cur.comparisons >= prev.comparisons
        assert cur.swaps >= prev.swaps
        assert cur.memory_accesses >= prev.memory_accesses
        assert cur.sorted_marks[: len(prev.sorted_marks)] == prev.sorted_marks


@pytest.mark.parametrize("algorithm", ALGORITHMS)
@pytest.mark.parametrize("data", [[], [7]])
def test_trivial_inputs_do_no_work(algorithm: str, data: list[int]) -> None:
    result, snapshots, engine = _run(algorithm, list(data))

    assert result == data
    assert engine.state.comparisons == 0
    assert engine.state.swaps == 0
    assert snapshots[-1].highlight is None


@pytest.mark.parametrize("algorithm", ALGORITHMS)
def test_caller_sequence_is_not_mutated(algorithm: str) -> None:
    data = [3, 1, 2, 9, 0]
    _run(algorithm, data)
    assert data == [3, 1, 2, 9, 0]


def test_bubble_counts_for_known_input() -> None:
    result, snapshots, engine = _run("bubble", [5, 3, 8, 1])

    assert result == [1, 3, 5, 8]
    # [5, 3, 8, 1] holds four inversions; three full passes are needed
    assert engine.state.comparisons == 6
    assert engine.state.swaps == 4
    assert engine.state.memory_accesses == 6 * 2 + 4 * 4
    assert snapshots[-1].comparisons == 6


def test_bubble_exits_early_on_sorted_input() -> None:
    _, _, engine = _run("bubble", [1, 2, 3, 4, 5])

    assert engine.state.comparisons == 4
    assert engine.state.swaps == 0
    assert engine.state.sorted_marks[0] == 4
    assert engine.state.sorted_marks[-1] == 0


def test_selection_swaps_only_when_minimum_moves() -> None:
    _, _, engine = _run("selection", [1, 3, 2])

    assert engine.state.comparisons == 3
    assert engine.state.swaps == 1


def test_insertion_stops_at_first_non_inversion() -> None:
    _, _, engine = _run("insertion", [1, 2, 4, 3])

    # i=1, i=2: one compare each; i=3: swap then one more compare
    assert engine.state.comparisons == 4
    assert engine.state.swaps == 1


def test_counting_sort_handles_single_value_range() -> None:
    result, snapshots, engine = _run("counting", [4, 4, 4])

    assert result == [4, 4, 4]
    assert engine.state.swaps == 0
    assert snapshots[-1].sorted_marks == (0, 1, 2)


def test_radix_sort_of_all_zeros_needs_no_digit_pass() -> None:
    result, snapshots, engine = _run("radix", [0, 0, 0])

    assert result == [0, 0, 0]
    assert engine.state.memory_accesses == 0
    assert len(snapshots) == 1


def test_compare_emits_highlight_then_clears_it() -> None:
    _, snapshots, _ = _run("bubble", [2, 1, 3])

    comparing = [i for i, s in enumerate(snapshots) if s.highlight is not None and s.highlight.kind == "comparing"]
    assert comparing
    for i in comparing:
        assert snapshots[i + 1].highlight is None
        assert snapshots[i + 1].sequence == snapshots[i].sequence


def test_swap_exchanges_between_its_two_emissions() -> None:
    _, snapshots, _ = _run("bubble", [2, 1])

    swap_frames = [i for i, s in enumerate(snapshots) if s.highlight is not None and s.highlight.kind == "swapping"]
    assert len(swap_frames) == 1
    i = swap_frames[0]
    assert snapshots[i].sequence == (2, 1)
    assert snapshots[i + 1].sequence == (1, 2)
    assert snapshots[i + 1].highlight is None


def test_quick_sort_highlights_pivot() -> None:
    _, snapshots, _ = _run("quick", [3, 1, 2])

    pivots = [s.highlight.indices for s in snapshots if s.highlight is not None and s.highlight.kind == "pivot"]
    assert pivots[0] == (2,)


def test_quick_sort_marks_only_at_completion() -> None:
    _, snapshots, _ = _run("quick", [4, 2, 5, 1, 3])

    assert all(s.sorted_marks == () for s in snapshots[:-1])
    assert snapshots[-1].sorted_marks == (0, 1, 2, 3, 4)


def test_heap_sort_compares_both_children() -> None:
    _, _, engine = _run("heap", [1, 2, 3])

    # build: 2 child comparisons + 1 swap
    # i=2: root swap, then sift over n=2 (1 comparison + 1 swap)
    # i=1: root swap, sift over n=1 does nothing
    assert engine.state.comparisons == 3
    assert engine.state.swaps == 4


def _tagged(pairs: list[tuple[int, str]]) -> list[Tagged]:
    return [Tagged(v, t) for v, t in pairs]


@pytest.mark.parametrize("algorithm", ["merge", "counting", "radix"])
def test_stable_algorithms_keep_equal_keys_in_input_order(algorithm: str) -> None:
    data = _tagged([(13, "a"), (1, "b"), (13, "c"), (2, "d"), (1, "e"), (13, "f"), (2, "g")])

    result, _, _ = _run(algorithm, data)

    assert [int(v) for v in result] == [1, 1, 2, 2, 13, 13, 13]
    assert [v.tag for v in result] == ["b", "e", "d", "g", "a", "c", "f"]


@pytest.mark.parametrize("algorithm", ["counting", "radix"])
@pytest.mark.parametrize("data", [[3, -1, 2], [1.5, 2], [2, 0.0]])
def test_distribution_sorts_reject_non_natural_input(algorithm: str, data: list) -> None:
    snapshots: list[Snapshot] = []
    engine = SortRun(data, snapshots.append)

    with pytest.raises(InvalidSequenceError):
        engine.run(algorithm)

    assert snapshots == []
    assert engine.algorithm is None


@pytest.mark.parametrize("bad", [[1, float("nan")], [float("inf")], [True, 2], ["3"], [None]])
def test_construction_rejects_non_numeric_input(bad: list) -> None:
    with pytest.raises(InvalidSequenceError):
        SortRun(bad, lambda s: None)


def test_comparison_sorts_accept_negative_and_float_values() -> None:
    result, _, _ = _run("merge", [0.5, -3, 2, -3.25])
    assert result == [-3.25, -3, 0.5, 2]


def test_run_is_single_use() -> None:
    engine = SortRun([2, 1], lambda s: None)
    engine.bubble_sort()

    with pytest.raises(RuntimeError):
        engine.quick_sort()


def test_unknown_algorithm_is_rejected() -> None:
    engine = SortRun([2, 1], lambda s: None)
    with pytest.raises(ValueError):
        engine.run("bogo")
