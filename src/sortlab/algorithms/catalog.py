from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True, slots=True)
class AlgorithmInfo:
    """
    Static description of one sorting algorithm, for code panels and legends.
    """

    key: str
    name: str
    pseudocode: str
    average_time: str
    worst_time: str
    extra_space: str
    stable: bool
    requires_non_negative_ints: bool = False


_CATALOG: dict[str, AlgorithmInfo] = {
    "bubble": AlgorithmInfo(
        key="bubble",
        name="Bubble Sort",
        pseudocode=(
            "for i from 0 to n-1:\n"
            "    for j from 0 to n-i-1:\n"
            "        if array[j] > array[j+1]:\n"
            "            swap(array[j], array[j+1])"
        ),
        average_time="O(n^2)",
        worst_time="O(n^2)",
        extra_space="O(1)",
        stable=True,
    ),
    "selection": AlgorithmInfo(
        key="selection",
        name="Selection Sort",
        pseudocode=(
            "for i from 0 to n-1:\n"
            "    minIndex = i\n"
            "    for j from i+1 to n:\n"
            "        if array[j] < array[minIndex]:\n"
            "            minIndex = j\n"
            "    swap(array[i], array[minIndex])"
        ),
        average_time="O(n^2)",
        worst_time="O(n^2)",
        extra_space="O(1)",
        stable=False,
    ),
    "insertion": AlgorithmInfo(
        key="insertion",
        name="Insertion Sort",
        pseudocode=(
            "for i from 1 to n:\n"
            "    key = array[i]\n"
            "    j = i - 1\n"
            "    while j >= 0 and array[j] > key:\n"
            "        array[j+1] = array[j]\n"
            "        j = j - 1\n"
            "    array[j+1] = key"
        ),
        average_time="O(n^2)",
        worst_time="O(n^2)",
        extra_space="O(1)",
        stable=True,
    ),
    "quick": AlgorithmInfo(
        key="quick",
        name="Quick Sort",
        pseudocode=(
            "function quickSort(low, high):\n"
            "    if low < high:\n"
            "        pi = partition(low, high)\n"
            "        quickSort(low, pi-1)\n"
            "        quickSort(pi+1, high)"
        ),
        average_time="O(n log n)",
        worst_time="O(n^2)",
        extra_space="O(log n)",
        stable=False,
    ),
    "merge": AlgorithmInfo(
        key="merge",
        name="Merge Sort",
        pseudocode=(
            "function mergeSort(left, right):\n"
            "    if left < right:\n"
            "        mid = (left + right) / 2\n"
            "        mergeSort(left, mid)\n"
            "        mergeSort(mid+1, right)\n"
            "        merge(left, mid, right)"
        ),
        average_time="O(n log n)",
        worst_time="O(n log n)",
        extra_space="O(n)",
        stable=True,
    ),
    "heap": AlgorithmInfo(
        key="heap",
        name="Heap Sort",
        pseudocode=(
            "function heapSort():\n"
            "    buildMaxHeap()\n"
            "    for i from n-1 to 1:\n"
            "        swap(array[0], array[i])\n"
            "        heapify(0, i)"
        ),
        average_time="O(n log n)",
        worst_time="O(n log n)",
        extra_space="O(1)",
        stable=False,
    ),
    "radix": AlgorithmInfo(
        key="radix",
        name="Radix Sort (LSD, base 10)",
        pseudocode=(
            "for digit in maxDigits:\n"
            "    countingSort(array, digit)\n"
            "\n"
            "function countingSort(array, digit):\n"
            "    count digits at position\n"
            "    reconstruct sorted array"
        ),
        average_time="O(d * (n + 10))",
        worst_time="O(d * (n + 10))",
        extra_space="O(n + 10)",
        stable=True,
        requires_non_negative_ints=True,
    ),
    "counting": AlgorithmInfo(
        key="counting",
        name="Counting Sort",
        pseudocode=(
            "function countingSort():\n"
            "    count = array of size (max-min+1)\n"
            "    for each element:\n"
            "        count[element-min]++\n"
            "    reconstruct sorted array"
        ),
        average_time="O(n + k)",
        worst_time="O(n + k)",
        extra_space="O(n + k)",
        stable=True,
        requires_non_negative_ints=True,
    ),
}

CATALOG: Mapping[str, AlgorithmInfo] = MappingProxyType(_CATALOG)


def get_info(algorithm: str) -> AlgorithmInfo:
    try:
        return CATALOG[algorithm]
    except KeyError:
        raise KeyError(f"unknown algorithm: {algorithm!r}") from None
