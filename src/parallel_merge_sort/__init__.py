"""Sequential and multi-process merge sort for numeric arrays."""

from .config import SortConfig
from .dispatcher import Dispatcher, SortedSegment, UnitState
from .errors import (
    ParallelSortError,
    ProtocolMismatch,
    UnitAbnormalExit,
    UnitRuntimeError,
    UnitSpawnError,
)
from .merge_reducer import merge_all
from .segmenter import Segment, split
from .sequential_merge import merge, merge_sort
from .sorter import ParallelMergeSort, SequentialMergeSort, Sorter, SortStrategy, make_sorter

__all__ = [
    "Dispatcher",
    "ParallelMergeSort",
    "ParallelSortError",
    "ProtocolMismatch",
    "Segment",
    "SequentialMergeSort",
    "SortConfig",
    "SortStrategy",
    "SortedSegment",
    "Sorter",
    "UnitAbnormalExit",
    "UnitRuntimeError",
    "UnitSpawnError",
    "UnitState",
    "make_sorter",
    "merge",
    "merge_all",
    "merge_sort",
    "split",
]
