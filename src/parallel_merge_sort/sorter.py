"""
Public sort contract.

Two concrete sorters share one capability interface. ``ParallelMergeSort``
routes inputs shorter than its threshold to the sequential engine, since
process start-up would dominate the run time.
"""

from __future__ import annotations

import enum
import logging
import math
import numbers
from typing import Iterable, List, Optional, Protocol, runtime_checkable

from .config import DEFAULT_JOIN_TIMEOUT, DEFAULT_THRESHOLD, DEFAULT_UNITS, SortConfig
from .dispatcher import Dispatcher
from .merge_reducer import merge_all
from .protocol import SortFn
from .segmenter import split
from .sequential_merge import merge_sort

logger = logging.getLogger(__name__)


class SortStrategy(enum.Enum):
    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"


@runtime_checkable
class Sorter(Protocol):
    async def sort(self, values: Iterable[float]) -> List[float]: ...

    def name(self) -> str: ...

    def strategy(self) -> SortStrategy: ...


def validate_values(values: Iterable[float]) -> List[float]:
    """Copy *values* into a list, rejecting anything but finite real numbers."""
    items = list(values)
    for i, v in enumerate(items):
        if isinstance(v, bool) or not isinstance(v, numbers.Real):
            raise TypeError(f"item {i} is not a real number: {v!r}")
        if not math.isfinite(v):
            raise ValueError(f"item {i} is not finite: {v!r}")
    return items


class SequentialMergeSort:
    async def sort(self, values: Iterable[float]) -> List[float]:
        return merge_sort(validate_values(values))

    def name(self) -> str:
        return "Sequential Merge Sort"

    def strategy(self) -> SortStrategy:
        return SortStrategy.SEQUENTIAL


class ParallelMergeSort:
    """Split, sort each segment in its own process, then merge."""

    def __init__(
        self,
        units: int = DEFAULT_UNITS,
        threshold: int = DEFAULT_THRESHOLD,
        *,
        start_method: Optional[str] = None,
        join_timeout: float = DEFAULT_JOIN_TIMEOUT,
        sort_fn: SortFn = merge_sort,
    ) -> None:
        if threshold < 0:
            raise ValueError(f"threshold must be >= 0, got {threshold}")
        self.units = units
        self.threshold = threshold
        self._dispatcher = Dispatcher(units, sort_fn=sort_fn, mp_context=start_method, join_timeout=join_timeout)

    async def sort(self, values: Iterable[float]) -> List[float]:
        items = validate_values(values)
        if len(items) < self.threshold:
            logger.debug("%d values below threshold %d, sorting sequentially", len(items), self.threshold)
            return merge_sort(items)

        sorted_segments = await self._dispatcher.run(split(items, self.units))
        return merge_all(sorted_segments)

    def name(self) -> str:
        return f"Parallel Merge Sort ({self.units} workers)"

    def strategy(self) -> SortStrategy:
        return SortStrategy.PARALLEL


def make_sorter(strategy: SortStrategy, config: Optional[SortConfig] = None) -> Sorter:
    config = config or SortConfig.from_env()
    if SortStrategy(strategy) is SortStrategy.SEQUENTIAL:
        return SequentialMergeSort()
    return ParallelMergeSort(
        config.units,
        config.threshold,
        start_method=config.start_method,
        join_timeout=config.join_timeout,
    )
