"""Pairwise merge tree over sorted segments."""

from __future__ import annotations

import logging
import math
from typing import Iterable, List, Sequence, Union

from .sequential_merge import merge

logger = logging.getLogger(__name__)

Run = Sequence[float]


def _values(segment) -> Run:
    return getattr(segment, "values", segment)


def tree_depth(k: int) -> int:
    """Number of merge rounds needed for *k* segments."""
    return math.ceil(math.log2(k)) if k > 1 else 0


def merge_round(segments: Sequence[Run]) -> List[Run]:
    """Merge adjacent pairs; an odd trailing segment carries over unmerged."""
    merged: List[Run] = []
    for i in range(0, len(segments), 2):
        if i + 1 < len(segments):
            merged.append(merge(segments[i], segments[i + 1]))
        else:
            merged.append(segments[i])
    return merged


def merge_all(sorted_segments: Iterable[Union[Run, object]]) -> List[float]:
    """
    Combine any number of sorted segments into one ascending list.

    Accepts plain sequences or objects with a ``values`` attribute (such as
    ``SortedSegment``). Input order does not affect the result.
    """
    current: List[Run] = [_values(s) for s in sorted_segments]
    if not current:
        return []

    rounds = 0
    while len(current) > 1:
        current = merge_round(current)
        rounds += 1

    logger.debug("merge tree finished in %d rounds", rounds)
    return list(current[0])
