"""Split an array into contiguous segments, one per execution unit."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Segment:
    segment_id: int
    start: int
    values: Tuple[float, ...]

    def __len__(self) -> int:
        return len(self.values)


def split(values: Sequence[float], k: int) -> List[Segment]:
    """
    Split *values* into at most *k* chunks of ``ceil(n / k)`` items.

    The last chunk may be shorter. Chunks that would start at or past the end
    are dropped, so no segment is ever empty and an empty input gives ``[]``.
    """
    if k < 1:
        raise ValueError(f"segment count must be >= 1, got {k}")

    n = len(values)
    size = (n + k - 1) // k  # ceil division
    segments: List[Segment] = []
    for i in range(k):
        start = i * size
        if start >= n:
            break
        segments.append(Segment(i, start, tuple(values[start : start + size])))

    logger.debug("split %d values into %d segments of <= %d", n, len(segments), size)
    return segments
