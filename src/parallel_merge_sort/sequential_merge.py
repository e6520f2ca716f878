"""Sequential merge sort, used directly for small inputs and inside every unit."""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple


def merge(left: Sequence[float], right: Sequence[float]) -> List[float]:
    """Merge two sorted sequences; on ties the left element goes first."""
    result: List[float] = []
    i = j = 0
    len_l = len(left)
    len_r = len(right)

    while i < len_l and j < len_r:
        if left[i] <= right[j]:
            result.append(left[i])
            i += 1
        else:
            result.append(right[j])
            j += 1

    if i < len_l:
        result.extend(left[i:])
    if j < len_r:
        result.extend(right[j:])
    return result


def merge_sort(values: Iterable[float]) -> List[float]:
    """
    Return a new ascending list with the items of *values*.

    Every span is divided at its midpoint and the halves are merged once both
    are sorted. The division tree is walked with an explicit stack, so the
    call depth does not grow with the input.
    """
    items: List[float] = list(values)
    n = len(items)
    if n <= 1:
        return items

    # (lo, hi, halves_sorted)
    stack: List[Tuple[int, int, bool]] = [(0, n, False)]
    while stack:
        lo, hi, halves_sorted = stack.pop()
        if hi - lo <= 1:
            continue
        mid = lo + (hi - lo) // 2
        if halves_sorted:
            items[lo:hi] = merge(items[lo:mid], items[mid:hi])
        else:
            stack.append((lo, hi, True))
            stack.append((mid, hi, False))
            stack.append((lo, mid, False))
    return items
