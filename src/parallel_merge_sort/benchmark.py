"""
Sequential vs. parallel merge sort benchmark.

    parallel-merge-sort-bench --sizes 1000 100000 1000000 --units 2 4 8
    parallel-merge-sort-bench --demo
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import random
import time
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from .sorter import ParallelMergeSort, SequentialMergeSort, Sorter

DEFAULT_SIZES = [1_000, 100_000, 1_000_000]
DEFAULT_UNIT_COUNTS = [2, 4, 8]
DEMO_DATA = [64, 34, 25, 12, 22, 11, 90, 88, 76, 54, 43, 32, 21, 10, 9, 8, 7, 6, 5, 4, 3, 2, 1]


@dataclass
class BenchmarkRow:
    size: int
    name: str
    units: int  # 1 for the sequential baseline
    seconds: float
    speedup: float
    efficiency: float  # percent
    correct: bool


def generate_random_array(size: int, seed: Optional[int] = None) -> List[int]:
    rng = random.Random(seed)
    return [rng.randrange(1_000_000) for _ in range(size)]


async def measure(sorter: Sorter, values: Sequence[float]) -> Tuple[List[float], float]:
    start = time.perf_counter()
    result = await sorter.sort(values)
    return result, time.perf_counter() - start


async def run_benchmarks(
    sizes: Iterable[int] = DEFAULT_SIZES,
    unit_counts: Iterable[int] = DEFAULT_UNIT_COUNTS,
    seed: Optional[int] = None,
) -> List[BenchmarkRow]:
    print("\n=== Merge Sort Performance (sequential vs multiprocessing) ===")
    rows: List[BenchmarkRow] = []
    unit_counts = list(unit_counts)

    for n in sizes:
        data = generate_random_array(n, seed)
        print(f"\nn = {n:>10,}")

        sequential = SequentialMergeSort()
        expected, base = await measure(sequential, data)
        rows.append(BenchmarkRow(n, sequential.name(), 1, base, 1.0, 100.0, True))
        print(f"  {sequential.name():<34} time = {base:.3f} s")

        for units in unit_counts:
            sorter = ParallelMergeSort(units)
            result, elapsed = await measure(sorter, data)
            speedup = base / elapsed if elapsed > 0 else float("inf")
            efficiency = speedup / units * 100
            correct = result == expected
            rows.append(BenchmarkRow(n, sorter.name(), units, elapsed, speedup, efficiency, correct))
            print(
                f"  {sorter.name():<34} time = {elapsed:.3f} s  "
                f"speedup = {speedup:.2f}x  efficiency = {efficiency:.1f}%  "
                f"correctness = {'PASS' if correct else 'FAIL'}"
            )
    return rows


async def demo() -> bool:
    """Sort a small fixed array with both strategies and compare the results."""
    print(f"Test data: {DEMO_DATA}")
    results = []
    for sorter in (SequentialMergeSort(), ParallelMergeSort(4)):
        result, elapsed = await measure(sorter, DEMO_DATA)
        results.append(result)
        print(f"\n{sorter.name()}")
        print(f"Implementation: {sorter.strategy().value}")
        print(f"Execution time: {elapsed * 1000:.3f} ms")
        print(f"Original length: {len(DEMO_DATA)}  Sorted length: {len(result)}")
        print(f"First 10 elements: {result[:10]}")
        print(f"Last 10 elements: {result[-10:]}")

    correct = results[0] == results[1]
    print(f"\nCorrectness check: {'PASS' if correct else 'FAIL'}")
    return correct


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sequential vs parallel merge sort benchmark")
    parser.add_argument("--sizes", type=int, nargs="+", default=DEFAULT_SIZES, help="Array sizes to benchmark.")
    parser.add_argument("--units", type=int, nargs="+", default=DEFAULT_UNIT_COUNTS, help="Unit counts to try.")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducibility.")
    parser.add_argument("--demo", action="store_true", help="Run the small demo instead of the benchmark.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    if args.demo:
        return 0 if asyncio.run(demo()) else 1
    rows = asyncio.run(run_benchmarks(args.sizes, args.units, args.seed))
    return 0 if all(r.correct for r in rows) else 1


if __name__ == "__main__":
    raise SystemExit(main())
