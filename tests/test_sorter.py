import random
import unittest
from collections import Counter

from parallel_merge_sort.config import SortConfig
from parallel_merge_sort.errors import ParallelSortError, UnitRuntimeError
from parallel_merge_sort.sorter import (
    ParallelMergeSort,
    SequentialMergeSort,
    Sorter,
    SortStrategy,
    make_sorter,
    validate_values,
)


def explode_on_sentinel(values):
    values = list(values)
    if -1 in values:
        raise RuntimeError("injected unit failure")
    return sorted(values)


class TestSequentialMergeSort(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.sorter = SequentialMergeSort()

    async def test_scenarios(self):
        self.assertEqual(await self.sorter.sort([5, 3, 1, 4, 2]), [1, 2, 3, 4, 5])
        self.assertEqual(await self.sorter.sort([]), [])
        self.assertEqual(await self.sorter.sort([7]), [7])

    def test_name_and_strategy(self):
        self.assertEqual(self.sorter.name(), "Sequential Merge Sort")
        self.assertIs(self.sorter.strategy(), SortStrategy.SEQUENTIAL)
        self.assertIsInstance(self.sorter, Sorter)


class TestParallelMergeSort(unittest.IsolatedAsyncioTestCase):

    async def test_scenarios_forced_parallel(self):
        sorter = ParallelMergeSort(4, threshold=0)
        self.assertEqual(await sorter.sort([5, 3, 1, 4, 2]), [1, 2, 3, 4, 5])
        self.assertEqual(await sorter.sort([]), [])
        self.assertEqual(await sorter.sort([7]), [7])

    async def test_matches_sequential_for_ten_thousand_values(self):
        rng = random.Random(2024)
        data = [rng.randrange(1_000_000) for _ in range(10_000)]
        original = list(data)

        parallel = await ParallelMergeSort(4).sort(data)
        sequential = await SequentialMergeSort().sort(data)

        self.assertEqual(parallel, sequential)
        self.assertEqual(data, original)

    async def test_unit_counts_agree(self):
        rng = random.Random(5)
        data = [rng.uniform(-1e6, 1e6) for _ in range(3_000)]
        expected = await SequentialMergeSort().sort(data)
        for units in (1, 2, 4, 8):
            with self.subTest(units=units):
                self.assertEqual(await ParallelMergeSort(units).sort(data), expected)

    async def test_properties(self):
        rng = random.Random(9)
        sorter = ParallelMergeSort(3, threshold=10)
        for n in (0, 1, 9, 10, 11, 250):
            data = [rng.randint(-5, 5) for _ in range(n)]
            result = await sorter.sort(data)
            self.assertEqual(len(result), n)
            self.assertEqual(Counter(result), Counter(data))
            self.assertTrue(all(result[i] <= result[i + 1] for i in range(len(result) - 1)))
            self.assertEqual(await sorter.sort(result), result)

    async def test_below_threshold_never_dispatches(self):
        # the unit body would fail on -1, so success means no unit ran
        sorter = ParallelMergeSort(2, threshold=1000, sort_fn=explode_on_sentinel)
        self.assertEqual(await sorter.sort([3, -1, 2]), [-1, 2, 3])

    async def test_injected_unit_error_fails_the_call(self):
        data = list(range(2_000, 0, -1)) + [-1]
        sorter = ParallelMergeSort(4, threshold=1000, sort_fn=explode_on_sentinel)
        result = None
        with self.assertRaises(UnitRuntimeError) as ctx:
            result = await sorter.sort(data)
        self.assertIsNone(result)
        self.assertIsInstance(ctx.exception, ParallelSortError)
        self.assertIn("injected unit failure", str(ctx.exception))

    def test_name_and_strategy(self):
        sorter = ParallelMergeSort(8)
        self.assertEqual(sorter.name(), "Parallel Merge Sort (8 workers)")
        self.assertIs(sorter.strategy(), SortStrategy.PARALLEL)
        self.assertIsInstance(sorter, Sorter)

    def test_rejects_bad_settings(self):
        with self.assertRaises(ValueError):
            ParallelMergeSort(0)
        with self.assertRaises(ValueError):
            ParallelMergeSort(4, threshold=-1)


class TestValidateValues(unittest.TestCase):

    def test_copies(self):
        data = [1, 2.5]
        self.assertEqual(validate_values(data), [1, 2.5])
        self.assertIsNot(validate_values(data), data)

    def test_rejects_non_numbers(self):
        for bad in ([1, "2"], [None], [True, 1], [1 + 2j]):
            with self.subTest(bad=bad):
                with self.assertRaises(TypeError):
                    validate_values(bad)

    def test_rejects_non_finite(self):
        for bad in ([float("nan")], [1, float("inf")], [float("-inf")]):
            with self.subTest(bad=bad):
                with self.assertRaises(ValueError):
                    validate_values(bad)


class TestMakeSorter(unittest.TestCase):

    def test_sequential(self):
        self.assertIsInstance(make_sorter(SortStrategy.SEQUENTIAL), SequentialMergeSort)

    def test_parallel_from_config(self):
        sorter = make_sorter("parallel", SortConfig(units=6, threshold=50))
        self.assertIsInstance(sorter, ParallelMergeSort)
        self.assertEqual(sorter.units, 6)
        self.assertEqual(sorter.threshold, 50)

    def test_unknown_strategy(self):
        with self.assertRaises(ValueError):
            make_sorter("quantum")


if __name__ == "__main__":
    unittest.main()
