import contextlib
import io
import unittest

from parallel_merge_sort import benchmark


class TestBenchmark(unittest.IsolatedAsyncioTestCase):

    def test_generate_random_array_is_seeded(self):
        first = benchmark.generate_random_array(100, seed=42)
        self.assertEqual(first, benchmark.generate_random_array(100, seed=42))
        self.assertEqual(len(first), 100)
        self.assertTrue(all(0 <= v < 1_000_000 for v in first))

    async def test_run_benchmarks_rows(self):
        with contextlib.redirect_stdout(io.StringIO()) as out:
            rows = await benchmark.run_benchmarks([200, 1500], [2], seed=1)

        self.assertEqual([(r.size, r.units) for r in rows], [(200, 1), (200, 2), (1500, 1), (1500, 2)])
        self.assertTrue(all(r.correct for r in rows))
        self.assertIn("Parallel Merge Sort (2 workers)", out.getvalue())

    async def test_demo_passes(self):
        with contextlib.redirect_stdout(io.StringIO()) as out:
            self.assertTrue(await benchmark.demo())
        self.assertIn("Correctness check: PASS", out.getvalue())


class TestMain(unittest.TestCase):

    def test_main_demo(self):
        with contextlib.redirect_stdout(io.StringIO()):
            self.assertEqual(benchmark.main(["--demo"]), 0)

    def test_main_benchmark(self):
        with contextlib.redirect_stdout(io.StringIO()):
            self.assertEqual(benchmark.main(["--sizes", "50", "--units", "2", "--seed", "3"]), 0)


if __name__ == "__main__":
    unittest.main()
