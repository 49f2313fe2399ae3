import unittest

import numpy
import numpy.testing

from fractals.datatypes import FractalRule, Viewport
from fractals.density import (
    CAPTURE_BUDGET, GRID_CEILING, DensityPlot, accumulate, batch_rows, new_grid, session_seed,
)
from fractals.fractal import evaluate
from fractals.parameters import sample_region, to_grid


class TestAccumulate(unittest.TestCase):

    def setUp(self):
        self.view = Viewport(complex(-2, 2), 4, 4, 40, 40)
        self.region = Viewport(complex(-2, 2), 4, 4, 1, 1)
        self.rule = FractalRule()

    def expected_points(self, seed, min_length, max_length, count):
        """Recompute the accumulation one orbit at a time."""
        samples = sample_region(self.region, count, numpy.random.default_rng(seed))
        grid = new_grid(self.view)
        added = 0
        for point in samples:
            result = evaluate(FractalRule(param=point), point, max_length, capture_cap=max_length)
            if result.iterations <= min_length:
                continue
            for z in result.orbit:
                row, col, in_bounds = to_grid(self.view, z)
                if in_bounds:
                    grid[row, col] += 1
                    added += 1
        return grid, added

    def test_matches_single_orbits(self):
        grid = new_grid(self.view)
        added = accumulate(grid, self.view, self.region, self.rule, 5, 50, 500, numpy.random.default_rng(42))
        expected_grid, expected_added = self.expected_points(42, 5, 50, 500)
        self.assertGreater(added, 0)
        self.assertEqual(added, expected_added)
        self.assertEqual(int(grid.sum()), added)
        numpy.testing.assert_array_equal(grid, expected_grid)

    def test_batches_do_not_change_result(self):
        whole = new_grid(self.view)
        batched = new_grid(self.view)
        added = accumulate(whole, self.view, self.region, self.rule, 3, 40, 300, numpy.random.default_rng(7))
        added_batched = accumulate(
            batched, self.view, self.region, self.rule, 3, 40, 300, numpy.random.default_rng(7), batch_size=64
        )
        self.assertEqual(added, added_batched)
        numpy.testing.assert_array_equal(whole, batched)

    def test_cells_never_decrease(self):
        grid = new_grid(self.view)
        rng = numpy.random.default_rng(3)
        total = 0
        for _ in range(3):
            before = grid.copy()
            total += accumulate(grid, self.view, self.region, self.rule, 2, 30, 200, rng)
            self.assertTrue(numpy.all(grid >= before))
        self.assertEqual(int(grid.sum()), total)

    def test_min_not_below_max(self):
        grid = new_grid(self.view)
        rng = numpy.random.default_rng(1)
        self.assertEqual(accumulate(grid, self.view, self.region, self.rule, 50, 50, 100, rng), 0)
        self.assertEqual(accumulate(grid, self.view, self.region, self.rule, 60, 50, 100, rng), 0)
        self.assertEqual(int(grid.sum()), 0)

    def test_non_positive_lengths(self):
        grid = new_grid(self.view)
        rng = numpy.random.default_rng(1)
        self.assertEqual(accumulate(grid, self.view, self.region, self.rule, -10, -5, 100, rng), 0)
        self.assertEqual(accumulate(grid, self.view, self.region, self.rule, -10, 0, 100, rng), 0)
        self.assertEqual(int(grid.sum()), 0)

    def test_capture_buffer_is_bounded(self):
        for max_length in [20_000, 1_000_000, CAPTURE_BUDGET]:
            rows = batch_rows(10_000, 100_000, max_length)
            self.assertGreaterEqual(rows, 1)
            if rows > 1:
                self.assertLessEqual(rows * max_length * 16, CAPTURE_BUDGET)
        self.assertLess(batch_rows(10_000, 100_000, 20_000), 10_000)
        self.assertEqual(batch_rows(10_000, 500, 50), 500)
        self.assertEqual(batch_rows(64, 500, 50), 64)

    def test_single_orbit_batches(self):
        grid = new_grid(self.view)
        added = accumulate(
            grid, self.view, self.region, self.rule, 5, 50, 500, numpy.random.default_rng(42), batch_size=1
        )
        expected_grid, expected_added = self.expected_points(42, 5, 50, 500)
        self.assertEqual(added, expected_added)
        numpy.testing.assert_array_equal(grid, expected_grid)

    def test_no_samples(self):
        grid = new_grid(self.view)
        self.assertEqual(accumulate(grid, self.view, self.region, self.rule, 1, 50, 0, numpy.random.default_rng(1)), 0)
        self.assertEqual(int(grid.sum()), 0)

    def test_points_outside_grid_are_dropped(self):
        # a grid far from every orbit
        far = Viewport(complex(10, 10), 1, 1, 10, 10)
        grid = new_grid(far)
        added = accumulate(grid, far, self.region, self.rule, 1, 50, 200, numpy.random.default_rng(5))
        self.assertEqual(added, 0)
        self.assertEqual(int(grid.sum()), 0)

    def test_saturates(self):
        grid = new_grid(self.view)
        grid.fill(GRID_CEILING)
        accumulate(grid, self.view, self.region, self.rule, 2, 30, 200, numpy.random.default_rng(11))
        self.assertTrue(numpy.all(grid == GRID_CEILING))

    def test_shape_mismatch(self):
        with self.assertRaises(ValueError):
            accumulate(numpy.zeros((3, 3), dtype=numpy.uint32), self.view, self.region, self.rule, 1, 10, 10,
                       numpy.random.default_rng(1))

    def test_halt_between_batches(self):
        grid = new_grid(self.view)
        calls = []

        def should_stop():
            calls.append(None)
            return len(calls) > 2

        added = accumulate(
            grid, self.view, self.region, self.rule, 2, 30, 1000, numpy.random.default_rng(9),
            batch_size=100, should_stop=should_stop,
        )
        self.assertEqual(len(calls), 3)
        expected_grid, expected_added = self.expected_points(9, 2, 30, 200)
        self.assertEqual(added, expected_added)
        numpy.testing.assert_array_equal(grid, expected_grid)


class TestDensityPlot(unittest.TestCase):

    def setUp(self):
        self.view = Viewport(complex(-2, 2), 4, 4, 50, 50)
        self.region = Viewport(complex(-2, 2), 4, 4, 1, 1)

    def test_session_seeds_differ(self):
        first = numpy.random.default_rng(session_seed()).random(4)
        second = numpy.random.default_rng(session_seed()).random(4)
        self.assertFalse(numpy.array_equal(first, second))

    def test_accumulate_tracks_total(self):
        plot = DensityPlot(self.view, seed=42)
        first = plot.accumulate(self.region, FractalRule(), 5, 60, 300)
        second = plot.accumulate(self.region, FractalRule(), 5, 60, 300)
        self.assertEqual(plot.plotted, first + second)
        self.assertEqual(int(plot.grid.sum()), plot.plotted)
        self.assertEqual(plot.max(), int(plot.grid.max()))

    def test_at(self):
        plot = DensityPlot(self.view, seed=1)
        plot.grid[25, 25] = 17
        self.assertEqual(plot.at(complex(0.01, -0.01)), 17)
        self.assertIsNone(plot.at(complex(5, 5)))

    def test_clear(self):
        plot = DensityPlot(self.view, seed=2)
        plot.accumulate(self.region, FractalRule(), 5, 60, 200)
        plot.clear()
        self.assertEqual(plot.max(), 0)
        self.assertEqual(plot.plotted, 0)

    def test_redefine(self):
        plot = DensityPlot(self.view, seed=3)
        plot.accumulate(self.region, FractalRule(), 5, 60, 200)
        grid = plot.grid

        same_size = Viewport(complex(-1, 1), 2, 2, 50, 50)
        plot.redefine(same_size)
        self.assertIs(plot.grid, grid)
        self.assertEqual(plot.max(), 0)
        self.assertEqual(plot.viewport, same_size)

        larger = Viewport(complex(-1, 1), 2, 2, 80, 60)
        plot.redefine(larger)
        self.assertEqual(plot.grid.shape, (80, 60))
        self.assertEqual(plot.max(), 0)


if __name__ == "__main__":
    unittest.main()
