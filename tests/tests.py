import itertools
import unittest
from collections import namedtuple

import numpy as np

from fastpoisson import (
    GridIndexer,
    InvalidDimension,
    InvalidRadius,
    InvalidSampleCount,
    Poisson,
    Poisson2D,
    Poisson3D,
    Poisson4D,
    PointRecord,
    SpatialGrid,
)
from fastpoisson.config import cell_size_for


def min_pair_distance_sq(points) -> float:
    pts = np.asarray(points, dtype=float)
    if len(pts) < 2:
        return float('inf')
    diff = pts[:, np.newaxis, :] - pts[np.newaxis, :, :]
    dist_sq = np.sum(diff ** 2, axis=2)
    np.fill_diagonal(dist_sq, np.inf)
    return float(np.min(dist_sq))


def all_in_bounds(points, dimensions) -> bool:
    pts = np.asarray(points, dtype=float)
    return bool(np.all(pts >= 0) and np.all(pts < np.asarray(dimensions)))


class TestGridIndexer(unittest.TestCase):
    def setUp(self):
        """A 5x5 box with radius 1 gives cells of 1/sqrt(2) and an 8x8 grid."""
        self.indexer = GridIndexer([5.0, 5.0], cell_size_for(1.0, 2))

    def test_shape(self):
        self.assertEqual(self.indexer.shape, (8, 8))
        self.assertEqual(self.indexer.size, 64)

    def test_point_to_cell_truncates(self):
        self.assertEqual(self.indexer.point_to_cell((0.0, 0.0)), (0, 0))
        self.assertEqual(self.indexer.point_to_cell((0.75, 1.5)), (1, 2))
        self.assertEqual(self.indexer.point_to_cell((4.999, 4.999)), (7, 7))

    def test_cell_to_idx_is_row_major(self):
        self.assertEqual(self.indexer.cell_to_idx((0, 0)), 0)
        self.assertEqual(self.indexer.cell_to_idx((0, 1)), 1)
        self.assertEqual(self.indexer.cell_to_idx((1, 0)), 8)
        self.assertEqual(self.indexer.cell_to_idx((7, 7)), 63)

    def test_cell_to_idx_is_bijective(self):
        """Every in-grid cell gets its own index, covering the whole grid."""
        indexer = GridIndexer([2.0, 3.0, 1.5], 0.4)
        cells = list(itertools.product(*(range(s) for s in indexer.shape)))
        indices = {indexer.cell_to_idx(cell) for cell in cells}
        self.assertEqual(indices, set(range(indexer.size)))

    def test_non_integral_extent_rounds_up(self):
        indexer = GridIndexer([3.0, 3.0, 5.0], cell_size_for(0.75, 3))
        self.assertEqual(indexer.shape, (7, 7, 12))

    def test_in_space_is_half_open(self):
        self.assertTrue(self.indexer.in_space((0.0, 4.9)))
        self.assertFalse(self.indexer.in_space((5.0, 1.0)))
        self.assertFalse(self.indexer.in_space((-0.001, 1.0)))

    def test_in_grid(self):
        self.assertTrue(self.indexer.in_grid((0, 7)))
        self.assertFalse(self.indexer.in_grid((8, 0)))
        self.assertFalse(self.indexer.in_grid((0, -1)))


class TestSpatialGrid(unittest.TestCase):
    def setUp(self):
        self.grid = SpatialGrid(GridIndexer([10.0, 10.0], cell_size_for(1.0, 2)))

    def test_neighbor_window(self):
        """Interior cells see a 5x5 block; corner cells lose what is off the grid."""
        self.assertEqual(len(list(self.grid.neighbor_cells((5, 5)))), 25)
        self.assertEqual(len(list(self.grid.neighbor_cells((0, 0)))), 9)

    def test_first_writer_wins(self):
        self.assertTrue(self.grid.add(PointRecord((1.0, 1.0), 1.0)))
        self.assertFalse(self.grid.add(PointRecord((1.1, 1.1), 1.0)))
        self.assertEqual(len(self.grid), 1)
        idx = self.grid.indexer.point_to_idx((1.0, 1.0))
        self.assertEqual(self.grid.cells[idx][0].point, (1.0, 1.0))

    def test_rejects_point_within_radius(self):
        self.grid.add(PointRecord((5.0, 5.0), 1.0))
        self.assertFalse(self.grid.is_clear(PointRecord((5.9, 5.0), 1.0)))
        self.assertTrue(self.grid.is_clear(PointRecord((6.0, 5.0), 1.0)))
        self.assertTrue(self.grid.is_clear(PointRecord((5.8, 5.8), 1.0)))

    def test_neighbor_radius_is_checked_too(self):
        """A small-radius candidate is still rejected inside a stored point's larger radius."""
        grid = SpatialGrid(GridIndexer([10.0, 10.0], cell_size_for(2.0, 2)), multi_occupancy=True)
        grid.add(PointRecord((5.0, 5.0), 4.0))
        self.assertFalse(grid.is_clear(PointRecord((6.5, 5.0), 0.25)))
        self.assertTrue(grid.is_clear(PointRecord((7.0, 5.0), 0.25)))

    def test_multi_occupancy_keeps_every_point(self):
        grid = SpatialGrid(GridIndexer([10.0, 10.0], 2.0), multi_occupancy=True)
        grid.add(PointRecord((1.0, 1.0), 0.01))
        grid.add(PointRecord((1.5, 1.5), 0.01))
        self.assertEqual(len(grid), 2)
        self.assertEqual(len(grid.cells[grid.indexer.point_to_idx((1.0, 1.0))]), 2)


class TestFixedRadius(unittest.TestCase):
    def setUp(self):
        """The 5x5 square with radius 1, seeded."""
        self.poisson = Poisson2D().with_dimensions([5.0, 5.0], 1.0).with_seed(42).with_samples(30)

    def test_seeded_scenario(self):
        points = self.poisson.generate()

        self.assertGreater(len(points), 1)
        self.assertTrue(all_in_bounds(points, [5.0, 5.0]))
        self.assertGreaterEqual(min_pair_distance_sq(points), 1.0)

    def test_seeded_runs_are_identical(self):
        self.assertEqual(self.poisson.generate(), self.poisson.generate())

        rebuilt = Poisson2D().with_dimensions([5.0, 5.0], 1.0).with_seed(42)
        self.assertEqual(self.poisson.generate(), rebuilt.generate())

    def test_unseeded_runs_differ(self):
        poisson = Poisson2D().with_dimensions([5.0, 5.0], 1.0)
        self.assertNotEqual(poisson.generate(), poisson.generate())

    def test_prism_unseeded(self):
        points = Poisson3D().with_dimensions([3.0, 3.0, 5.0], 0.75).generate()

        self.assertTrue(all_in_bounds(points, [3.0, 3.0, 5.0]))
        self.assertGreaterEqual(min_pair_distance_sq(points), 0.75 ** 2)

    def test_one_and_four_dimensions(self):
        line = Poisson(1).with_dimensions([20.0], 0.5).with_seed(3).generate()
        self.assertTrue(all_in_bounds(line, [20.0]))
        self.assertGreaterEqual(min_pair_distance_sq(line), 0.25)

        hyper = Poisson4D().with_dimensions([1.0] * 4, 0.4).with_seed(3).generate()
        self.assertTrue(all_in_bounds(hyper, [1.0] * 4))
        self.assertGreaterEqual(min_pair_distance_sq(hyper), 0.16)

    def test_defaults(self):
        points = Poisson2D().with_seed(1).generate()
        self.assertTrue(all_in_bounds(points, [1.0, 1.0]))
        self.assertGreaterEqual(min_pair_distance_sq(points), 0.1 ** 2)

    def test_points_are_tuples_of_floats(self):
        point = next(iter(self.poisson))
        self.assertIsInstance(point, tuple)
        self.assertEqual(len(point), 2)
        self.assertTrue(all(isinstance(c, float) for c in point))

    # --- Iteration protocol ---

    def test_lazy_iteration(self):
        """Taking five points computes only five."""
        it = self.poisson.iter()
        taken = list(itertools.islice(it, 5))

        self.assertEqual(len(taken), 5)
        self.assertEqual(it.progress.points_placed, 5)
        self.assertEqual(taken, self.poisson.generate()[:5])

    def test_iterator_is_fused(self):
        it = self.poisson.iter()
        list(it)
        with self.assertRaises(StopIteration):
            next(it)
        with self.assertRaises(StopIteration):
            next(it)

    def test_termination_bound(self):
        it = self.poisson.iter()
        points = list(it)
        progress = it.progress

        self.assertEqual(progress.points_placed, len(points))
        self.assertEqual(progress.active, 0)
        self.assertEqual(progress.parents_evicted, len(points))
        self.assertTrue(progress.exhausted)
        self.assertLessEqual(
            progress.candidates_tried,
            (progress.points_placed - 1 + progress.parents_evicted) * 30,
        )

    # --- Configuration ---

    def test_setter_overrides_previous_value(self):
        reseeded = Poisson2D().with_dimensions([5.0, 5.0], 1.0).with_seed(1).with_seed(42)
        self.assertEqual(reseeded.generate(), self.poisson.generate())

    def test_setters_do_not_affect_running_iterator(self):
        it = self.poisson.iter()
        first = next(it)
        self.poisson.with_dimensions([50.0, 50.0], 0.5).with_seed(7)
        rest = list(it)

        expected = Poisson2D().with_dimensions([5.0, 5.0], 1.0).with_seed(42).generate()
        self.assertEqual([first] + rest, expected)

    def test_invalid_dimension(self):
        with self.assertRaises(InvalidDimension):
            Poisson2D().with_dimensions([5.0, 0.0], 1.0).iter()
        with self.assertRaises(InvalidDimension):
            Poisson2D().with_dimensions([5.0, -1.0], 1.0).generate()
        with self.assertRaises(InvalidDimension):
            Poisson2D().with_dimensions([5.0, 5.0, 5.0], 1.0)
        with self.assertRaises(InvalidDimension):
            Poisson(0)

    def test_invalid_radius(self):
        with self.assertRaises(InvalidRadius):
            Poisson2D().with_dimensions([5.0, 5.0], 0.0).iter()
        with self.assertRaises(InvalidRadius):
            Poisson2D().with_dimensions([5.0, 5.0], float('nan')).iter()

    def test_invalid_sample_count(self):
        with self.assertRaises(InvalidSampleCount):
            Poisson2D().with_samples(0).iter()

    def test_errors_are_value_errors(self):
        with self.assertRaises(ValueError):
            Poisson2D().with_samples(-5).generate()

    # --- Conversions ---

    def test_to_array(self):
        arr = self.poisson.to_array()
        self.assertEqual(arr.shape, (len(self.poisson.generate()), 2))
        self.assertEqual(arr.dtype, np.float64)

    def test_generate_as(self):
        Vec2 = namedtuple("Vec2", ["x", "y"])
        points = self.poisson.generate_as(Vec2)
        self.assertIsInstance(points[0], Vec2)
        self.assertEqual([tuple(p) for p in points], self.poisson.generate())

    # --- Logging ---

    def test_verbose_logs_summary(self):
        with self.assertLogs("fastpoisson.sampler", level="INFO") as logs:
            self.poisson.with_verbose().generate()
        self.assertTrue(any("Done!" in line for line in logs.output))


if __name__ == '__main__':
    unittest.main()
