"""
Grid utilities for Poisson disk sampling.

Contains:
- GridIndexer: point -> cell -> flat index arithmetic over an N-dimensional box
- PointRecord: an accepted point with its squared exclusion radius
- SpatialGrid: flattened cell storage used for the neighbor rejection test
"""

import itertools
import math
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Sequence, Tuple

from .config import Cell, Point, grid_shape

# Cells either side of the query cell that the neighbor search visits, for N <= 4
DEFAULT_REACH = 2


def neighbor_reach(ndim: int) -> int:
    """
    Cells to search either side of a query cell.

    With cells of edge r / sqrt(N), a point within r of another is at most
    ceil(sqrt(N)) cells away on any axis; for N <= 4 that is the 5^N block.
    """
    return max(DEFAULT_REACH, int(math.ceil(math.sqrt(ndim))))


def squared_distance(a: Point, b: Point) -> float:
    return sum((x - y) * (x - y) for x, y in zip(a, b))


class GridIndexer:
    """Maps points in [0, dimensions) onto a flattened grid of square cells."""

    def __init__(self, dimensions: Sequence[float], cell_size: float):
        self.dimensions = tuple(float(d) for d in dimensions)
        self.cell_size = float(cell_size)
        self.shape = grid_shape(self.dimensions, self.cell_size)
        self.size = math.prod(self.shape)

    @property
    def ndim(self) -> int:
        return len(self.dimensions)

    def point_to_cell(self, point: Point) -> Cell:
        """
        Truncate each coordinate by the cell size.

        Only meaningful for points inside the space. The last cell on an axis
        absorbs coordinates that round up onto the far boundary.
        """
        return tuple(
            min(int(p / self.cell_size), s - 1)
            for p, s in zip(point, self.shape)
        )

    def cell_to_idx(self, cell: Cell) -> int:
        """Flatten a cell in row-major (C) order; the first axis varies slowest."""
        idx = 0
        for c, s in zip(cell, self.shape):
            idx = idx * s + c
        return idx

    def point_to_idx(self, point: Point) -> int:
        return self.cell_to_idx(self.point_to_cell(point))

    def in_space(self, point: Point) -> bool:
        """True if 0 <= point[i] < dimensions[i] on every axis."""
        return all(0.0 <= p < d for p, d in zip(point, self.dimensions))

    def in_grid(self, cell: Cell) -> bool:
        """True if 0 <= cell[i] < shape[i] on every axis."""
        return all(0 <= c < s for c, s in zip(cell, self.shape))


@dataclass(frozen=True)
class PointRecord:
    """An accepted point and the square of its own exclusion radius."""
    point: Point
    radius_sq: float


@dataclass
class SpatialGrid:
    """
    Flattened spatial grid of accepted points.

    With `multi_occupancy` off each cell keeps only the first point stored in
    it, which is all a fixed radius needs since a cell's diagonal equals the
    radius. With it on, cells keep every point, as variable radii allow.
    """
    indexer: GridIndexer
    multi_occupancy: bool = False
    cells: Dict[int, List[PointRecord]] = field(default_factory=dict)

    _offsets: List[Tuple[int, ...]] = field(init=False, default_factory=list, repr=False)
    _count: int = field(init=False, default=0, repr=False)

    def __post_init__(self) -> None:
        reach = neighbor_reach(self.indexer.ndim)
        self._offsets = list(itertools.product(range(-reach, reach + 1), repeat=self.indexer.ndim))

    def __len__(self) -> int:
        return self._count

    def add(self, record: PointRecord) -> bool:
        """Store a point in its cell. Returns False if the cell was already taken."""
        bucket = self.cells.setdefault(self.indexer.point_to_idx(record.point), [])
        if bucket and not self.multi_occupancy:
            return False
        bucket.append(record)
        self._count += 1
        return True

    def neighbor_cells(self, cell: Cell) -> Iterator[int]:
        """Yield flat indices of the in-grid cells around `cell` (itself included)."""
        for offset in self._offsets:
            neighbor = tuple(c + o for c, o in zip(cell, offset))
            # Cells beyond the grid are skipped, not treated as obstructions
            if self.indexer.in_grid(neighbor):
                yield self.indexer.cell_to_idx(neighbor)

    def is_clear(self, record: PointRecord) -> bool:
        """
        True if no stored point lies within either exclusion radius of `record`.

        A pair is too close when its squared distance is below the candidate's
        squared radius or the stored point's. Distances are never rooted.
        """
        for idx in self.neighbor_cells(self.indexer.point_to_cell(record.point)):
            bucket = self.cells.get(idx)
            if not bucket:
                continue
            for other in bucket:
                dist_sq = squared_distance(record.point, other.point)
                if dist_sq < record.radius_sq or dist_sq < other.radius_sq:
                    return False
        return True
