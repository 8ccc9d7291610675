"""
Exclusion-radius lookups.

The sampler asks a radius source for the exclusion radius at a point when it
draws a candidate around a parent and when it tests a candidate. Sources
expose `radius_at(point)`, `min_radius` and `max_radius`.
"""

import numpy as np
from typing import Callable, Sequence

from .config import Point, RadiusRange, cell_size_for
from .errors import InvalidRadius, RadiusFieldSizeMismatch
from .geometry import GridIndexer


class ConstantRadius:
    """The same exclusion radius everywhere."""

    def __init__(self, radius: float):
        self.radius = float(radius)

    @property
    def min_radius(self) -> float:
        return self.radius

    @property
    def max_radius(self) -> float:
        return self.radius

    def radius_at(self, point: Point) -> float:
        return self.radius


class RadiusField:
    """
    Exclusion radii read from a precomputed scalar grid.

    The grid's cells are sized from r_min, so the field resolves density
    changes at least as finely as r_min spacing. Values are used as-is and
    may be anywhere in (0, r_max], including below r_min; scale them
    beforehand, for instance with `radius_field_from_density`.
    """

    def __init__(self, values, dimensions: Sequence[float], radius: RadiusRange):
        r_min, r_max = radius
        self.r_min = float(r_min)
        self.r_max = float(r_max)
        self.indexer = GridIndexer(dimensions, cell_size_for(self.r_min, len(dimensions)))

        self.values = np.asarray(values, dtype=float).ravel()
        if self.values.size != self.indexer.size:
            raise RadiusFieldSizeMismatch(self.indexer.size, int(self.values.size))
        if not np.all(np.isfinite(self.values)):
            raise InvalidRadius("radius field contains non-finite values")
        # Radii beyond r_max would outgrow the neighbor window
        if np.any(self.values <= 0) or np.any(self.values > self.r_max):
            raise InvalidRadius(f"radius field values must lie in (0, {self.r_max}]")

        # Plain floats keep the per-candidate lookup off the numpy scalar path
        self._lookup = self.values.tolist()

    @property
    def min_radius(self) -> float:
        return self.r_min

    @property
    def max_radius(self) -> float:
        return self.r_max

    @property
    def shape(self):
        return self.indexer.shape

    def radius_at(self, point: Point) -> float:
        return self._lookup[self.indexer.point_to_idx(point)]


def radius_field_from_density(density, radius: RadiusRange) -> np.ndarray:
    """
    Map a normalized density grid into exclusion radii.

    0 maps to r_min (densest packing) and 1 to r_max; values outside [0, 1]
    are clipped. The result keeps the input's shape.
    """
    r_min, r_max = radius
    if r_min > r_max:
        raise InvalidRadius(f"r_min ({r_min}) must not exceed r_max ({r_max})")
    density = np.clip(np.asarray(density, dtype=float), 0.0, 1.0)
    return np.clip(r_min + density * (r_max - r_min), r_min, r_max)


def density_from_function(
    func: Callable[[np.ndarray], float],
    dimensions: Sequence[float],
    r_min: float,
) -> np.ndarray:
    """
    Evaluate `func` at the center of every density-grid cell.

    `func` receives the cell center as a 1-D array and should return a value
    in [0, 1]. The result has the density grid's shape, in the layout
    `RadiusField` expects.
    """
    indexer = GridIndexer(dimensions, cell_size_for(r_min, len(dimensions)))
    density = np.empty(indexer.shape, dtype=float)
    for cell in np.ndindex(*indexer.shape):
        center = (np.array(cell, dtype=float) + 0.5) * indexer.cell_size
        density[cell] = func(np.minimum(center, indexer.dimensions))
    return density
