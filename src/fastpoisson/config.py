"""
Configuration and type definitions for Poisson disk sampling.
"""

import math
import numpy as np
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

from .errors import InvalidDimension, InvalidRadius, InvalidSampleCount, RadiusFieldSizeMismatch

# Type aliases
Point = Tuple[float, ...]
Cell = Tuple[int, ...]
Dimensions = Tuple[float, ...]
RadiusRange = Tuple[float, float]  # (r_min, r_max)

DEFAULT_RADIUS = 0.1
DEFAULT_SAMPLES = 30


def cell_size_for(radius: float, ndim: int) -> float:
    """Cell edge such that a cell's diagonal equals `radius`."""
    return radius / math.sqrt(ndim)


def grid_shape(dimensions: Sequence[float], cell_size: float) -> Tuple[int, ...]:
    """Number of cells along each axis needed to cover `dimensions`."""
    return tuple(int(math.ceil(d / cell_size)) for d in dimensions)


def _is_positive(value) -> bool:
    try:
        value = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(value) and value > 0


def _validate_dimensions(dimensions: Sequence[float], ndim: int) -> None:
    if len(dimensions) != ndim:
        raise InvalidDimension(f"expected {ndim} dimensions, got {len(dimensions)}")
    for axis, extent in enumerate(dimensions):
        if not _is_positive(extent):
            raise InvalidDimension(f"dimension {axis} must be positive and finite, got {extent!r}")


def _validate_samples(num_samples) -> None:
    if isinstance(num_samples, bool) or not isinstance(num_samples, (int, np.integer)):
        raise InvalidSampleCount(f"num_samples must be an integer, got {num_samples!r}")
    if num_samples <= 0:
        raise InvalidSampleCount(f"num_samples must be positive, got {num_samples}")


@dataclass
class PoissonConfig:
    """
    Parameters of a fixed-radius distribution.

        dimensions: Extent of the sampled box along each axis; points lie in [0, d)
        radius: Minimum distance between any two points
        seed: PRNG seed; None draws a fresh seed from OS entropy for every run
        num_samples: Candidate attempts around a parent before it is retired
        verbose: Log progress at INFO instead of DEBUG
    """
    dimensions: Dimensions = (1.0, 1.0)
    radius: float = DEFAULT_RADIUS
    seed: Optional[int] = None
    num_samples: int = DEFAULT_SAMPLES
    verbose: bool = False

    @property
    def ndim(self) -> int:
        return len(self.dimensions)

    @property
    def min_radius(self) -> float:
        return self.radius

    @property
    def max_radius(self) -> float:
        return self.radius

    def validate(self) -> None:
        """Raise a PoissonConfigError if this configuration cannot be sampled."""
        if self.ndim == 0:
            raise InvalidDimension("at least one dimension is required")
        _validate_dimensions(self.dimensions, self.ndim)
        if not _is_positive(self.radius):
            raise InvalidRadius(f"radius must be positive and finite, got {self.radius!r}")
        _validate_samples(self.num_samples)


@dataclass
class VariablePoissonConfig(PoissonConfig):
    """
    Parameters of a variable-density distribution.

    `radius` is an (r_min, r_max) pair. `radius_field` holds one exclusion
    radius per cell of the density grid, whose cells are sized from r_min and
    flattened in C order; see `density_shape`. Without a field every point
    uses r_min.
    """
    radius: RadiusRange = (DEFAULT_RADIUS, DEFAULT_RADIUS)
    radius_field: Optional[np.ndarray] = field(default=None, compare=False, repr=False)

    @property
    def min_radius(self) -> float:
        return self.radius[0]

    @property
    def max_radius(self) -> float:
        return self.radius[1]

    @property
    def density_shape(self) -> Tuple[int, ...]:
        return grid_shape(self.dimensions, cell_size_for(self.min_radius, self.ndim))

    def validate(self) -> None:
        if self.ndim == 0:
            raise InvalidDimension("at least one dimension is required")
        _validate_dimensions(self.dimensions, self.ndim)

        try:
            r_min, r_max = self.radius
        except (TypeError, ValueError):
            raise InvalidRadius(f"radius must be an (r_min, r_max) pair, got {self.radius!r}") from None
        if not (_is_positive(r_min) and _is_positive(r_max)):
            raise InvalidRadius(f"radii must be positive and finite, got {self.radius!r}")
        if r_min > r_max:
            raise InvalidRadius(f"r_min ({r_min}) must not exceed r_max ({r_max})")

        _validate_samples(self.num_samples)

        if self.radius_field is not None:
            self.radius_field = np.asarray(self.radius_field, dtype=float).ravel()
            expected = math.prod(self.density_shape)
            if self.radius_field.size != expected:
                raise RadiusFieldSizeMismatch(expected, int(self.radius_field.size))
            if not np.all(np.isfinite(self.radius_field)):
                raise InvalidRadius("radius field contains non-finite values")
            if np.any(self.radius_field <= 0) or np.any(self.radius_field > r_max):
                raise InvalidRadius(f"radius field values must lie in (0, {r_max}]")


@dataclass
class GenerationProgress:
    """Tracks the current state of a generation run."""
    points_placed: int = 0
    candidates_tried: int = 0
    parents_evicted: int = 0
    active: int = 0

    @property
    def exhausted(self) -> bool:
        """True once the active frontier is empty and no further points can appear."""
        return self.points_placed > 0 and self.active == 0

    @property
    def acceptance_ratio(self) -> float:
        return self.points_placed / self.candidates_tried if self.candidates_tried > 0 else 0

    def __str__(self) -> str:
        return (f"Placed: {self.points_placed} | Active: {self.active} | "
                f"Tried: {self.candidates_tried} ({self.acceptance_ratio:.0%} accepted) | "
                f"Evicted: {self.parents_evicted}")
