"""
Bridson's fast Poisson disk sampling in N dimensions.

`Poisson` and `PoissonVariable` are the builders; iterating one starts a
fresh `PoissonIter` run over a snapshot of its configuration.
"""

import dataclasses
import logging
import numpy as np
from typing import Any, Callable, Iterator, List, Optional, Sequence, TypeVar

from .config import (
    GenerationProgress,
    Point,
    PoissonConfig,
    RadiusRange,
    VariablePoissonConfig,
    cell_size_for,
)
from .errors import InvalidDimension, InvalidRadius
from .geometry import GridIndexer, PointRecord, SpatialGrid
from .radius import ConstantRadius, RadiusField, radius_field_from_density

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Emit a progress line every this many accepted points
LOG_INTERVAL = 500


def make_radius_source(config: PoissonConfig):
    """Pick the radius lookup matching a configuration."""
    if isinstance(config, VariablePoissonConfig):
        if config.radius_field is None:
            return ConstantRadius(config.min_radius)
        return RadiusField(config.radius_field, config.dimensions, config.radius)
    return ConstantRadius(config.radius)


class PoissonIter(Iterator[Point]):
    """
    A single lazy generation run.

    The first point is drawn uniformly in the space and yielded as-is; each
    later point is spawned around a random member of the active frontier.
    Iteration ends when every frontier point has used up its candidate
    attempts.
    """

    def __init__(self, config: PoissonConfig):
        config.validate()
        self.config = config
        self.ndim = config.ndim
        self.radius = make_radius_source(config)

        # Sized for the largest radius so the neighbor window covers every pair that could conflict
        cell_size = cell_size_for(self.radius.max_radius, self.ndim)
        self.grid = SpatialGrid(
            GridIndexer(config.dimensions, cell_size),
            multi_occupancy=isinstance(config, VariablePoissonConfig),
        )
        self.active: List[PointRecord] = []
        self.progress = GenerationProgress()
        self.rng = np.random.default_rng(config.seed)
        self._log_level = logging.INFO if config.verbose else logging.DEBUG
        self._finished = False

        logger.debug(
            "Starting %d-D run: dimensions=%s cell_size=%.6g grid=%s seed=%s",
            self.ndim, config.dimensions, cell_size, self.grid.indexer.shape, config.seed,
        )

        dims = np.asarray(config.dimensions, dtype=float)
        first = np.minimum(self.rng.random(self.ndim) * dims, np.nextafter(dims, 0))
        self._pending: Optional[Point] = tuple(first.tolist())
        self._add_point(self._record(self._pending))

    def __iter__(self) -> "PoissonIter":
        return self

    def __next__(self) -> Point:
        if self._pending is not None:
            point, self._pending = self._pending, None
            return point

        while self.active:
            i = int(self.rng.integers(len(self.active)))
            parent = self.active[i].point

            for _ in range(self.config.num_samples):
                self.progress.candidates_tried += 1
                candidate = self.generate_random_point(parent)
                if self.accept(candidate):
                    self._add_point(self._record(candidate))
                    return candidate

            self._evict(i)

        if not self._finished:
            self._finished = True
            logger.log(self._log_level, "Done! %s", self.progress)
        raise StopIteration

    def _record(self, point: Point) -> PointRecord:
        r = self.radius.radius_at(point)
        return PointRecord(point, r * r)

    def _add_point(self, record: PointRecord) -> None:
        self.active.append(record)
        self.grid.add(record)
        self.progress.points_placed += 1
        self.progress.active = len(self.active)

        if self.progress.points_placed % LOG_INTERVAL == 0:
            logger.log(self._log_level, "%s", self.progress)

    def _evict(self, i: int) -> None:
        """Retire active[i] by swapping in the last entry."""
        self.active[i] = self.active[-1]
        self.active.pop()
        self.progress.parents_evicted += 1
        self.progress.active = len(self.active)

    def generate_random_point(self, around: Point) -> Point:
        """Pick a point between r and 2r from `around`, in a uniformly random direction."""
        dist = self.radius.radius_at(around) * (1.0 + self.rng.random())

        # Normalizing a vector of standard normals gives a uniform direction on the N-sphere
        vector = self.rng.standard_normal(self.ndim)
        translate = dist / np.linalg.norm(vector)

        return tuple((np.asarray(around) + vector * translate).tolist())

    def accept(self, candidate: Point) -> bool:
        """True if `candidate` is in bounds and clear of every accepted point."""
        return self.grid.indexer.in_space(candidate) and self.grid.is_clear(self._record(candidate))


class Poisson:
    """
    Fixed-radius Poisson disk distribution builder.

    Defaults to the unit box, radius 0.1, 30 samples per point and no seed.
    Setters return the builder so calls can be chained; they have no effect
    on runs that were already started.

    Usage:
        points = Poisson(2).with_dimensions([100.0, 100.0], 5.0).with_seed(42).generate()
    """
    NDIM = 2

    def __init__(self, ndim: Optional[int] = None):
        ndim = self.NDIM if ndim is None else ndim
        if ndim < 1:
            raise InvalidDimension(f"at least one dimension is required, got {ndim}")
        self.config = self._default_config(int(ndim))

    def _default_config(self, ndim: int) -> PoissonConfig:
        return PoissonConfig(dimensions=(1.0,) * ndim)

    @property
    def ndim(self) -> int:
        return self.config.ndim

    def _set_dimensions(self, dimensions: Sequence[float]) -> None:
        dimensions = tuple(dimensions)
        if len(dimensions) != self.ndim:
            raise InvalidDimension(f"expected {self.ndim} dimensions, got {len(dimensions)}")
        self.config.dimensions = dimensions

    def with_dimensions(self, dimensions: Sequence[float], radius: float) -> "Poisson":
        """Set the box to fill, [0, d) per axis, and the radius around each point."""
        self._set_dimensions(dimensions)
        self.config.radius = radius
        return self

    def with_seed(self, seed: Optional[int]) -> "Poisson":
        """Make runs repeatable. None restores entropy seeding."""
        self.config.seed = seed
        return self

    def with_samples(self, samples: int) -> "Poisson":
        """
        Set the candidate attempts around each point before it is retired.

        This is not the number of points in the result. More attempts fill
        the space more completely at the cost of speed.
        """
        self.config.num_samples = samples
        return self

    def with_verbose(self, verbose: bool = True) -> "Poisson":
        self.config.verbose = verbose
        return self

    def iter(self) -> PoissonIter:
        """Start a new lazy run from a copy of the current configuration."""
        return PoissonIter(dataclasses.replace(self.config))

    def __iter__(self) -> PoissonIter:
        return self.iter()

    def generate(self) -> List[Point]:
        """
        Generate the whole distribution as a list.

        Each call is a new run: seeded builders give identical lists, unseeded
        ones give a different list every time.
        """
        return list(self.iter())

    def to_array(self) -> np.ndarray:
        """Generate the distribution as a (count, ndim) float array."""
        return np.array(self.generate(), dtype=float).reshape(-1, self.ndim)

    def generate_as(self, factory: Callable[..., T]) -> List[T]:
        """Generate the distribution, building each point with `factory(*coords)`."""
        return [factory(*point) for point in self.iter()]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.config!r})"


class PoissonVariable(Poisson):
    """
    Variable-density Poisson disk distribution builder.

    The exclusion radius at each point comes from a radius field laid over
    the space. Set the dimensions and (r_min, r_max) first, then supply the
    field with `with_radius_field` or `with_density`; `grid_shape` gives the
    shape the field must have.
    """

    def _default_config(self, ndim: int) -> VariablePoissonConfig:
        return VariablePoissonConfig(dimensions=(1.0,) * ndim)

    def with_dimensions(self, dimensions: Sequence[float], radius: RadiusRange) -> "PoissonVariable":
        try:
            r_min, r_max = radius
        except (TypeError, ValueError):
            raise InvalidRadius(f"radius must be an (r_min, r_max) pair, got {radius!r}") from None
        self._set_dimensions(dimensions)
        self.config.radius = (r_min, r_max)
        return self

    def with_radius_field(self, values: Any) -> "PoissonVariable":
        """Use `values`, radii in [r_min, r_max] laid out like `grid_shape()`, as the radius field."""
        self.config.radius_field = np.array(values, dtype=float).ravel()
        return self

    def with_density(self, density: Any) -> "PoissonVariable":
        """Use a normalized [0, 1] density grid; 0 packs at r_min and 1 at r_max."""
        return self.with_radius_field(radius_field_from_density(density, self.config.radius))

    def grid_shape(self):
        """Cells per axis of the radius field for the current dimensions and r_min."""
        return self.config.density_shape


class Poisson2D(Poisson):
    NDIM = 2


class Poisson3D(Poisson):
    NDIM = 3


class Poisson4D(Poisson):
    NDIM = 4


class PoissonVariable2D(PoissonVariable):
    NDIM = 2


class PoissonVariable3D(PoissonVariable):
    NDIM = 3
