"""
fastpoisson - Poisson disk sampling in any number of dimensions.

Usage:
    from fastpoisson import Poisson2D, Poisson3D, PoissonVariable2D

    # Unit square, radius 0.1
    points = Poisson2D().generate()

    # Fill a 100x100 box with points at least 5 apart, repeatably
    points = Poisson2D().with_dimensions([100.0, 100.0], 5.0).with_seed(42).generate()

    # Lazy: only 5 points are computed
    first_five = list(itertools.islice(Poisson3D(), 5))

    # Denser packing where the density grid is low
    sampler = PoissonVariable2D().with_dimensions([10.0, 10.0], (0.5, 1.5))
    density = np.random.default_rng(0).random(sampler.grid_shape())
    points = sampler.with_density(density).generate()

Variants:
    - Fixed radius: one exclusion radius everywhere
    - Variable radius: exclusion radius read from a radius field over the space
"""

from .config import (
    Cell,
    GenerationProgress,
    Point,
    PoissonConfig,
    VariablePoissonConfig,
)
from .errors import (
    InvalidDimension,
    InvalidRadius,
    InvalidSampleCount,
    PoissonConfigError,
    RadiusFieldSizeMismatch,
)
from .geometry import GridIndexer, PointRecord, SpatialGrid
from .radius import ConstantRadius, RadiusField, density_from_function, radius_field_from_density
from .sampler import (
    Poisson,
    Poisson2D,
    Poisson3D,
    Poisson4D,
    PoissonIter,
    PoissonVariable,
    PoissonVariable2D,
    PoissonVariable3D,
)

__all__ = [
    "Poisson",
    "Poisson2D",
    "Poisson3D",
    "Poisson4D",
    "PoissonVariable",
    "PoissonVariable2D",
    "PoissonVariable3D",
    "PoissonIter",
    "PoissonConfig",
    "VariablePoissonConfig",
    "GenerationProgress",
    "GridIndexer",
    "SpatialGrid",
    "PointRecord",
    "ConstantRadius",
    "RadiusField",
    "radius_field_from_density",
    "density_from_function",
    "PoissonConfigError",
    "InvalidDimension",
    "InvalidRadius",
    "InvalidSampleCount",
    "RadiusFieldSizeMismatch",
    "Point",
    "Cell",
]

__version__ = "0.4.0"
