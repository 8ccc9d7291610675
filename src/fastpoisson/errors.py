"""
Configuration errors raised when a generation run is constructed.

Nothing inside the generation loop raises: a rejected candidate is ordinary
control flow.
"""


class PoissonConfigError(ValueError):
    """Base class for invalid distribution configurations."""


class InvalidDimension(PoissonConfigError):
    """An axis extent is not a positive finite number, or the axis count is wrong."""


class InvalidRadius(PoissonConfigError):
    """A radius is not positive and finite, or a radius range has min > max."""


class InvalidSampleCount(PoissonConfigError):
    """The number of candidate attempts per parent point is not positive."""


class RadiusFieldSizeMismatch(PoissonConfigError):
    """The radius field does not have one value per cell of the density grid."""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"radius field has {actual} values, expected {expected}")
        self.expected = expected
        self.actual = actual
