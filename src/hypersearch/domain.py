"""Translation between search coordinates and real parameter values."""
from __future__ import annotations

import math
from dataclasses import dataclass


def round_half_up(value: float) -> float:
    return float(math.floor(value + 0.5))


@dataclass(frozen=True)
class DomainMapper:
    """Map the coordinate manipulated by the search onto real parameter values.

    With ``log_space`` the coordinate is the natural logarithm of the parameter.
    With ``integer`` every real value handed to an evaluator is rounded half up
    so the value passed to the command and the cache key always agree.
    """

    log_space: bool = False
    integer: bool = False

    def to_real(self, coordinate: float) -> float:
        return math.exp(coordinate) if self.log_space else coordinate

    def to_coordinate(self, value: float) -> float:
        if not self.log_space:
            return value
        if value <= 0:
            raise ValueError(f"log-space search requires positive values, got {value!r}")
        return math.log(value)

    def round_if_integer(self, value: float) -> float:
        return round_half_up(value) if self.integer else value

    def to_argument(self, coordinate: float) -> float:
        """Return the real value an evaluator receives for ``coordinate``."""

        return self.round_if_integer(self.to_real(coordinate))

    def snap(self, coordinate: float) -> float:
        """Move ``coordinate`` onto the coordinate of its rounded real value.

        In linear space this is plain rounding. In log space the real value is
        rounded and mapped back, never below ``1`` so the logarithm exists.
        """

        if not self.integer:
            return coordinate
        if not self.log_space:
            return round_half_up(coordinate)
        return math.log(max(1.0, round_half_up(math.exp(coordinate))))

    def map_bounds(self, lower: float, upper: float) -> tuple[float, float]:
        return self.to_coordinate(lower), self.to_coordinate(upper)


__all__ = ["DomainMapper", "round_half_up"]
