"""Golden-section search over an explicit bracket."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, List

from .domain import DomainMapper
from .errors import DegenerateBracket
from .progress import ProgressReporter

PHI = (1 + math.sqrt(5)) / 2
RES_PHI = 2 - PHI

# Stops the recursion when the minimizer sits at zero and the relative
# width test can never succeed.
ABSOLUTE_WIDTH_FLOOR = 1e-12


@dataclass(frozen=True)
class Bracket:
    """Triple of coordinates with the minimum assumed between ``low`` and ``high``."""

    low: float
    mid: float
    high: float

    @property
    def width(self) -> float:
        return abs(self.high - self.low)

    def contains(self, coordinate: float) -> bool:
        lo, hi = min(self.low, self.high), max(self.low, self.high)
        return lo <= coordinate <= hi

    @classmethod
    def initial(cls, lower: float, upper: float) -> "Bracket":
        return cls(lower, lower + RES_PHI * (upper - lower), upper)


class GoldenSectionSearch:
    """Recursive golden-section minimization.

    Parameters
    ----------
    loss:
        Callable mapping a search coordinate to its loss. Repeated coordinates
        are expected to be cheap; the evaluator memoizes them.
    tolerance:
        Relative bracket width at which the search stops.
    mapper:
        Snaps coordinates when integer parameters are searched.
    reporter:
        Receives the diagnostic emitted when two probes tie.
    """

    def __init__(
        self,
        loss: Callable[[float], float],
        *,
        tolerance: float,
        mapper: DomainMapper | None = None,
        reporter: ProgressReporter | None = None,
    ) -> None:
        self.loss = loss
        self.tolerance = tolerance
        self.mapper = mapper if mapper is not None else DomainMapper()
        self.reporter = reporter if reporter is not None else ProgressReporter()
        self.trace: List[Bracket] = []
        self.degenerate: List[DegenerateBracket] = []

    def search(self, bracket: Bracket) -> float:
        """Return the coordinate of the converged minimum."""

        self.trace = []
        self.degenerate = []
        return self._step(bracket)

    def _step(self, bracket: Bracket) -> float:
        snap = self.mapper.snap
        low, high = bracket.low, bracket.high
        mid = snap(bracket.mid)
        self.trace.append(Bracket(low, mid, high))

        upper_range = high - mid
        lower_range = mid - low
        expand_upper = upper_range > lower_range
        if expand_upper:
            x = mid + RES_PHI * upper_range
        else:
            x = mid - RES_PHI * lower_range
        x = snap(x)

        width = abs(high - low)
        if width < self.tolerance * (abs(mid) + abs(x)) or width <= ABSOLUTE_WIDTH_FLOOR:
            return snap((high + low) / 2)

        fx = self.loss(x)
        fmid = self.loss(mid)
        if fx == fmid:
            warning = DegenerateBracket(
                f"loss({self._describe(x)}) == loss({self._describe(mid)}) == {fx!r}; "
                "cannot tell which side holds the minimum, returning their midpoint"
            )
            self.degenerate.append(warning)
            self.reporter.diagnostic(str(warning))
            return snap((x + mid) / 2)

        if fx < fmid:
            if expand_upper:
                return self._step(Bracket(mid, x, high))
            return self._step(Bracket(low, x, mid))
        if expand_upper:
            return self._step(Bracket(low, mid, x))
        return self._step(Bracket(x, mid, high))

    @property
    def ties(self) -> int:
        return len(self.degenerate)

    def _describe(self, coordinate: float) -> str:
        return repr(self.mapper.to_argument(coordinate))


def max_steps(lower: float, upper: float, tolerance: float) -> int:
    """Upper bound on recursion depth for a bracket of the given width."""

    width = abs(upper - lower)
    if width <= tolerance:
        return 1
    return int(math.ceil(math.log(width / tolerance) / math.log(1 / (1 - RES_PHI)))) + 1


__all__ = ["ABSOLUTE_WIDTH_FLOOR", "Bracket", "GoldenSectionSearch", "PHI", "RES_PHI", "max_steps"]
