"""Brent's method: interpolation search with a bisection fallback."""
from __future__ import annotations

from typing import Callable

from .domain import DomainMapper
from .errors import IterationLimitExceeded
from .progress import ProgressReporter

DEFAULT_MAX_ITERATIONS = 50


class BrentSearch:
    """Brent's bracketing method applied to the loss curve.

    Each step tries inverse quadratic interpolation when the three retained
    points have distinct losses and a secant step otherwise. The candidate is
    replaced by bisection when it falls outside ``[(3a + b) / 4, b]`` or when it
    would not shrink the step fast enough compared with the previous two.

    The method searches for a sign change, so it only makes progress on loss
    curves that cross zero. When both endpoints have losses of the same sign
    there is nothing to bracket; the endpoint with the lower loss is returned
    and a diagnostic is reported.
    """

    def __init__(
        self,
        loss: Callable[[float], float],
        *,
        tolerance: float,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        mapper: DomainMapper | None = None,
        reporter: ProgressReporter | None = None,
    ) -> None:
        self.loss = loss
        self.tolerance = tolerance
        self.max_iterations = max_iterations
        self.mapper = mapper if mapper is not None else DomainMapper()
        self.reporter = reporter if reporter is not None else ProgressReporter()
        self.iterations = 0

    def search(self, lower: float, upper: float) -> float:
        snap = self.mapper.snap
        a, b = snap(lower), snap(upper)
        fa, fb = self.loss(a), self.loss(b)
        self.iterations = 0

        if fa * fb >= 0:
            chosen = a if fa < fb else b
            self.reporter.diagnostic(
                f"loss has the same sign at both bounds ({fa!r}, {fb!r}); "
                "no bracket to refine, keeping the better bound"
            )
            return chosen

        if abs(fa) < abs(fb):
            a, b, fa, fb = b, a, fb, fa

        c, fc = a, fa
        d = c
        bisected = True
        s, fs = b, fb

        while fb != 0 and fs != 0 and abs(b - a) > self._threshold(a, b):
            if self.iterations >= self.max_iterations:
                raise IterationLimitExceeded(iterations=self.iterations, bracket=(a, b))
            self.iterations += 1

            if fa != fc and fb != fc:
                s = (
                    a * fb * fc / ((fa - fb) * (fa - fc))
                    + b * fa * fc / ((fb - fa) * (fb - fc))
                    + c * fa * fb / ((fc - fa) * (fc - fb))
                )
            else:
                s = b - fb * (b - a) / (fb - fa)

            delta = self._threshold(b, c)
            boundary = (3 * a + b) / 4
            if (
                not min(boundary, b) <= s <= max(boundary, b)
                or (bisected and abs(s - b) >= abs(b - c) / 2)
                or (not bisected and abs(s - b) >= abs(c - d) / 2)
                or (bisected and abs(b - c) < delta)
                or (not bisected and abs(c - d) < delta)
            ):
                s = (a + b) / 2
                bisected = True
            else:
                bisected = False

            s = snap(s)
            fs = self.loss(s)
            d, c, fc = c, b, fb
            if fa * fs < 0:
                b, fb = s, fs
            else:
                a, fa = s, fs
            if abs(fa) < abs(fb):
                a, b, fa, fb = b, a, fb, fa

        return b if fs != 0 else s

    def _threshold(self, first: float, second: float) -> float:
        return self.tolerance * (abs(first) + abs(second))


__all__ = ["BrentSearch", "DEFAULT_MAX_ITERATIONS"]
