"""Top-level search driver tying the algorithms to an evaluator."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict

from .brent import DEFAULT_MAX_ITERATIONS, BrentSearch
from .domain import DomainMapper
from .evaluators.base import BaseEvaluator
from .golden import Bracket, GoldenSectionSearch

METHODS = ("golden", "brent")


@dataclass
class SearchResult:
    """Container for summarising a finished search."""

    param: float
    loss: float
    coordinate: float
    evaluations: int
    method: str
    from_history: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def run_search(
    evaluator: BaseEvaluator,
    *,
    lower: float,
    upper: float,
    tolerance: float = 1e-4,
    log_space: bool = False,
    integer: bool = False,
    method: str = "golden",
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> SearchResult:
    """Minimize the evaluator's loss between ``lower`` and ``upper``.

    The algorithm's own answer is evaluated once more and then compared with
    the best value the evaluator has seen; convergence is decided by bracket
    width, so an earlier probe may have been better and wins in that case.

    Golden-section search only probes interior points and never evaluates
    ``lower`` or ``upper`` themselves. A minimum sitting exactly on a bound is
    approached but, in integer mode, comes back as the neighbouring value
    (searching ``1..100`` for a minimum at 1 yields 2). Widen the bounds past
    any value that must be reachable.
    """

    if method not in METHODS:
        raise ValueError(f"method must be one of {', '.join(METHODS)}; got {method!r}")
    if lower > upper:
        lower, upper = upper, lower

    mapper = DomainMapper(log_space=log_space, integer=integer)
    low, high = mapper.map_bounds(lower, upper)

    def loss(coordinate: float) -> float:
        return evaluator.evaluate(mapper.to_argument(coordinate))

    if method == "brent":
        algorithm = BrentSearch(
            loss,
            tolerance=tolerance,
            max_iterations=max_iterations,
            mapper=mapper,
            reporter=evaluator.reporter,
        )
        coordinate = algorithm.search(low, high)
    else:
        golden = GoldenSectionSearch(
            loss,
            tolerance=tolerance,
            mapper=mapper,
            reporter=evaluator.reporter,
        )
        coordinate = golden.search(Bracket.initial(low, high))

    final_loss = loss(coordinate)
    param = mapper.to_argument(coordinate)

    result = SearchResult(
        param=param,
        loss=final_loss,
        coordinate=coordinate,
        evaluations=evaluator.context.evaluations,
        method=method,
    )
    best = evaluator.best
    if best is not None and best.loss < final_loss:
        result.param = best.param
        result.loss = best.loss
        result.from_history = True
    return result


__all__ = ["METHODS", "SearchResult", "run_search"]
