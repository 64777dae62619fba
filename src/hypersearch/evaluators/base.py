"""Base interfaces and shared state for loss evaluators."""
from __future__ import annotations

import concurrent.futures
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

from ..errors import ProcessTimeout
from ..progress import ProgressReporter


@dataclass(frozen=True)
class BestResult:
    """Lowest loss observed so far and the parameter that produced it."""

    param: float
    loss: float


class SearchContext:
    """Per-run memo cache, best-result record and evaluation history.

    Keys are real parameter values, already rounded when integer mode is
    active. A fresh context is created for each search so independent searches
    in the same process never share results.
    """

    def __init__(self) -> None:
        self.cache: Dict[float, float] = {}
        self.best: BestResult | None = None
        self.history: List[Tuple[float, float]] = []

    def lookup(self, value: float) -> float | None:
        return self.cache.get(value)

    def record(self, value: float, loss: float) -> bool:
        """Store ``loss`` for ``value`` and return whether it is the new best."""

        if value in self.cache:
            raise ValueError(f"parameter {value!r} has already been evaluated")
        self.cache[value] = loss
        self.history.append((value, loss))
        # Ties go to the most recent evaluation.
        if self.best is None or loss <= self.best.loss:
            self.best = BestResult(param=value, loss=loss)
            return True
        return False

    @property
    def evaluations(self) -> int:
        return len(self.history)


def format_value(value: float) -> str:
    """Render a parameter value the way it is substituted into commands."""

    if float(value).is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(float(value))


class BaseEvaluator(ABC):
    """Common interface for all evaluator implementations.

    :meth:`evaluate` receives a real parameter value and returns its loss. The
    base class memoizes results in the :class:`SearchContext`, tracks the best
    result and reports progress; subclasses only implement
    :meth:`_evaluate_impl`, which is called at most once per distinct value.
    """

    def __init__(
        self,
        *,
        context: SearchContext | None = None,
        reporter: ProgressReporter | None = None,
    ) -> None:
        self.context = context if context is not None else SearchContext()
        self.reporter = reporter if reporter is not None else ProgressReporter()
        self._in_flight: set[float] = set()

    def evaluate(self, value: float) -> float:
        cached = self.context.lookup(value)
        if cached is not None:
            return cached
        if value in self._in_flight:
            raise RuntimeError(f"re-entrant evaluation of parameter {value!r}")

        self._in_flight.add(value)
        try:
            self.reporter.trying(format_value(value))
            loss = float(self._evaluate_impl(value))
        finally:
            self._in_flight.discard(value)

        improved = self.context.record(value, loss)
        self.reporter.result(loss, best=improved)
        return loss

    def __call__(self, value: float) -> float:
        return self.evaluate(value)

    @abstractmethod
    def _evaluate_impl(self, value: float) -> float:
        """Measure the loss for ``value``; raise on any fatal failure."""

    @property
    def best(self) -> BestResult | None:
        return self.context.best


def call_with_timeout(
    func: Callable[[float], float],
    value: float,
    *,
    timeout: float | None,
    description: str,
) -> float:
    """Run ``func(value)`` in a worker thread bounded by ``timeout`` seconds."""

    if not timeout:
        return func(value)

    executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)
    future = executor.submit(func, value)
    try:
        return future.result(timeout=timeout)
    except concurrent.futures.TimeoutError as exc:
        future.cancel()
        raise ProcessTimeout(command=description, output=[], seconds=timeout) from exc
    finally:
        executor.shutdown(wait=False)


__all__ = [
    "BaseEvaluator",
    "BestResult",
    "SearchContext",
    "call_with_timeout",
    "format_value",
]
