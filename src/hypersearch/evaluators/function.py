"""Evaluator backed by an in-process callable."""
from __future__ import annotations

from typing import Callable, List

from ..progress import ProgressReporter
from .base import BaseEvaluator, SearchContext, call_with_timeout


class FunctionEvaluator(BaseEvaluator):
    """Stand-in for an external command that computes the loss in Python.

    ``calls`` records every value actually measured, so cache hits can be told
    apart from real evaluations.
    """

    def __init__(
        self,
        func: Callable[[float], float],
        *,
        timeout: float | None = None,
        context: SearchContext | None = None,
        reporter: ProgressReporter | None = None,
    ) -> None:
        super().__init__(context=context, reporter=reporter)
        self.func = func
        self.timeout = timeout
        self.calls: List[float] = []

    def _evaluate_impl(self, value: float) -> float:
        self.calls.append(value)
        description = getattr(self.func, "__name__", repr(self.func))
        return call_with_timeout(self.func, value, timeout=self.timeout, description=description)


__all__ = ["FunctionEvaluator"]
