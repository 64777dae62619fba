"""Evaluator package exports."""

from .base import (
    BaseEvaluator,
    BestResult,
    SearchContext,
    call_with_timeout,
    format_value,
)
from .command import CommandEvaluator, create_command_evaluator
from .function import FunctionEvaluator

__all__ = [
    "BaseEvaluator",
    "BestResult",
    "CommandEvaluator",
    "FunctionEvaluator",
    "SearchContext",
    "call_with_timeout",
    "create_command_evaluator",
    "format_value",
]
