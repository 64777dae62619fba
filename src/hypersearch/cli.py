"""Command line interface for the hyperparameter search."""
from __future__ import annotations

import argparse
import json
import os
import shutil
from pathlib import Path
from typing import Any, Dict, List, Sequence

from .config import SearchConfig, load_config, validate_config
from .errors import HyperSearchError
from .evaluators import SearchContext, create_command_evaluator, format_value
from .progress import ProgressReporter, quiet_reporter
from .search import SearchResult, run_search

USAGE_EXAMPLE = "hypersearch [options] lower upper [tolerance] command ... % ..."


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="hypersearch",
        description=(
            "Find the value of one parameter that minimizes the loss reported by a"
            " command. Every '%' in the command is replaced by the candidate value."
        ),
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML file with search settings; command-line values take precedence.",
    )
    parser.add_argument(
        "-L",
        "--log-space",
        action="store_true",
        default=None,
        help="Search the logarithm of the parameter (bounds must be positive).",
    )
    integer_group = parser.add_mutually_exclusive_group()
    integer_group.add_argument(
        "--integer",
        dest="integer",
        action="store_true",
        default=None,
        help="Only try integer values (default: inferred from the option being tuned).",
    )
    integer_group.add_argument(
        "--real",
        dest="integer",
        action="store_false",
        default=None,
        help="Never round candidate values.",
    )
    parser.add_argument(
        "-b",
        "--brent",
        action="store_true",
        default=None,
        help="Use Brent's method instead of golden-section search.",
    )
    parser.add_argument(
        "-t",
        "--test-set",
        help="Evaluate every trained model on this test set and use the test loss.",
    )
    parser.add_argument(
        "-c",
        "--test-cache",
        action="store_true",
        default=None,
        help="Use a cache file for the test set (requires --test-set).",
    )
    parser.add_argument(
        "-e",
        "--evaluator",
        dest="evaluator_command",
        help="Command run after each training run; the last number it prints is the loss.",
    )
    parser.add_argument(
        "--timeout",
        dest="timeout_seconds",
        type=float,
        help="Abort when a single command runs longer than this many seconds (0 = no limit).",
    )
    parser.add_argument(
        "--max-iterations",
        type=int,
        help="Iteration budget for Brent's method.",
    )
    parser.add_argument(
        "--vw",
        dest="vw_executable",
        help="Executable used for the test step of --test-set (default: vw).",
    )
    parser.add_argument(
        "--as-json",
        action="store_true",
        help="Print the result as JSON instead of 'param<TAB>loss'.",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress progress output.",
    )
    parser.add_argument(
        "arguments",
        nargs=argparse.REMAINDER,
        help="lower upper [tolerance] command...",
    )
    return parser.parse_args(argv)


def split_positionals(arguments: Sequence[str]) -> Dict[str, Any]:
    """Split ``lower upper [tolerance] command...`` into configuration values."""

    values = list(arguments)
    if values and values[0] == "--":
        values = values[1:]
    if not values:
        return {}
    if len(values) < 3:
        raise SystemExit(f"Expected: {USAGE_EXAMPLE}")

    lower = _parse_number(values[0], "lower bound")
    upper = _parse_number(values[1], "upper bound")
    bounds: Dict[str, Any] = {"lower": lower, "upper": upper}

    rest = values[2:]
    tolerance = _maybe_tolerance(rest[0])
    if tolerance is not None:
        bounds["tolerance"] = tolerance
        rest = rest[1:]
    if not rest:
        raise SystemExit(f"Missing command. Expected: {USAGE_EXAMPLE}")
    return {"bounds": bounds, "command": rest}


def build_config(args: argparse.Namespace) -> SearchConfig:
    data: Dict[str, Any] = load_config(args.config) if args.config is not None else {}

    positional = split_positionals(args.arguments)
    if "bounds" in positional:
        merged_bounds = dict(data.get("bounds") or {})
        merged_bounds.update(positional["bounds"])
        data["bounds"] = merged_bounds
        data["command"] = positional["command"]

    if args.brent:
        data["method"] = "brent"
    for key in (
        "log_space",
        "integer",
        "test_set",
        "test_cache",
        "evaluator_command",
        "timeout_seconds",
        "max_iterations",
        "vw_executable",
    ):
        value = getattr(args, key)
        if value is not None:
            data[key] = value

    if "command" not in data or "bounds" not in data:
        raise SystemExit(f"Expected: {USAGE_EXAMPLE}")
    return validate_config(data)


def ensure_executable(tokens: List[str]) -> None:
    """Fail early when the command's program cannot be found."""

    program = tokens[0]
    if "%" in program:
        return
    if os.sep in program:
        if Path(program).exists():
            return
    elif shutil.which(program) is not None:
        return
    raise SystemExit(f"Executable not found: {program}")


def format_result(result: SearchResult) -> str:
    return f"{format_value(result.param)}\t{result.loss!r}"


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    config = build_config(args)
    ensure_executable(config.command_tokens)

    reporter = quiet_reporter() if args.quiet else ProgressReporter()
    evaluator = create_command_evaluator(config, context=SearchContext(), reporter=reporter)
    try:
        result = run_search(
            evaluator,
            lower=config.bounds.lower,
            upper=config.bounds.upper,
            tolerance=config.bounds.tolerance,
            log_space=config.log_space,
            integer=bool(config.integer),
            method=config.method,
            max_iterations=config.max_iterations,
        )
    except HyperSearchError as exc:
        raise SystemExit(exc.report()) from exc

    if args.as_json:
        print(json.dumps(result.to_dict(), indent=2))
        return
    print(format_result(result))


def _parse_number(text: str, label: str) -> float:
    try:
        return float(text)
    except ValueError as exc:
        raise SystemExit(f"Invalid {label}: {text!r}. Expected: {USAGE_EXAMPLE}") from exc


def _maybe_tolerance(text: str) -> float | None:
    try:
        value = float(text)
    except ValueError:
        return None
    if 0 < value < 1:
        return value
    raise SystemExit(f"Tolerance must be strictly between 0 and 1, got {text!r}")


if __name__ == "__main__":
    main()
