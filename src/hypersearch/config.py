"""Configuration schema and validation for a search run."""

from __future__ import annotations

import shlex
from pathlib import Path
from typing import Any, List, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from .brent import DEFAULT_MAX_ITERATIONS
from .options import PLACEHOLDER, infer_integer
from .search import METHODS


class BoundsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    lower: float
    upper: float
    tolerance: float = 1e-4

    @model_validator(mode="after")
    def validate_bounds(self) -> "BoundsConfig":
        if self.lower > self.upper:
            self.lower, self.upper = self.upper, self.lower
        if not 0 < self.tolerance < 1:
            raise ValueError("bounds.tolerance must be strictly between 0 and 1")
        return self


class SearchConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    command: List[str] | str
    bounds: BoundsConfig
    log_space: bool = False
    integer: bool | None = None
    method: str = "golden"
    evaluator_command: str | None = None
    timeout_seconds: float = 0.0
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    test_set: str | None = None
    test_cache: bool = False
    vw_executable: str = "vw"

    @model_validator(mode="after")
    def validate_search(self) -> "SearchConfig":
        tokens = self.command_tokens
        if not tokens:
            raise ValueError("command must not be empty")
        if not any(PLACEHOLDER in token for token in tokens):
            raise ValueError(f"command must contain the placeholder {PLACEHOLDER!r}")

        self.method = self.method.lower().strip()
        if self.method not in METHODS:
            raise ValueError("method must be one of " + ", ".join(METHODS))

        if self.log_space and self.bounds.lower <= 0:
            raise ValueError("log_space search requires a positive lower bound")
        if self.timeout_seconds < 0:
            raise ValueError("timeout_seconds must be non-negative (0 disables the limit)")
        if self.max_iterations <= 0:
            raise ValueError("max_iterations must be positive")

        if self.evaluator_command is not None:
            stripped = self.evaluator_command.strip()
            self.evaluator_command = stripped or None
        if self.test_set is not None and not self.test_set.strip():
            raise ValueError("test_set must be a non-empty path when provided")
        if self.test_cache and self.test_set is None:
            raise ValueError("test_cache requires test_set")

        if self.integer is None:
            self.integer = infer_integer(tokens)
        return self

    @property
    def command_tokens(self) -> List[str]:
        if isinstance(self.command, str):
            return shlex.split(self.command)
        return list(self.command)


def load_config(path: Path) -> dict[str, Any]:
    """Read a YAML configuration file into a plain mapping."""

    if not path.exists():
        raise SystemExit(f"Configuration file not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SystemExit("Configuration root must be a mapping (YAML dictionary).")
    return data


def validate_config(data: Mapping[str, Any]) -> SearchConfig:
    try:
        return SearchConfig.model_validate(dict(data))
    except ValidationError as exc:
        details = []
        for error in exc.errors(include_url=False):
            location = ".".join(str(loc) for loc in error["loc"])
            details.append(f"- {location or '<root>'}: {error['msg']}")
        message = "Configuration validation failed:\n" + "\n".join(details)
        raise SystemExit(message) from exc


__all__ = [
    "BoundsConfig",
    "SearchConfig",
    "ValidationError",
    "load_config",
    "validate_config",
]
