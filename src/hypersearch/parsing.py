"""Extraction of loss values from captured command output."""
from __future__ import annotations

import re
from typing import Sequence

NUMBER_PATTERN = r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?"

AVERAGE_LOSS = re.compile(r"average\s+loss\s*=\s*(" + NUMBER_PATTERN + r")")
GENERIC_NUMBER = re.compile(r"(?<![\w.])(" + NUMBER_PATTERN + r")(?!\w)")


def extract_loss(lines: Sequence[str], use_generic_pattern: bool = False) -> float | None:
    """Return the loss reported last in ``lines``, or ``None`` when absent.

    Lines are scanned from the end so that a test loss printed after a train
    loss takes precedence. In the default mode only ``average loss = X`` lines
    qualify; the generic mode, used with external evaluators, accepts the
    first number found on the last line that contains one.
    """

    pattern = GENERIC_NUMBER if use_generic_pattern else AVERAGE_LOSS
    for line in reversed(lines):
        match = pattern.search(line)
        if match is None:
            continue
        return float(match.group(1))
    return None


__all__ = ["AVERAGE_LOSS", "GENERIC_NUMBER", "NUMBER_PATTERN", "extract_loss"]
