"""Static lookup of learner options that take integer arguments."""
from __future__ import annotations

import re
from typing import Sequence

PLACEHOLDER = "%"

INTEGER_OPTIONS = frozenset(
    {
        "-b",
        "--bit_precision",
        "--passes",
        "--ngram",
        "--skips",
        "--nn",
        "--rank",
        "--lrq",
        "--lrqfa",
        "--lda",
        "--oaa",
        "--ect",
        "--csoaa",
        "--wap",
        "--cb",
        "--top",
        "--bootstrap",
        "--holdout_period",
        "--early_terminate",
        "--mem",
        "--batch_sz",
        "--ksvm_reprocess",
        "--bfgs_mem",
        "--stage_poly_sched_exponent",
    }
)

_NGRAM_STYLE = re.compile(r"^-(?:-(?:ngram|skips)|[ns])$")


def expects_integer(option: str | None) -> bool:
    """Return whether ``option`` is known to take an integer argument."""

    if not option:
        return False
    name = option.split("=", 1)[0]
    return name in INTEGER_OPTIONS or bool(_NGRAM_STYLE.match(name))


def placeholder_option(tokens: Sequence[str]) -> str | None:
    """Return the option whose argument holds the placeholder, if any."""

    for idx, token in enumerate(tokens):
        if PLACEHOLDER not in token:
            continue
        if token.startswith("-") and "=" in token:
            name, argument = token.split("=", 1)
            if PLACEHOLDER in argument:
                return name
        if token.startswith("-") and not token.startswith("--") and len(token) > 2:
            # attached short form such as -b%
            return token[:2]
        if idx > 0 and tokens[idx - 1].startswith("-"):
            return tokens[idx - 1]
        return None
    return None


def infer_integer(tokens: Sequence[str]) -> bool:
    return expects_integer(placeholder_option(tokens))


__all__ = [
    "INTEGER_OPTIONS",
    "PLACEHOLDER",
    "expects_integer",
    "infer_integer",
    "placeholder_option",
]
