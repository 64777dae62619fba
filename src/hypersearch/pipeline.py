"""Rewrite a training command into a train-then-test pipeline."""
from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

_MODEL_OPTIONS = ("-f", "--final_regressor")


@dataclass(frozen=True)
class ModelArtifactRef:
    """Model file written by the training step and read by the test step."""

    path: Path
    scratch: bool = True

    def cleanup(self) -> None:
        """Delete the model file when it was created only for this search."""

        if self.scratch:
            self.path.unlink(missing_ok=True)


def scratch_model_path(directory: str | Path | None = None) -> Path:
    fd, name = tempfile.mkstemp(prefix="hypersearch-", suffix=".model", dir=directory)
    os.close(fd)
    return Path(name)


def find_model_option(tokens: Sequence[str]) -> str | None:
    """Return the model path an existing ``-f`` option already writes to."""

    for idx, token in enumerate(tokens):
        if token in _MODEL_OPTIONS and idx + 1 < len(tokens):
            return tokens[idx + 1]
        for option in _MODEL_OPTIONS:
            if option.startswith("--") and token.startswith(option + "="):
                return token.split("=", 1)[1]
    return None


def train_test_suffix(
    command: Sequence[str],
    *,
    test_set: str,
    executable: str = "vw",
    test_cache: bool = False,
    scratch_dir: str | Path | None = None,
) -> tuple[List[str], ModelArtifactRef]:
    """Return the tokens to append to ``command`` and the model they share.

    If the training command already saves a model with ``-f``, that file is
    reused and left in place. Otherwise a scratch model path is appended to
    the training command and must be removed after each evaluation.
    """

    suffix: List[str] = []
    existing = find_model_option(command)
    if existing is not None:
        artifact = ModelArtifactRef(path=Path(existing), scratch=False)
    else:
        artifact = ModelArtifactRef(path=scratch_model_path(scratch_dir), scratch=True)
        suffix.extend(["-f", str(artifact.path)])

    suffix.extend(["&&", executable, "-t", "-i", str(artifact.path), test_set])
    if test_cache:
        suffix.append("-c")
    return suffix, artifact


def build_train_test_command(
    command: Sequence[str],
    *,
    test_set: str,
    executable: str = "vw",
    test_cache: bool = False,
    scratch_dir: str | Path | None = None,
) -> tuple[List[str], ModelArtifactRef]:
    """Chain a test run after ``command`` and return it with its model reference."""

    suffix, artifact = train_test_suffix(
        command,
        test_set=test_set,
        executable=executable,
        test_cache=test_cache,
        scratch_dir=scratch_dir,
    )
    return [*command, *suffix], artifact


__all__ = [
    "ModelArtifactRef",
    "build_train_test_command",
    "find_model_option",
    "scratch_model_path",
    "train_test_suffix",
]
