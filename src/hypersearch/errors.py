"""Exception hierarchy raised by the search engine."""
from __future__ import annotations

from typing import Sequence


_REPRODUCE_ADVICE = "Try running the command manually to reproduce the problem."


def _format_output(lines: Sequence[str], *, limit: int | None = None) -> str:
    selected = list(lines)
    if limit is not None and len(selected) > limit:
        omitted = len(selected) - limit
        selected = [f"... ({omitted} earlier lines omitted)"] + selected[-limit:]
    if not selected:
        return "  <no output>"
    return "\n".join(f"  | {line}" for line in selected)


class HyperSearchError(RuntimeError):
    """Base class for fatal search failures."""

    def report(self) -> str:
        return str(self)


class SubprocessFailure(HyperSearchError):
    """The evaluated command did not complete successfully."""

    def __init__(self, message: str, *, command: str, output: Sequence[str]) -> None:
        super().__init__(message)
        self.command = command
        self.output = list(output)

    def report(self) -> str:
        return "\n".join(
            [
                str(self),
                f"command: {self.command}",
                "output:",
                _format_output(self.output, limit=40),
                _REPRODUCE_ADVICE,
            ]
        )


class ProcessTimeout(SubprocessFailure):
    """The command exceeded its time budget and was killed."""

    def __init__(self, *, command: str, output: Sequence[str], seconds: float) -> None:
        super().__init__(
            f"command timed out after {seconds:g} seconds",
            command=command,
            output=output,
        )
        self.seconds = seconds


class SignalDeath(SubprocessFailure):
    """The command was terminated by a signal."""

    def __init__(
        self,
        *,
        command: str,
        output: Sequence[str],
        signal: int,
        core_dumped: bool,
    ) -> None:
        suffix = " (core dumped)" if core_dumped else ""
        super().__init__(
            f"command died with signal {signal}{suffix}",
            command=command,
            output=output,
        )
        self.signal = signal
        self.core_dumped = core_dumped


class NonZeroExit(SubprocessFailure):
    """The command exited with a non-zero status."""

    def __init__(self, *, command: str, output: Sequence[str], code: int) -> None:
        super().__init__(
            f"command exited with status {code}",
            command=command,
            output=output,
        )
        self.code = code


class LossParseFailure(HyperSearchError):
    """No loss value could be found in the command output."""

    def __init__(self, *, param: float, command: str, output: Sequence[str]) -> None:
        super().__init__(f"failed to parse a loss value for parameter {param!r}")
        self.param = param
        self.command = command
        self.output = list(output)

    def report(self) -> str:
        return "\n".join(
            [
                str(self),
                f"command: {self.command}",
                "output:",
                _format_output(self.output),
                _REPRODUCE_ADVICE,
            ]
        )


class IterationLimitExceeded(HyperSearchError):
    """Brent's method did not converge within its iteration budget."""

    def __init__(self, *, iterations: int, bracket: tuple[float, float]) -> None:
        low, high = bracket
        super().__init__(
            f"no convergence after {iterations} iterations; "
            f"current bracket is [{low!r}, {high!r}]"
        )
        self.iterations = iterations
        self.bracket = bracket


class DegenerateBracket(UserWarning):
    """Two probes produced identical losses so the bracket cannot be narrowed."""


__all__ = [
    "DegenerateBracket",
    "HyperSearchError",
    "IterationLimitExceeded",
    "LossParseFailure",
    "NonZeroExit",
    "ProcessTimeout",
    "SignalDeath",
    "SubprocessFailure",
]
