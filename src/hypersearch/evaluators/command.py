"""Evaluator that measures the loss by running an external command."""
from __future__ import annotations

from typing import TYPE_CHECKING, List, Sequence

from ..errors import LossParseFailure
from ..options import PLACEHOLDER
from ..parsing import extract_loss
from ..pipeline import ModelArtifactRef, train_test_suffix
from ..process import ProcessRunner, quote_command, render_command
from ..progress import ProgressReporter
from .base import BaseEvaluator, SearchContext, format_value

if TYPE_CHECKING:
    from ..config import SearchConfig


class CommandEvaluator(BaseEvaluator):
    """Substitute the parameter into a command template and parse its loss.

    Every ``%`` in the template is replaced by the parameter value. When an
    external evaluator command is configured it runs after the main command
    and its output, not the main command's, is searched for the loss using
    the generic number pattern.
    """

    def __init__(
        self,
        command: str | Sequence[str],
        *,
        runner: ProcessRunner | None = None,
        evaluator_command: str | None = None,
        artifact: ModelArtifactRef | None = None,
        context: SearchContext | None = None,
        reporter: ProgressReporter | None = None,
    ) -> None:
        super().__init__(context=context, reporter=reporter)
        tokens = [command] if isinstance(command, str) else list(command)
        if not any(PLACEHOLDER in token for token in tokens):
            raise ValueError(f"command must contain the placeholder {PLACEHOLDER!r}")
        self.template: List[str] = tokens
        self.runner = runner if runner is not None else ProcessRunner(reporter=self.reporter)
        self.evaluator_command = evaluator_command or None
        self.artifact = artifact

    def build_command(self, value: float) -> str:
        rendered = format_value(value)
        return render_command([token.replace(PLACEHOLDER, rendered) for token in self.template])

    def _evaluate_impl(self, value: float) -> float:
        command_line = self.build_command(value)
        try:
            output = self.runner.run(command_line)
            if self.evaluator_command is not None:
                output = self.runner.run(self.evaluator_command)
            loss = extract_loss(output, use_generic_pattern=self.evaluator_command is not None)
        finally:
            self._cleanup()

        if loss is None:
            raise LossParseFailure(param=value, command=command_line, output=output)
        return loss

    def _cleanup(self) -> None:
        if self.artifact is None:
            return
        try:
            self.artifact.cleanup()
        except OSError as exc:
            self.reporter.diagnostic(f"failed to remove scratch model {self.artifact.path}: {exc}")


def create_command_evaluator(
    config: "SearchConfig",
    *,
    context: SearchContext | None = None,
    reporter: ProgressReporter | None = None,
) -> CommandEvaluator:
    """Build the evaluator described by a validated configuration.

    A string command is handed to the shell as written. A token list is
    quoted token by token, so arguments containing spaces stay whole.
    """

    reporter = reporter if reporter is not None else ProgressReporter()
    if isinstance(config.command, str):
        command = config.command
    else:
        command = quote_command(config.command)

    artifact: ModelArtifactRef | None = None
    if config.test_set is not None:
        suffix, artifact = train_test_suffix(
            config.command_tokens,
            test_set=config.test_set,
            executable=config.vw_executable,
            test_cache=config.test_cache,
        )
        command = f"{command} {quote_command(suffix)}"

    runner = ProcessRunner(timeout=config.timeout_seconds, reporter=reporter)
    return CommandEvaluator(
        command,
        runner=runner,
        evaluator_command=config.evaluator_command,
        artifact=artifact,
        context=context,
        reporter=reporter,
    )


__all__ = ["CommandEvaluator", "create_command_evaluator"]
