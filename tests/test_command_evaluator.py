"""Tests for the subprocess-backed evaluator."""
from __future__ import annotations

import io
import shlex
import sys
import tempfile
import unittest
from pathlib import Path

from hypersearch.config import SearchConfig
from hypersearch.errors import LossParseFailure, NonZeroExit
from hypersearch.evaluators import CommandEvaluator, create_command_evaluator
from hypersearch.pipeline import ModelArtifactRef
from hypersearch.progress import ProgressReporter

LEARNER_SCRIPT = """\
import sys

value = float(sys.argv[-1])
with open(sys.argv[1], "a", encoding="utf-8") as fh:
    fh.write(f"{value}\\n")
print("training started")
print("average loss = " + repr((value - 0.3) ** 2))
"""

# Trains by writing the --l1 value to the -f model; tests by reading it back.
FAKE_VW_SCRIPT = """\
import sys

args = sys.argv[1:]
if "-t" in args:
    with open(args[-1], encoding="utf-8") as fh:
        fh.read()
    with open(args[args.index("-i") + 1], encoding="utf-8") as fh:
        value = float(fh.read())
    print("average loss = " + repr((value - 0.3) ** 2))
else:
    with open(args[args.index("-d") + 1], encoding="utf-8") as fh:
        fh.read()
    with open(args[args.index("-f") + 1], "w", encoding="utf-8") as fh:
        fh.write(args[args.index("--l1") + 1])
    print("average loss = 99")
"""


class CommandEvaluatorTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.script = self.tmp / "learner.py"
        self.script.write_text(LEARNER_SCRIPT, encoding="utf-8")
        self.calls_file = self.tmp / "calls.txt"
        self.stream = io.StringIO()
        self.reporter = ProgressReporter(self.stream)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _learner_command(self) -> list[str]:
        return [
            shlex.quote(sys.executable),
            shlex.quote(str(self.script)),
            shlex.quote(str(self.calls_file)),
            "%",
        ]

    def test_placeholder_required(self) -> None:
        with self.assertRaises(ValueError):
            CommandEvaluator(["echo", "average loss = 1"], reporter=self.reporter)

    def test_every_placeholder_is_substituted(self) -> None:
        evaluator = CommandEvaluator(["run", "--a", "%", "--b=%"], reporter=self.reporter)
        self.assertEqual(evaluator.build_command(0.25), "run --a 0.25 --b=0.25")
        self.assertEqual(evaluator.build_command(7.0), "run --a 7 --b=7")

    def test_string_template_keeps_shell_syntax(self) -> None:
        evaluator = CommandEvaluator("echo 'average loss = %' | cat", reporter=self.reporter)
        self.assertEqual(evaluator.evaluate(0.5), 0.5)

    def test_loss_is_parsed_and_memoized(self) -> None:
        evaluator = CommandEvaluator(self._learner_command(), reporter=self.reporter)
        first = evaluator.evaluate(0.5)
        second = evaluator.evaluate(0.5)
        self.assertAlmostEqual(first, 0.04)
        self.assertEqual(first, second)
        recorded = self.calls_file.read_text(encoding="utf-8").splitlines()
        self.assertEqual(recorded, ["0.5"])
        self.assertIn("trying 0.5", self.stream.getvalue())
        self.assertIn("(best)", self.stream.getvalue())

    def test_last_reported_loss_wins(self) -> None:
        evaluator = CommandEvaluator("echo average loss = 9; echo average loss = %", reporter=self.reporter)
        self.assertEqual(evaluator.evaluate(0.125), 0.125)

    def test_missing_loss_is_fatal(self) -> None:
        evaluator = CommandEvaluator(["echo", "nothing", "to", "see", "%"], reporter=self.reporter)
        with self.assertRaises(LossParseFailure) as ctx:
            evaluator.evaluate(3.0)
        error = ctx.exception
        self.assertEqual(error.param, 3.0)
        self.assertEqual(error.command, "echo nothing to see 3")
        self.assertEqual(error.output, ["nothing to see 3"])
        self.assertIn("manually", error.report())
        self.assertEqual(evaluator.context.cache, {})

    def test_failing_command_is_not_cached(self) -> None:
        evaluator = CommandEvaluator(["false", "%"], reporter=self.reporter)
        with self.assertRaises(NonZeroExit) as ctx:
            evaluator.evaluate(1.0)
        self.assertEqual(ctx.exception.code, 1)
        self.assertIsNone(evaluator.best)

    def test_external_evaluator_output_is_used(self) -> None:
        evaluator = CommandEvaluator(
            "echo average loss = 9 %",
            evaluator_command="echo training done; echo 'rmse 0.42'",
            reporter=self.reporter,
        )
        self.assertEqual(evaluator.evaluate(1.0), 0.42)

    def test_external_evaluator_still_runs_main_command(self) -> None:
        marker = self.tmp / "model.bin"
        evaluator = CommandEvaluator(
            f"touch {shlex.quote(str(marker))} # %",
            evaluator_command=f"test -e {shlex.quote(str(marker))} && echo 0.75",
            reporter=self.reporter,
        )
        self.assertEqual(evaluator.evaluate(2.0), 0.75)

    def test_scratch_model_removed_after_evaluation(self) -> None:
        model = self.tmp / "scratch.model"
        artifact = ModelArtifactRef(path=model, scratch=True)
        evaluator = CommandEvaluator(
            f"touch {shlex.quote(str(model))} && echo average loss = %",
            artifact=artifact,
            reporter=self.reporter,
        )
        self.assertEqual(evaluator.evaluate(0.5), 0.5)
        self.assertFalse(model.exists())

    def test_user_model_is_kept(self) -> None:
        model = self.tmp / "user.model"
        artifact = ModelArtifactRef(path=model, scratch=False)
        evaluator = CommandEvaluator(
            f"touch {shlex.quote(str(model))} && echo average loss = %",
            artifact=artifact,
            reporter=self.reporter,
        )
        evaluator.evaluate(0.5)
        self.assertTrue(model.exists())


class TrainTestEvaluatorTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        script = self.tmp / "fake_vw.py"
        script.write_text(FAKE_VW_SCRIPT, encoding="utf-8")
        self.vw = self.tmp / "fake-vw"
        self.vw.write_text(
            f"#!/bin/sh\nexec {shlex.quote(sys.executable)} {shlex.quote(str(script))} \"$@\"\n",
            encoding="utf-8",
        )
        self.vw.chmod(0o755)
        self.data = self.tmp / "my data.txt"
        self.data.write_text("1 | a\n", encoding="utf-8")
        self.test_set = self.tmp / "held out.txt"
        self.test_set.write_text("1 | a\n", encoding="utf-8")
        self.reporter = ProgressReporter(io.StringIO())

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _evaluator(self, command: str | list[str]) -> CommandEvaluator:
        config = SearchConfig.model_validate(
            {
                "command": command,
                "bounds": {"lower": 0.0, "upper": 1.0},
                "test_set": str(self.test_set),
                "vw_executable": str(self.vw),
            }
        )
        return create_command_evaluator(config, reporter=self.reporter)

    def test_string_command_keeps_its_quoting(self) -> None:
        evaluator = self._evaluator(
            f"{shlex.quote(str(self.vw))} -d {shlex.quote(str(self.data))} --l1 %"
        )
        line = evaluator.build_command(0.5)
        self.assertIn(shlex.quote(str(self.data)), line)
        self.assertIn(shlex.quote(str(self.test_set)), line)
        self.assertAlmostEqual(evaluator.evaluate(0.5), 0.04)

    def test_token_command_arguments_stay_whole(self) -> None:
        evaluator = self._evaluator([str(self.vw), "-d", str(self.data), "--l1", "%"])
        self.assertAlmostEqual(evaluator.evaluate(0.25), 0.0025)

    def test_test_loss_is_used_and_scratch_model_removed(self) -> None:
        evaluator = self._evaluator([str(self.vw), "-d", str(self.data), "--l1", "%"])
        artifact = evaluator.artifact
        self.assertIsNotNone(artifact)
        self.assertTrue(artifact.scratch)

        self.assertAlmostEqual(evaluator.evaluate(0.5), 0.04)
        self.assertFalse(artifact.path.exists())
        self.assertAlmostEqual(evaluator.evaluate(0.1), 0.04)
        self.assertFalse(artifact.path.exists())
        self.assertEqual(len(evaluator.context.history), 2)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
