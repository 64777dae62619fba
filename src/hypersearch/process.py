"""Execution of external commands with merged output capture."""
from __future__ import annotations

import os
import re
import shlex
import signal
import subprocess
import threading
from typing import List, Sequence

from .errors import NonZeroExit, ProcessTimeout, SignalDeath
from .progress import ProgressReporter

_PROGRESS_LINE = re.compile(r"^\d")

SHELL_OPERATORS = frozenset({"&&", "||", "|", ";", "&", ">", ">>", "<", "2>&1"})


def render_command(command: str | Sequence[str]) -> str:
    """Join command tokens into the line handed to the shell."""

    if isinstance(command, str):
        return command
    return " ".join(str(token) for token in command)


def quote_command(tokens: Sequence[str]) -> str:
    """Render argument tokens as one shell line.

    Each token is quoted so that spaces and metacharacters survive the shell,
    except for bare operators such as ``&&`` which keep their shell meaning.
    """

    return " ".join(
        token if token in SHELL_OPERATORS else shlex.quote(str(token)) for token in tokens
    )


class ProcessRunner:
    """Run shell commands, capturing stdout and stderr as one stream.

    Parameters
    ----------
    timeout:
        Wall-clock budget in seconds for a single command. ``0`` disables the
        limit. When a limit is active, no progress ticks are written.
    reporter:
        Destination for progress ticks. One tick is written for every output
        line starting with a digit.
    check:
        Raise :class:`NonZeroExit` for a non-zero exit status. Callers that can
        tolerate failing commands pass ``False`` and receive the output anyway.
    """

    def __init__(
        self,
        *,
        timeout: float = 0.0,
        reporter: ProgressReporter | None = None,
        check: bool = True,
    ) -> None:
        if timeout < 0:
            raise ValueError("timeout must be non-negative")
        self.timeout = float(timeout)
        self.reporter = reporter if reporter is not None else ProgressReporter()
        self.check = check

    def run(self, command: str | Sequence[str]) -> List[str]:
        command_line = render_command(command)
        process = subprocess.Popen(
            command_line,
            shell=True,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            start_new_session=True,
        )

        expired = threading.Event()
        timer: threading.Timer | None = None
        if self.timeout > 0:
            timer = threading.Timer(self.timeout, _kill_group, args=(process, expired))
            timer.daemon = True
            timer.start()

        lines: List[str] = []
        try:
            assert process.stdout is not None
            for raw in process.stdout:
                line = raw.rstrip("\r\n")
                lines.append(line)
                if timer is None and _PROGRESS_LINE.match(line):
                    self.reporter.tick()
            status = _wait_status(process)
        finally:
            if timer is not None:
                timer.cancel()
            if process.stdout is not None:
                process.stdout.close()

        if expired.is_set() and os.WIFSIGNALED(status):
            raise ProcessTimeout(command=command_line, output=lines, seconds=self.timeout)
        if os.WIFSIGNALED(status):
            raise SignalDeath(
                command=command_line,
                output=lines,
                signal=os.WTERMSIG(status),
                core_dumped=os.WCOREDUMP(status),
            )
        code = os.waitstatus_to_exitcode(status)
        if code != 0 and self.check:
            raise NonZeroExit(command=command_line, output=lines, code=code)
        return lines


def _wait_status(process: subprocess.Popen) -> int:
    # Reap the child ourselves: Popen.wait() discards the core-dump flag.
    _, status = os.waitpid(process.pid, 0)
    process.returncode = os.waitstatus_to_exitcode(status)
    return status


def _kill_group(process: subprocess.Popen, expired: threading.Event) -> None:
    expired.set()
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass


__all__ = ["SHELL_OPERATORS", "ProcessRunner", "quote_command", "render_command"]
