"""Progress reporting on the diagnostic stream."""
from __future__ import annotations

import sys
from typing import TextIO


class ProgressReporter:
    """Write per-evaluation progress to a text stream.

    Each evaluation produces one line of the form ``trying <value> ... <loss>``
    with a ``(best)`` marker when the loss improved on every earlier value.
    While a long command runs, one ``.`` is written per numeric output line.
    """

    def __init__(self, stream: TextIO | None = None, *, enabled: bool = True) -> None:
        self._stream = stream
        self.enabled = enabled
        self._line_open = False

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stderr

    def trying(self, value: str) -> None:
        self._write(f"trying {value} ")
        self._line_open = True

    def tick(self) -> None:
        self._write(".")

    def result(self, loss: float, *, best: bool) -> None:
        marker = " (best)" if best else ""
        self._write(f" {loss!r}{marker}\n")
        self._line_open = False

    def diagnostic(self, message: str) -> None:
        prefix = "\n" if self._line_open else ""
        self._write(f"{prefix}[warning] {message}\n")
        self._line_open = False

    def _write(self, text: str) -> None:
        if not self.enabled:
            return
        stream = self.stream
        stream.write(text)
        stream.flush()


def quiet_reporter() -> ProgressReporter:
    return ProgressReporter(enabled=False)
