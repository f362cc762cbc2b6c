"""User-facing status messages written to standard error."""

from __future__ import annotations

import sys
from typing import TextIO

_BOLD_DIM = "\x1b[1m\x1b[2m"
_RESET = "\x1b[0m"


class ProgressOutput:
    """Prints informational, warning and error messages.

    Messages go to ``stream`` (standard error by default, looked up at the
    time of writing). Labels are styled bold and dim when ``color`` is true;
    when ``color`` is ``None`` styling is used only if the stream is a terminal.
    """

    def __init__(self, stream: TextIO | None = None, color: bool | None = None) -> None:
        self._stream = stream
        self._color = color

    @property
    def stream(self) -> TextIO:
        """The stream messages are written to."""
        return self._stream if self._stream is not None else sys.stderr

    def _use_color(self) -> bool:
        if self._color is not None:
            return self._color
        isatty = getattr(self.stream, "isatty", None)
        return bool(isatty is not None and isatty())

    def _style(self, label: str) -> str:
        return f"{_BOLD_DIM}{label}{_RESET}" if self._use_color() else label

    def _message(self, message: str) -> None:
        print(message, file=self.stream)

    def info(self, message: str) -> None:
        """Write an informational message."""
        self._message(f"{self._style('[INFO]')}: {message}")

    def warn(self, message: str) -> None:
        """Write a warning message."""
        self._message(f"{self._style('[WARN]')}: {message}")

    def error(self, message: str) -> None:
        """Write an error message."""
        self._message(f"{self._style('[ERR]')}: {message}")


PBAR = ProgressOutput()