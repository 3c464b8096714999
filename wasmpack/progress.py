"""User-facing status messages with a configurable verbosity."""

from __future__ import annotations

import enum
import sys
import threading
from typing import TextIO

WARN_EMOJI = ":-)"
ERROR_EMOJI = ":-)"


class LogLevel(enum.IntEnum):
    """Maximum log level; lower values are less verbose."""

    ERROR = 0
    WARN = 1
    INFO = 2

    @classmethod
    def parse(cls, text: str) -> "LogLevel":
        """Parse a level name as given on the command line."""
        try:
            return {"error": cls.ERROR, "warn": cls.WARN, "info": cls.INFO}[text]
        except KeyError:
            raise ValueError(f"Unknown log-level: {text}") from None


def _style(text: str, stream: TextIO) -> str:
    isatty = getattr(stream, "isatty", None)
    if isatty is not None and isatty():
        return f"\x1b[1m\x1b[2m{text}\x1b[0m"
    return text


class ProgressOutput:
    """Prints informational, warning and error messages to standard error."""

    def __init__(
        self,
        quiet: bool = False,
        log_level: LogLevel = LogLevel.INFO,
        stream: TextIO | None = None,
    ) -> None:
        self.quiet = quiet
        self.log_level = log_level
        self._stream = stream
        self._lock = threading.Lock()

    def _message(self, message: str) -> None:
        stream = self._stream if self._stream is not None else sys.stderr
        with self._lock:
            print(message, file=stream)

    def _tag(self, tag: str) -> str:
        stream = self._stream if self._stream is not None else sys.stderr
        return _style(tag, stream)

    def is_log_enabled(self, level: LogLevel) -> bool:
        """Whether messages of ``level`` are shown at the current log level."""
        return level <= self.log_level

    def info(self, message: str) -> None:
        """Print an informational message."""
        if not self.quiet and self.is_log_enabled(LogLevel.INFO):
            self._message(f"{self._tag('[INFO]')}: {message}")

    def warn(self, message: str) -> None:
        """Print a warning message."""
        if not self.quiet and self.is_log_enabled(LogLevel.WARN):
            self._message(f"{self._tag('[WARN]')}: {WARN_EMOJI} {message}")

    def error(self, message: str) -> None:
        """Print an error message; shown even when quiet."""
        if self.is_log_enabled(LogLevel.ERROR):
            self._message(f"{self._tag('[ERR]')}: {ERROR_EMOJI} {message}")


PBAR = ProgressOutput()