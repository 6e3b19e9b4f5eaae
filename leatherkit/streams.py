"""Options, results and line processing for child process output."""

from __future__ import annotations

import enum
import logging
import os
from collections.abc import Callable
from dataclasses import dataclass

_log = logging.getLogger(__name__)

# Loggers dedicated to child process output.
_STDOUT_LOGGER = logging.getLogger("|")
_STDERR_LOGGER = logging.getLogger("!!!")

LineCallback = Callable[[str], bool]
DataCallback = Callable[[str], bool]


class ExecutionOptions(enum.Flag):
    """Flags controlling how a command is executed."""

    NONE = 0
    REDIRECT_STDERR_TO_STDOUT = enum.auto()
    REDIRECT_STDERR_TO_NULL = enum.auto()
    THROW_ON_NONZERO_EXIT = enum.auto()
    THROW_ON_SIGNAL = enum.auto()
    TRIM_OUTPUT = enum.auto()
    MERGE_ENVIRONMENT = enum.auto()
    INHERIT_LOCALE = enum.auto()
    THREAD_SAFE = enum.auto()
    CREATE_DETACHED_PROCESS = enum.auto()
    ALLOW_STDIN_UNREAD = enum.auto()
    PRESERVE_ARGUMENTS = enum.auto()
    CONVERT_NEWLINES = enum.auto()


@dataclass(frozen=True)
class ExecutionResult:
    """The outcome of running a command."""

    success: bool
    output: str = ""
    error: str = ""
    exit_code: int = 0
    pid: int = 0


class StreamProcessor:
    """Splits chunks of a child's output into lines for a callback.

    Without a callback, all data is buffered and returned by :meth:`finish`.
    """

    def __init__(
        self,
        trim: bool,
        callback: LineCallback | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.trim = trim
        self.callback = callback
        self.logger = logger or _STDOUT_LOGGER
        self._buffer = ""

    def _log_line(self, line: str) -> None:
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug("%s", line)

    def feed(self, data: str) -> bool:
        """Process a chunk of output; return False once the callback asks to stop."""
        if not data:
            return True
        if self.callback is None:
            self._buffer += data
            return True

        last_newline = data.rfind("\n")
        if last_newline == -1:
            self._buffer += data
            return True

        for piece in data[:last_newline].split("\n"):
            line = self._buffer + piece
            self._buffer = ""
            if self.trim:
                line = line.strip()
                # Empty lines are dropped only when trimming.
                if not line:
                    continue
            if os.name == "nt":
                line = line.strip("\r")
            self._log_line(line)
            if not self.callback(line):
                return False

        self._buffer = data[last_newline + 1:]
        return True

    def finish(self) -> str:
        """Flush any trailing partial line and return what remains buffered."""
        if self.trim:
            self._buffer = self._buffer.strip()
        if self._buffer:
            self._log_line(self._buffer)
            if self.callback is not None:
                self.callback(self._buffer)
                self._buffer = ""
        remaining, self._buffer = self._buffer, ""
        return remaining


def process_streams(
    trim: bool,
    stdout_callback: LineCallback | None,
    stderr_callback: LineCallback | None,
    read_streams: Callable[[DataCallback, DataCallback], None],
) -> tuple[str, str]:
    """Drive ``read_streams`` and split what it reads into lines.

    ``read_streams`` is called with two functions that accept chunks of stdout
    and stderr data and return False when reading should stop. Returns the
    output of each stream that was not passed to a callback.
    """
    stdout = StreamProcessor(trim, stdout_callback, _STDOUT_LOGGER)
    stderr = StreamProcessor(trim, stderr_callback, _STDERR_LOGGER)

    def make_reader(processor: StreamProcessor) -> DataCallback:
        def reader(data: str) -> bool:
            if not processor.feed(data):
                _log.debug("completed processing output: closing child pipes.")
                return False
            return True

        return reader

    read_streams(make_reader(stdout), make_reader(stderr))
    return stdout.finish(), stderr.finish()