"""Exceptions raised when running child processes."""

from __future__ import annotations


class ExecutionError(RuntimeError):
    """Base class for errors raised while executing a command."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ExecutionFailureError(ExecutionError):
    """A command ran but failed; carries the output it produced."""

    def __init__(self, message: str, output: str = "", error: str = "") -> None:
        super().__init__(message)
        self.output = output
        self.error = error


class ChildExitError(ExecutionFailureError):
    """A child process exited with a non-zero status."""

    def __init__(
        self, message: str, status_code: int, output: str = "", error: str = ""
    ) -> None:
        super().__init__(message, output, error)
        self.status_code = status_code


class ChildSignalError(ExecutionFailureError):
    """A child process was terminated by a signal."""

    def __init__(
        self, message: str, signal: int, output: str = "", error: str = ""
    ) -> None:
        super().__init__(message, output, error)
        self.signal = signal


class ExecutionTimeoutError(ExecutionError):
    """A command did not finish within its timeout."""

    def __init__(self, message: str, pid: int) -> None:
        super().__init__(message)
        self.pid = pid