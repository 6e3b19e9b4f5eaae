"""High-level helpers for running commands and consuming their output."""

from __future__ import annotations

import contextlib
import logging
import os
from collections.abc import Callable, Iterable, Mapping, Sequence

from leatherkit.errors import ExecutionError
from leatherkit.process_runner import run
from leatherkit.process_search import which
from leatherkit.streams import ExecutionOptions, ExecutionResult, LineCallback

_log = logging.getLogger(__name__)

_ENCODING = "utf-8"
_ERRORS = "surrogateescape"

DEFAULT_EXECUTE_OPTIONS = (
    ExecutionOptions.TRIM_OUTPUT
    | ExecutionOptions.MERGE_ENVIRONMENT
    | ExecutionOptions.REDIRECT_STDERR_TO_NULL
)
DEFAULT_EACH_LINE_OPTIONS = ExecutionOptions.TRIM_OUTPUT | ExecutionOptions.MERGE_ENVIRONMENT


def _debug_enabled() -> bool:
    return _log.isEnabledFor(logging.DEBUG)


def _ignore_line(_line: str) -> bool:
    return True


def log_execution(file: str, arguments: Sequence[str] | None = None) -> None:
    """Log the command line about to be executed, at debug level."""
    if not _debug_enabled():
        return
    command_line = " ".join([file, *(arguments or [])])
    _log.debug("executing command: %s", command_line)


def expand_command(
    command: str,
    directories: Iterable[str] | None = None,
    expand: bool = True,
) -> str:
    """Replace the program at the start of ``command`` with its full path.

    A quoted program keeps its quotes; an unquoted one is double-quoted if
    its full path contains a space. Returns an empty string when the command
    is blank or its program cannot be found.
    """
    result = command.strip()
    if not result:
        return ""

    quote = result[0]
    quoted = quote in ('"', "'")

    remainder = ""
    if quoted:
        end = result.find(quote, 1)
        if end == -1:
            file = result[1:]
        else:
            file = result[1:end]
            remainder = result[end + 1:]
    else:
        space = result.find(" ")
        if space == -1:
            file = result
        else:
            file = result[:space]
            remainder = result[space:]

    file = which(file, directories, expand)
    if not file:
        return ""

    if quoted:
        return quote + file + quote + remainder
    if " " in file:
        return f'"{file}"{remainder}'
    return file + remainder


def _setup_execute(options: ExecutionOptions) -> tuple[LineCallback | None, ExecutionOptions]:
    # Keep stderr flowing through a callback so it is logged at debug level.
    if (
        _debug_enabled()
        and not options & ExecutionOptions.REDIRECT_STDERR_TO_STDOUT
        and options & ExecutionOptions.REDIRECT_STDERR_TO_NULL
    ):
        return _ignore_line, options & ~ExecutionOptions.REDIRECT_STDERR_TO_NULL
    return None, options


def execute(
    file: str,
    arguments: Sequence[str] | None = None,
    input: str | bytes | None = None,
    environment: Mapping[str, str] | None = None,
    pid_callback: Callable[[int], None] | None = None,
    timeout: int = 0,
    options: ExecutionOptions = DEFAULT_EXECUTE_OPTIONS,
) -> ExecutionResult:
    """Run a command and return its collected output and exit status."""
    stderr_callback, actual_options = _setup_execute(options)
    return run(
        file,
        arguments,
        input,
        environment,
        pid_callback,
        None,
        stderr_callback,
        actual_options,
        timeout,
    )


def _open_output(path: str, kind: str, perms: int | None, stack: contextlib.ExitStack):
    try:
        stream = stack.enter_context(open(path, "wb"))
    except OSError as error:
        raise ExecutionError(f"failed to open {kind} file {path}") from error
    if perms is not None:
        try:
            os.chmod(path, perms)
        except OSError as error:
            raise ExecutionError(
                f"failed to modify permissions on {kind} file {path} to {perms:o}: "
                f"{error.strerror}"
            ) from error
    return stream


def _line_writer(stream) -> LineCallback:
    def write(line: str) -> bool:
        stream.write((line + "\n").encode(_ENCODING, _ERRORS))
        return True

    return write


def execute_to_files(
    file: str,
    arguments: Sequence[str],
    input: str | bytes,
    out_file: str,
    err_file: str = "",
    environment: Mapping[str, str] | None = None,
    pid_callback: Callable[[int], None] | None = None,
    timeout: int = 0,
    perms: int | None = None,
    options: ExecutionOptions = DEFAULT_EXECUTE_OPTIONS,
) -> ExecutionResult:
    """Run a command, writing its output lines to ``out_file``.

    Error lines go to ``err_file`` when one is given. ``perms``, if given,
    is applied to the files created.
    """
    with contextlib.ExitStack() as stack:
        out_stream = _open_output(out_file, "output", perms, stack)
        if err_file:
            err_stream = _open_output(err_file, "error", perms, stack)
            stderr_callback: LineCallback | None = _line_writer(err_stream)
            actual_options = options
        else:
            stderr_callback, actual_options = _setup_execute(options)

        return run(
            file,
            arguments,
            input,
            environment or None,
            pid_callback,
            _line_writer(out_stream),
            stderr_callback,
            actual_options,
            timeout,
        )


def each_line(
    file: str,
    arguments: Sequence[str] | None = None,
    environment: Mapping[str, str] | None = None,
    stdout_callback: LineCallback | None = None,
    stderr_callback: LineCallback | None = None,
    timeout: int = 0,
    options: ExecutionOptions = DEFAULT_EACH_LINE_OPTIONS,
) -> bool:
    """Run a command, passing each output line to the callbacks.

    A callback returning a false value stops reading. Returns True if the
    command succeeded.
    """
    actual_options = options
    if stdout_callback is None:
        stdout_callback = _ignore_line
    if stderr_callback is None and not actual_options & ExecutionOptions.REDIRECT_STDERR_TO_STDOUT:
        if _debug_enabled():
            stderr_callback = _ignore_line
            actual_options &= ~ExecutionOptions.REDIRECT_STDERR_TO_NULL
        else:
            actual_options |= ExecutionOptions.REDIRECT_STDERR_TO_NULL
    return run(
        file,
        arguments,
        None,
        environment,
        None,
        stdout_callback,
        stderr_callback,
        actual_options,
        timeout,
    ).success