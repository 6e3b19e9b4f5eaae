"""Running a child process and collecting its output on POSIX systems."""

from __future__ import annotations

import codecs
import errno as errno_codes
import logging
import os
import select
import signal
import subprocess
import time
from collections.abc import Callable, Mapping, Sequence

from leatherkit.errors import (
    ChildExitError,
    ChildSignalError,
    ExecutionError,
    ExecutionTimeoutError,
)
from leatherkit.process_search import create_environment, format_error, which
from leatherkit.streams import (
    DataCallback,
    ExecutionOptions,
    ExecutionResult,
    LineCallback,
    process_streams,
)

_log = logging.getLogger(__name__)

_READ_SIZE = 4096
# How often the read loop wakes up to check for a timeout.
_POLL_INTERVAL = 0.5


class _Pipe:
    """One end of a pipe to the child, either read from or written to."""

    def __init__(
        self,
        name: str,
        stream,
        callback: DataCallback | None = None,
        pending: bytes = b"",
    ) -> None:
        self.name = name
        self.stream = stream
        self.callback = callback
        self.pending = pending
        self.reading = callback is not None
        self.decoder = codecs.getincrementaldecoder("utf-8")("surrogateescape")
        if not self.reading:
            os.set_blocking(stream.fileno(), False)

    @property
    def open(self) -> bool:
        return self.stream is not None and not self.stream.closed

    def fileno(self) -> int:
        return self.stream.fileno()

    def close(self) -> None:
        if self.stream is not None:
            try:
                self.stream.close()
            except OSError:
                pass
            self.stream = None


def _rw_from_child(
    pid: int, pipes: list[_Pipe], timeout: int, allow_stdin_unread: bool
) -> None:
    deadline = time.monotonic() + timeout if timeout else None
    while deadline is None or time.monotonic() < deadline:
        readers = [pipe for pipe in pipes if pipe.open and pipe.reading]
        writers = [pipe for pipe in pipes if pipe.open and not pipe.reading]
        if not readers and not writers:
            return

        try:
            ready_read, ready_write, _ = select.select(
                readers, writers, [], _POLL_INTERVAL if timeout else None
            )
        except OSError as error:
            raise ExecutionError(
                format_error("select call failed waiting for child i/o", error.errno or 0)
            ) from error

        for pipe in ready_read:
            try:
                data = os.read(pipe.fileno(), _READ_SIZE)
            except OSError as error:
                raise ExecutionError(
                    f"{pipe.name} pipe i/o failed: {format_error('', error.errno or 0)}"
                ) from error
            if not data:
                tail = pipe.decoder.decode(b"", final=True)
                pipe.close()
                if tail and not pipe.callback(tail):
                    return
                continue
            text = pipe.decoder.decode(data)
            if text and not pipe.callback(text):
                return

        for pipe in ready_write:
            try:
                count = os.write(pipe.fileno(), pipe.pending)
            except BlockingIOError:
                continue
            except OSError as error:
                if allow_stdin_unread and error.errno == errno_codes.EPIPE:
                    _log.debug(
                        "%s pipe i/o was closed early, process may have ignored input.",
                        pipe.name,
                    )
                    pipe.close()
                    continue
                raise ExecutionError(
                    f"{pipe.name} pipe i/o failed: {format_error('', error.errno or 0)}"
                ) from error
            pipe.pending = pipe.pending[count:]
            if not pipe.pending:
                pipe.close()

    raise ExecutionTimeoutError(f"command timed out after {timeout} seconds.", pid)


def _environment_dict(entries: list[str]) -> dict[str, str]:
    result: dict[str, str] = {}
    for entry in entries:
        key, _, value = entry.partition("=")
        result[key] = value
    return result


def _kill_group(pid: int) -> None:
    try:
        os.killpg(pid, signal.SIGKILL)
    except (ProcessLookupError, PermissionError):
        pass


def run(
    file: str,
    arguments: Sequence[str] | None = None,
    input: str | bytes | None = None,
    environment: Mapping[str, str] | None = None,
    pid_callback: Callable[[int], None] | None = None,
    stdout_callback: LineCallback | None = None,
    stderr_callback: LineCallback | None = None,
    options: ExecutionOptions = ExecutionOptions.NONE,
    timeout: int = 0,
) -> ExecutionResult:
    """Run ``file`` with ``arguments`` and return its result.

    Output lines go to the callbacks when given; otherwise the output is
    collected into the result. ``timeout`` is in seconds, 0 for none. A
    command that cannot be found yields exit code 127.
    """
    executable = which(file)
    command_line = " ".join([executable or file, *(arguments or [])])
    _log.debug("executing command: %s", command_line)
    if not executable:
        _log.debug("%s was not found on the PATH.", file)
        if options & ExecutionOptions.THROW_ON_NONZERO_EXIT:
            raise ChildExitError("child process returned non-zero exit status.", 127)
        return ExecutionResult(False, "", "", 127, 0)

    if options & ExecutionOptions.REDIRECT_STDERR_TO_STDOUT:
        child_stderr = subprocess.STDOUT
    elif options & ExecutionOptions.REDIRECT_STDERR_TO_NULL:
        child_stderr = subprocess.DEVNULL
    else:
        child_stderr = subprocess.PIPE

    env = _environment_dict(
        create_environment(
            environment,
            bool(options & ExecutionOptions.MERGE_ENVIRONMENT),
            bool(options & ExecutionOptions.INHERIT_LOCALE),
        )
    )

    try:
        process = subprocess.Popen(
            [file, *(arguments or [])],
            executable=executable,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=child_stderr,
            env=env,
            close_fds=True,
            start_new_session=True,
        )
    except OSError as error:
        raise ExecutionError(
            format_error("failed to fork child process", error.errno or 0)
        ) from error

    pid = process.pid
    if input is None:
        process.stdin.close()

    kill_child = True
    try:
        if pid_callback is not None:
            pid_callback(pid)

        def read_streams(process_stdout: DataCallback, process_stderr: DataCallback) -> None:
            pipes = [_Pipe("stdout", process.stdout, process_stdout)]
            if process.stderr is not None:
                pipes.append(_Pipe("stderr", process.stderr, process_stderr))
            if input is not None:
                data = input.encode("utf-8", "surrogateescape") if isinstance(input, str) else input
                pipes.append(_Pipe("stdin", process.stdin, pending=data))
            _rw_from_child(
                pid, pipes, timeout, bool(options & ExecutionOptions.ALLOW_STDIN_UNREAD)
            )

        output, error = process_streams(
            bool(options & ExecutionOptions.TRIM_OUTPUT),
            stdout_callback,
            stderr_callback,
            read_streams,
        )
        kill_child = False
    finally:
        for stream in (process.stdin, process.stdout, process.stderr):
            if stream is not None:
                try:
                    stream.close()
                except OSError:
                    pass
        if kill_child:
            _kill_group(pid)
        returncode = process.wait()

    signaled = returncode < 0
    if signaled:
        status = -returncode
        _log.debug("process was signaled with signal %d.", status)
    else:
        # Exit status is reported as a signed byte.
        status = returncode - 256 if returncode > 127 else returncode
        _log.debug("process exited with status code %d.", status)
    success = not signaled and status == 0

    if not success:
        if not signaled and status != 0 and options & ExecutionOptions.THROW_ON_NONZERO_EXIT:
            raise ChildExitError(
                f"child process returned non-zero exit status ({status}).",
                status,
                output,
                error,
            )
        if signaled and options & ExecutionOptions.THROW_ON_SIGNAL:
            raise ChildSignalError(
                f"child process was terminated by signal ({status}).",
                status,
                output,
                error,
            )
    return ExecutionResult(success, output, error, status, pid)