"""Helpers for reading, writing and locating files."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable

_log = logging.getLogger(__name__)

_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


def each_line(path: str, callback: Callable[[str], bool]) -> bool:
    """Pass each line of a file, without its newline, to ``callback``.

    Iteration stops early when the callback returns a false value.
    Returns False if the file could not be opened, True otherwise.
    """
    try:
        stream = open(path, encoding=_ENCODING, errors=_ERRORS, newline="\n")
    except OSError:
        return False
    with stream:
        for line in stream:
            if not callback(line.removesuffix("\n")):
                break
    return True


def read(path: str) -> str:
    """Return the whole contents of a file, or an empty string if it cannot be read."""
    try:
        with open(path, encoding=_ENCODING, errors=_ERRORS, newline="") as stream:
            return stream.read()
    except OSError:
        return ""


def file_readable(file_path: str) -> bool:
    """Return True if ``file_path`` is an existing, readable, non-directory file."""
    if not file_path:
        _log.warning("file path is an empty string")
        return False
    try:
        if os.path.isdir(file_path) or not os.path.exists(file_path):
            _log.debug("Error reading file: %s is missing or a directory", file_path)
            return False
        with open(file_path, "rb"):
            return True
    except OSError as error:
        _log.debug("Error reading file: %s", error)
        return False


def atomic_write_to_file(
    text: str | bytes,
    file_path: str,
    perms: int | None = None,
    mode: str = "wb",
) -> None:
    """Write ``text`` to a temporary file, then rename it over ``file_path``.

    Any previous content of ``file_path`` is replaced. ``perms``, if given,
    is applied to the file with :func:`os.chmod`. ``mode`` is the mode the
    temporary file is opened with.

    Raises OSError if the temporary file cannot be opened.
    """
    tmp_name = file_path + "~"
    binary = "b" in mode
    if binary and isinstance(text, str):
        data: str | bytes = text.encode(_ENCODING, _ERRORS)
    elif not binary and isinstance(text, bytes):
        data = text.decode(_ENCODING, _ERRORS)
    else:
        data = text

    try:
        if binary:
            stream = open(tmp_name, mode)
        else:
            stream = open(tmp_name, mode, encoding=_ENCODING, errors=_ERRORS)
    except OSError as error:
        raise OSError(error.errno, f"failed to open {file_path}", file_path) from error

    with stream:
        if perms is not None:
            os.chmod(tmp_name, perms)
        stream.write(data)
    os.replace(tmp_name, file_path)


def tilde_expand(path: str) -> str:
    """Expand a leading ``~`` (alone or followed by ``/``) to the home directory."""
    if path.startswith("~") and (len(path) == 1 or path[1] == "/"):
        return get_home_path() + path[1:]
    return path


def shell_quote(path: str) -> str:
    """Return ``path`` in double quotes, with quotes and backslashes escaped."""
    escaped = path.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def get_home_path() -> str:
    """Return the current user's home directory, or an empty string if unset."""
    home_var = "USERPROFILE" if os.name == "nt" else "HOME"
    result = os.environ.get(home_var)
    if result is None:
        _log.warning("%s has not been set", home_var)
        return ""
    return result