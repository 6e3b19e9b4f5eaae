"""Locating executables and preparing the environment for child processes."""

from __future__ import annotations

import functools
import logging
import os
import stat
import subprocess
from collections.abc import Iterable, Mapping

_log = logging.getLogger(__name__)

# Room left in the line read back from the shell, beyond the command name.
_BUILTIN_BUFFER_OFFSET = 128


def format_error(message: str = "", error: int = 0) -> str:
    """Describe an OS error number, optionally prefixed by ``message``."""
    description = os.strerror(error)
    if not message:
        return f"{description} ({error})"
    return f"{message}: {description} ({error})."


@functools.lru_cache(maxsize=1)
def _supplementary_groups() -> frozenset[int]:
    try:
        return frozenset(os.getgroups())
    except OSError:
        return frozenset()


def _is_group_member(gid: int) -> bool:
    if gid in (os.getgid(), os.getegid()):
        return True
    return gid in _supplementary_groups()


def is_executable(path: str) -> bool:
    """Return True if the effective user may execute the file at ``path``."""
    try:
        info = os.stat(path)
    except OSError:
        return False

    if not hasattr(os, "geteuid"):
        return os.access(path, os.X_OK)

    euid = os.geteuid()
    mode = info.st_mode
    if euid == 0:
        # Any exec bit will do for root.
        return bool(mode & (stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH))
    if info.st_uid == euid:
        return bool(mode & stat.S_IXUSR)
    if _is_group_member(info.st_gid):
        return bool(mode & stat.S_IXGRP)
    return bool(mode & stat.S_IXOTH)


def is_builtin(file: str) -> bool:
    """Return True if the shell reports ``file`` as one of its builtins."""
    try:
        completed = subprocess.run(
            "type " + file,
            shell=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            errors="replace",
            check=False,
        )
    except OSError:
        return False

    lines = completed.stdout.splitlines(keepends=True)
    if not lines:
        return False
    first = lines[0][: _BUILTIN_BUFFER_OFFSET + len(file) - 1]
    return "builtin" in first


def _search_paths() -> list[str]:
    return [entry for entry in os.environ.get("PATH", "").split(os.pathsep) if entry]


def which(
    file: str,
    directories: Iterable[str] | None = None,
    expand: bool = True,
) -> str:
    """Find an executable named ``file``.

    An absolute ``file`` is returned if it is an executable regular file.
    Otherwise each of ``directories`` (the PATH entries by default) is
    searched in order. When ``expand`` is false, shell builtins are returned
    unchanged. Returns an empty string when nothing is found.
    """
    if not expand and is_builtin(file):
        return file

    if os.path.isabs(file):
        return file if os.path.isfile(file) and is_executable(file) else ""

    search = _search_paths() if directories is None else directories
    for directory in search:
        candidate = os.path.join(directory, file)
        if os.path.isfile(candidate) and is_executable(candidate):
            return candidate
    return ""


def create_environment(
    environment: Mapping[str, str] | None,
    merge: bool,
    inherit: bool,
) -> list[str]:
    """Build ``KEY=value`` entries for a child process.

    With ``merge`` the current environment is included; its ``LC_ALL`` and
    ``LANG`` are dropped unless ``inherit`` is set. The given ``environment``
    follows, in key order. ``LC_ALL`` and ``LANG`` are then set to ``C``, or
    to their current values when ``inherit`` is set, unless ``environment``
    supplies them.
    """
    result: list[str] = []

    if merge:
        for key, value in os.environ.items():
            if not inherit and key in ("LC_ALL", "LANG"):
                continue
            result.append(f"{key}={value}")

    if environment:
        result.extend(f"{key}={value}" for key, value in sorted(environment.items()))

    for name in ("LC_ALL", "LANG"):
        if environment and name in environment:
            continue
        if inherit:
            current = os.environ.get(name)
            if current is not None:
                result.append(f"{name}={current}")
        else:
            result.append(f"{name}=C")
    return result