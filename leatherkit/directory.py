"""Enumeration of files and subdirectories in a directory."""

from __future__ import annotations

import os
import re
from collections.abc import Callable


def _each(
    directory: str,
    want_directories: bool,
    callback: Callable[[str], bool],
    pattern: str,
) -> None:
    regex = re.compile(pattern) if pattern else None
    try:
        entries = list(os.scandir(directory))
    except OSError:
        return

    for entry in entries:
        try:
            if want_directories:
                matches_type = entry.is_dir(follow_symlinks=True)
            else:
                matches_type = entry.is_file(follow_symlinks=True)
        except OSError:
            continue
        if not matches_type:
            continue
        if regex is not None and not regex.search(entry.name):
            continue
        if not callback(entry.path):
            break


def each_file(directory: str, callback: Callable[[str], bool], pattern: str = "") -> None:
    """Call ``callback`` with the path of each regular file in ``directory``.

    Only files whose names match the regular expression ``pattern`` are
    passed, unless it is empty. Enumeration stops when the callback returns
    a false value. A directory that cannot be read yields nothing.
    """
    _each(directory, False, callback, pattern)


def each_subdirectory(directory: str, callback: Callable[[str], bool], pattern: str = "") -> None:
    """Call ``callback`` with the path of each subdirectory of ``directory``.

    Only subdirectories whose names match ``pattern`` are passed, unless it is
    empty. Enumeration stops when the callback returns a false value.
    """
    _each(directory, True, callback, pattern)