"""File helpers and child-process execution with line-by-line output handling."""

__version__ = "0.1.0"
__all__ = [
    "directory",
    "errors",
    "execution",
    "file_util",
    "process_runner",
    "process_search",
    "streams",
]