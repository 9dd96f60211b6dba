"""
Pathwatch Watcher Errors.

Requires Python 3.11+.
"""

from paths.errors import FileSystemError


class WatchRegistrationError(FileSystemError):
    """The notification facility refused to watch a path."""

    operation = "watch"


__all__ = ["WatchRegistrationError"]
