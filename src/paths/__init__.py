"""
Pathwatch Paths Package.

Immutable path values and the file system operations built on them.
Requires Python 3.11+.
"""

from paths.errors import (
    AttributesError,
    ChangeDirectoryError,
    CopyFileError,
    CreateDirectoryError,
    CreateFileError,
    CreateSymlinkError,
    DeleteFileError,
    FileSystemError,
    MoveFileError,
    ReadDirectoryError,
    Reason,
    ResolveError,
)
from paths.models import FileAttributes, FileType
from paths.path import SEPARATOR, Path

__all__ = [
    # Value type
    "Path",
    "SEPARATOR",
    # Models
    "FileAttributes",
    "FileType",
    # Errors
    "Reason",
    "FileSystemError",
    "AttributesError",
    "ChangeDirectoryError",
    "CopyFileError",
    "CreateDirectoryError",
    "CreateFileError",
    "CreateSymlinkError",
    "DeleteFileError",
    "MoveFileError",
    "ReadDirectoryError",
    "ResolveError",
]
