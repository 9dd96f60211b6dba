"""
Pathwatch File System Errors.

Typed failures raised by operations that touch the file system.
Requires Python 3.11+.
"""

import errno
from enum import Enum
from typing import Any


class Reason(str, Enum):
    """Why a file system operation failed."""

    ALREADY_EXISTS = "already exists"
    NOT_FOUND = "not found"
    PERMISSION_DENIED = "permission denied"
    NOT_A_DIRECTORY = "not a directory"
    IS_A_DIRECTORY = "is a directory"
    DIRECTORY_NOT_EMPTY = "directory not empty"
    LIMIT_REACHED = "resource limit reached"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"

    @classmethod
    def from_errno(cls, code: int | None) -> "Reason":
        """Map an ``errno`` value to a reason."""
        return _ERRNO_REASONS.get(code, cls.UNKNOWN)


_ERRNO_REASONS: dict[int | None, Reason] = {
    errno.EEXIST: Reason.ALREADY_EXISTS,
    errno.ENOENT: Reason.NOT_FOUND,
    errno.EACCES: Reason.PERMISSION_DENIED,
    errno.EPERM: Reason.PERMISSION_DENIED,
    errno.ENOTDIR: Reason.NOT_A_DIRECTORY,
    errno.EISDIR: Reason.IS_A_DIRECTORY,
    errno.ENOTEMPTY: Reason.DIRECTORY_NOT_EMPTY,
    # inotify reports exhausted instances as EMFILE and exhausted watches as ENOSPC
    errno.EMFILE: Reason.LIMIT_REACHED,
    errno.ENFILE: Reason.LIMIT_REACHED,
    errno.ENOSPC: Reason.LIMIT_REACHED,
}


class FileSystemError(OSError):
    """
    Base class for failed file system operations.

    Subclasses name the operation that failed; ``reason`` says why.
    The originating ``OSError`` is chained as ``__cause__``.
    """

    operation = "file system operation"

    def __init__(
        self,
        path: Any,
        reason: Reason = Reason.UNKNOWN,
        *,
        destination: Any = None,
        detail: str | None = None,
    ) -> None:
        self.path = path
        self.reason = reason
        self.destination = destination
        self.detail = detail
        super().__init__(str(self))

    @classmethod
    def from_os_error(
        cls,
        path: Any,
        error: OSError,
        *,
        destination: Any = None,
    ) -> "FileSystemError":
        """Build a typed failure from the ``OSError`` that caused it."""
        return cls(
            path,
            Reason.from_errno(error.errno),
            destination=destination,
            detail=error.strerror or str(error),
        )

    def __str__(self) -> str:
        target = f"{self.path}"
        if self.destination is not None:
            target = f"{self.path} -> {self.destination}"
        message = f"{self.operation} failed for {target}: {self.reason.value}"
        if self.detail and self.detail != self.reason.value:
            message = f"{message} ({self.detail})"
        return message

    def __reduce__(self) -> tuple[Any, ...]:
        return (
            _rebuild,
            (type(self), self.path, self.reason, self.destination, self.detail),
        )


def _rebuild(
    cls: type[FileSystemError],
    path: Any,
    reason: Reason,
    destination: Any,
    detail: str | None,
) -> FileSystemError:
    return cls(path, reason, destination=destination, detail=detail)


class CreateFileError(FileSystemError):
    operation = "create file"


class CreateDirectoryError(FileSystemError):
    operation = "create directory"


class DeleteFileError(FileSystemError):
    operation = "delete"


class MoveFileError(FileSystemError):
    operation = "move"


class CopyFileError(FileSystemError):
    operation = "copy"


class CreateSymlinkError(FileSystemError):
    operation = "create symbolic link"


class ReadDirectoryError(FileSystemError):
    operation = "read directory"


class ResolveError(FileSystemError):
    operation = "resolve"


class AttributesError(FileSystemError):
    operation = "read attributes"


class ChangeDirectoryError(FileSystemError):
    operation = "change directory"


__all__ = [
    "Reason",
    "FileSystemError",
    "CreateFileError",
    "CreateDirectoryError",
    "DeleteFileError",
    "MoveFileError",
    "CopyFileError",
    "CreateSymlinkError",
    "ReadDirectoryError",
    "ResolveError",
    "AttributesError",
    "ChangeDirectoryError",
]
