"""
Pathwatch File System Operations.

I/O for the Path value type, delegated to ``os`` and ``shutil``. Every
operation blocks for the duration of its system call and raises a typed
``FileSystemError`` on failure.
Requires Python 3.11+.
"""

import os
import shutil
import tempfile
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any
from urllib.parse import quote, unquote, urlsplit

from paths.errors import (
    AttributesError,
    ChangeDirectoryError,
    CopyFileError,
    CreateDirectoryError,
    CreateFileError,
    CreateSymlinkError,
    DeleteFileError,
    MoveFileError,
    ReadDirectoryError,
    Reason,
    ResolveError,
)
from paths.models import FileAttributes

if TYPE_CHECKING:
    from paths.path import Path
    from watcher.change_watcher import ChangeWatcher

# The working directory is process-wide; changes are serialized through here.
_cwd_lock = threading.RLock()


class PathIOMixin:
    """
    File system operations for ``Path``.

    The mixin relies on ``os.fspath(self)`` returning the standardized text
    and on ``type(self)`` accepting a string.
    """

    __slots__ = ()

    # ------------------------------------------------------------------
    # Well-known locations
    # ------------------------------------------------------------------

    @classmethod
    def home(cls) -> "Path":
        """The current user's home directory."""
        return cls(os.path.expanduser("~"))

    @classmethod
    def temporary(cls) -> "Path":
        """The directory for temporary files."""
        return cls(tempfile.gettempdir())

    @classmethod
    def current(cls) -> "Path":
        """The process working directory."""
        return cls(os.getcwd())

    @classmethod
    def from_url(cls, url: str) -> "Path":
        """
        Build a path from a ``file://`` URL.

        Raises:
            ValueError: If ``url`` is not a local file URL
        """
        parts = urlsplit(url)
        if parts.scheme != "file" or parts.netloc not in ("", "localhost"):
            raise ValueError(f"not a local file URL: {url}")
        return cls(unquote(parts.path))

    @property
    def url(self) -> str:
        """This path as a ``file://`` URL, relative paths taken from the working directory."""
        target = os.fspath(self)
        if not os.path.isabs(target):
            target = os.path.join(os.getcwd(), target)
        return "file://" + quote(target, safe="/")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def exists(self) -> bool:
        return os.path.exists(self)

    @property
    def is_directory(self) -> bool:
        return os.path.isdir(self)

    @property
    def is_file(self) -> bool:
        return os.path.isfile(self)

    @property
    def is_symlink(self) -> bool:
        return os.path.islink(self)

    def attributes(self) -> FileAttributes:
        """Attributes of the object at this path, not following a final symlink."""
        try:
            return FileAttributes.from_stat(os.lstat(self))
        except OSError as e:
            raise AttributesError.from_os_error(self, e) from e

    @property
    def modification_date(self) -> datetime | None:
        """Last modification time, or None if nothing is at this path."""
        try:
            return datetime.fromtimestamp(os.stat(self).st_mtime, tz=timezone.utc)
        except OSError:
            return None

    def resolve(self) -> "Path":
        """
        Resolve ``..`` segments and symbolic links.

        Unlike ``standardized`` this needs the file system, and the path
        must exist.
        """
        try:
            return type(self)(os.path.realpath(self, strict=True))
        except OSError as e:
            raise ResolveError.from_os_error(self, e) from e

    # ------------------------------------------------------------------
    # Creation and removal
    # ------------------------------------------------------------------

    def touch(self) -> None:
        """Create an empty file, or bump the modification time if one exists."""
        try:
            fd = os.open(self, os.O_CREAT | os.O_WRONLY, 0o666)
            os.close(fd)
            os.utime(self, None)
        except OSError as e:
            raise CreateFileError.from_os_error(self, e) from e

    def create_file(self, exist_ok: bool = False) -> None:
        """
        Create an empty file.

        Raises:
            CreateFileError: If creation fails, or the file exists and
                ``exist_ok`` is False
        """
        flags = os.O_CREAT | os.O_WRONLY
        if not exist_ok:
            flags |= os.O_EXCL
        try:
            os.close(os.open(self, flags, 0o666))
        except OSError as e:
            raise CreateFileError.from_os_error(self, e) from e

    def create_directory(self, with_intermediate_directories: bool = True) -> None:
        """
        Create a directory.

        With intermediate directories allowed, missing parents are created
        and an existing directory is not an error. Without, the parent must
        exist and the directory must not.

        Raises:
            CreateDirectoryError: If the directory cannot be created
        """
        try:
            if with_intermediate_directories:
                os.makedirs(self, exist_ok=True)
            else:
                os.mkdir(self)
        except OSError as e:
            raise CreateDirectoryError.from_os_error(self, e) from e

    def delete(self) -> None:
        """Delete the file, link or directory tree at this path."""
        try:
            if os.path.isdir(self) and not os.path.islink(self):
                shutil.rmtree(self)
            else:
                os.remove(self)
        except OSError as e:
            raise DeleteFileError.from_os_error(self, e) from e

    # ------------------------------------------------------------------
    # Move, copy, link
    # ------------------------------------------------------------------

    def move_to(self, destination: Any) -> "Path":
        """Move this item to ``destination``, which must not exist."""
        destination = self._coerce(destination)
        if os.path.lexists(destination):
            raise MoveFileError(self, Reason.ALREADY_EXISTS, destination=destination)
        try:
            shutil.move(os.fspath(self), os.fspath(destination))
        except OSError as e:
            raise MoveFileError.from_os_error(self, e, destination=destination) from e
        return destination

    def copy_to(
        self,
        destination: Any,
        *,
        overwrite: bool = False,
        should_copy: Callable[["Path", "Path"], bool] | None = None,
    ) -> "Path":
        """
        Copy this item to ``destination``.

        Args:
            destination: Where the copy goes
            overwrite: Replace an existing item at ``destination``
            should_copy: Confirmation hook called with (source, destination)
                before anything is touched; returning False cancels the copy

        Raises:
            CopyFileError: If the copy fails or is cancelled
        """
        destination = self._coerce(destination)
        if should_copy is not None and not should_copy(self, destination):
            raise CopyFileError(self, Reason.CANCELLED, destination=destination)

        try:
            if os.path.lexists(destination):
                if not overwrite:
                    raise CopyFileError(self, Reason.ALREADY_EXISTS, destination=destination)
                destination.delete()
            if os.path.isdir(self) and not os.path.islink(self):
                shutil.copytree(self, destination, symlinks=True)
            else:
                shutil.copy2(self, destination, follow_symlinks=False)
        except CopyFileError:
            raise
        except DeleteFileError as e:
            raise CopyFileError(
                self, e.reason, destination=destination, detail=e.detail
            ) from e
        except OSError as e:
            raise CopyFileError.from_os_error(self, e, destination=destination) from e
        return destination

    def symlink_at(self, destination: Any, *, overwrite: bool = False) -> "Path":
        """
        Create a symbolic link at ``destination`` that points to this path.

        If ``destination`` is an existing directory the link is created
        inside it under this path's name. Returns the path of the link.
        """
        destination = self._coerce(destination)
        link = destination
        if destination.is_directory and not destination.is_symlink:
            link = destination + self.name

        try:
            if os.path.lexists(link):
                if not overwrite:
                    raise CreateSymlinkError(self, Reason.ALREADY_EXISTS, destination=link)
                os.remove(link)
            os.symlink(os.path.abspath(self), link)
        except CreateSymlinkError:
            raise
        except OSError as e:
            raise CreateSymlinkError.from_os_error(self, e, destination=link) from e
        return link

    # ------------------------------------------------------------------
    # Enumeration
    # ------------------------------------------------------------------

    def children(self, recursive: bool = False) -> list["Path"]:
        """
        The items inside this directory, sorted by name.

        With ``recursive`` the whole tree is listed, without following
        symbolic links to directories.
        """
        try:
            with os.scandir(self) as entries:
                listing = sorted(
                    (entry.name, entry.is_dir(follow_symlinks=False)) for entry in entries
                )
        except OSError as e:
            raise ReadDirectoryError.from_os_error(self, e) from e

        result: list["Path"] = []
        for name, is_dir in listing:
            child = self + name
            result.append(child)
            if recursive and is_dir:
                result.extend(child.children(recursive=True))
        return result

    def __iter__(self) -> Iterator["Path"]:
        return iter(self.children())

    def find(
        self,
        search_depth: int = -1,
        condition: Callable[["Path"], bool] | None = None,
    ) -> list["Path"]:
        """
        Search below this directory.

        ``search_depth`` 0 looks at direct children only; a negative depth
        has no limit.
        """
        found: list["Path"] = []
        for child in self.children():
            if condition is None or condition(child):
                found.append(child)
            if search_depth != 0 and child.is_directory and not child.is_symlink:
                found.extend(child.find(search_depth - 1, condition))
        return found

    # ------------------------------------------------------------------
    # Working directory
    # ------------------------------------------------------------------

    @contextmanager
    def change_directory(self) -> Iterator["Path"]:
        """
        Make this path the working directory for the ``with`` block.

        The previous directory is restored on every exit path. Other
        threads entering ``change_directory`` wait until the block ends.
        """
        with _cwd_lock:
            try:
                previous = os.getcwd()
                os.chdir(self)
            except OSError as e:
                raise ChangeDirectoryError.from_os_error(self, e) from e
            try:
                yield self
            finally:
                os.chdir(previous)

    # ------------------------------------------------------------------
    # Watching
    # ------------------------------------------------------------------

    def watch(
        self,
        handler: Callable[["ChangeWatcher"], Any] | None = None,
        **options: Any,
    ) -> "ChangeWatcher":
        """Open a ``ChangeWatcher`` on this path. See ``ChangeWatcher.open``."""
        from watcher.change_watcher import ChangeWatcher

        return ChangeWatcher.open(self, handler, **options)

    def _coerce(self, other: Any) -> "Path":
        return other if isinstance(other, type(self)) else type(self)(other)
