"""
Pathwatch Path Models.

Data models for file attributes reported by the file system.
Requires Python 3.11+.
"""

import grp
import os
import pwd
import stat
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum


class FileType(str, Enum):
    """Kind of object a path refers to."""

    REGULAR = "regular"
    DIRECTORY = "directory"
    SYMBOLIC_LINK = "symbolic_link"
    SOCKET = "socket"
    FIFO = "fifo"
    CHARACTER_SPECIAL = "character_special"
    BLOCK_SPECIAL = "block_special"
    UNKNOWN = "unknown"

    @classmethod
    def from_mode(cls, mode: int) -> "FileType":
        """Classify an ``st_mode`` value."""
        if stat.S_ISREG(mode):
            return cls.REGULAR
        if stat.S_ISDIR(mode):
            return cls.DIRECTORY
        if stat.S_ISLNK(mode):
            return cls.SYMBOLIC_LINK
        if stat.S_ISSOCK(mode):
            return cls.SOCKET
        if stat.S_ISFIFO(mode):
            return cls.FIFO
        if stat.S_ISCHR(mode):
            return cls.CHARACTER_SPECIAL
        if stat.S_ISBLK(mode):
            return cls.BLOCK_SPECIAL
        return cls.UNKNOWN


@dataclass(frozen=True)
class FileAttributes:
    """Attributes of a single file system object (not following links)."""

    file_type: FileType
    size: int
    modification_date: datetime
    creation_date: datetime | None
    owner_id: int
    owner_name: str | None
    group_id: int
    group_name: str | None
    reference_count: int
    filesystem_file_number: int

    @classmethod
    def from_stat(cls, result: os.stat_result) -> "FileAttributes":
        """Build attributes from an ``os.lstat`` result."""
        # st_birthtime only exists on macOS and the BSDs
        birthtime = getattr(result, "st_birthtime", None)
        return cls(
            file_type=FileType.from_mode(result.st_mode),
            size=result.st_size,
            modification_date=datetime.fromtimestamp(result.st_mtime, tz=timezone.utc),
            creation_date=(
                datetime.fromtimestamp(birthtime, tz=timezone.utc)
                if birthtime is not None
                else None
            ),
            owner_id=result.st_uid,
            owner_name=_owner_name(result.st_uid),
            group_id=result.st_gid,
            group_name=_group_name(result.st_gid),
            reference_count=result.st_nlink,
            filesystem_file_number=result.st_ino,
        )


def _owner_name(uid: int) -> str | None:
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return None


def _group_name(gid: int) -> str | None:
    try:
        return grp.getgrgid(gid).gr_name
    except KeyError:
        return None
