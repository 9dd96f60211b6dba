"""
Pathwatch Watch Events.

Event classification for change notifications.
Requires Python 3.11+.
"""

import os
from dataclasses import dataclass
from enum import Enum, Flag, auto


class EventSet(Flag):
    """
    Classification of a single change notification.

    One notification can carry several members at once, for example
    ``WRITE | EXTEND | ATTRIBUTE`` after a write that grew a file. Never
    assume a callback sees exactly one member.
    """

    DELETE = auto()
    WRITE = auto()
    EXTEND = auto()
    ATTRIBUTE = auto()
    LINK = auto()
    RENAME = auto()
    CREATE = auto()

    ALL = DELETE | WRITE | EXTEND | ATTRIBUTE | LINK | RENAME | CREATE


WRITE_LIKE = EventSet.WRITE | EventSet.EXTEND


class WatcherState(str, Enum):
    """Lifecycle of a ChangeWatcher."""

    UNOPENED = "unopened"
    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True, slots=True)
class StatSnapshot:
    """The parts of ``os.stat`` used to classify a modification."""

    size: int
    mtime_ns: int
    ctime_ns: int
    mode: int
    uid: int
    gid: int
    nlink: int
    inode: int

    @classmethod
    def capture(cls, target: str) -> "StatSnapshot | None":
        """Stat ``target``, returning None when it cannot be reached."""
        try:
            result = os.stat(target)
        except OSError:
            return None
        return cls(
            size=result.st_size,
            mtime_ns=result.st_mtime_ns,
            ctime_ns=result.st_ctime_ns,
            mode=result.st_mode,
            uid=result.st_uid,
            gid=result.st_gid,
            nlink=result.st_nlink,
            inode=result.st_ino,
        )


@dataclass(frozen=True, slots=True)
class Notification:
    """
    A translated notification waiting for delivery.

    ``directory`` records whether the watch that produced it was scheduled
    on the target directory itself. It is fixed when the notification is
    ingested, so a later re-anchor cannot change how a pending batch is
    dispatched. Merging with ``|`` keeps directory mode if any part had it.
    """

    events: EventSet = EventSet(0)
    directory: bool = False

    def __or__(self, other: "Notification") -> "Notification":
        return Notification(self.events | other.events, self.directory or other.directory)

    def __bool__(self) -> bool:
        return bool(self.events)


def classify_modification(
    before: StatSnapshot | None,
    after: StatSnapshot | None,
) -> EventSet:
    """
    Turn a "modified" notification into an EventSet.

    Compares the target's stat before and after. A notification with no
    visible difference still counts as a write: timestamps are coarse and
    an identical rewrite is a write all the same.
    """
    if after is None:
        # Gone already, the delete notification reports it
        return EventSet(0)
    if before is None:
        return EventSet.WRITE

    events = EventSet(0)
    if after.size > before.size:
        events |= EventSet.WRITE | EventSet.EXTEND
    elif (
        after.size != before.size
        or after.mtime_ns != before.mtime_ns
        or after.inode != before.inode
    ):
        events |= EventSet.WRITE

    if (after.mode, after.uid, after.gid) != (before.mode, before.uid, before.gid):
        events |= EventSet.ATTRIBUTE
    elif not events and after.ctime_ns != before.ctime_ns:
        events |= EventSet.ATTRIBUTE

    if after.nlink != before.nlink:
        events |= EventSet.LINK

    return events or EventSet.WRITE


__all__ = [
    "EventSet",
    "WRITE_LIKE",
    "WatcherState",
    "StatSnapshot",
    "Notification",
    "classify_modification",
]
