"""
Pathwatch Change Watcher Package.

Change notifications for a single file system path.
Requires Python 3.11+.
"""

from watcher.change_watcher import ChangeWatcher, TargetEventHandler
from watcher.debouncer import Debouncer
from watcher.delegate import (
    AttributeObserver,
    ChangeWatcherDelegate,
    CreateObserver,
    DeleteObserver,
    DirectoryChangeObserver,
    RenameObserver,
    WriteObserver,
    delegate_calls,
)
from watcher.errors import WatchRegistrationError
from watcher.events import (
    WRITE_LIKE,
    EventSet,
    Notification,
    StatSnapshot,
    WatcherState,
    classify_modification,
)

__all__ = [
    "ChangeWatcher",
    "TargetEventHandler",
    "Debouncer",
    "EventSet",
    "WRITE_LIKE",
    "WatcherState",
    "StatSnapshot",
    "Notification",
    "classify_modification",
    "DirectoryChangeObserver",
    "CreateObserver",
    "WriteObserver",
    "AttributeObserver",
    "RenameObserver",
    "DeleteObserver",
    "ChangeWatcherDelegate",
    "delegate_calls",
    "WatchRegistrationError",
]
