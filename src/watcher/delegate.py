"""
Pathwatch Watcher Delegates.

Capability interfaces for delegate-mode delivery. A delegate implements
any subset of the methods below; each is called once per notification
whose EventSet selects it.
Requires Python 3.11+.
"""

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from watcher.events import WRITE_LIKE, EventSet

if TYPE_CHECKING:
    from watcher.change_watcher import ChangeWatcher


@runtime_checkable
class DirectoryChangeObserver(Protocol):
    def did_observe_directory_change(self, watcher: "ChangeWatcher") -> None: ...


@runtime_checkable
class CreateObserver(Protocol):
    def did_observe_create(self, watcher: "ChangeWatcher") -> None: ...


@runtime_checkable
class WriteObserver(Protocol):
    def did_observe_write(self, watcher: "ChangeWatcher") -> None: ...


@runtime_checkable
class AttributeObserver(Protocol):
    def did_observe_attribute(self, watcher: "ChangeWatcher") -> None: ...


@runtime_checkable
class RenameObserver(Protocol):
    def did_observe_rename(self, watcher: "ChangeWatcher") -> None: ...


@runtime_checkable
class DeleteObserver(Protocol):
    def did_observe_delete(self, watcher: "ChangeWatcher") -> None: ...


class ChangeWatcherDelegate(
    DirectoryChangeObserver,
    CreateObserver,
    WriteObserver,
    AttributeObserver,
    DeleteObserver,
    Protocol,
):
    """A delegate that handles every category."""


def delegate_calls(
    delegate: Any,
    events: EventSet,
    is_directory: bool,
) -> list[tuple[str, Callable[["ChangeWatcher"], Any]]]:
    """
    Plan the delegate calls for one notification.

    Order is fixed: directory change, create, write, attribute, rename,
    delete. Writes on a directory target are reported as directory
    changes. A rename goes to ``did_observe_delete`` when the delegate has
    no rename method, since the path no longer names the object.
    """
    names: list[str] = []

    if events & WRITE_LIKE and is_directory:
        names.append("did_observe_directory_change")
    if events & EventSet.CREATE:
        names.append("did_observe_create")
    if events & WRITE_LIKE and not is_directory:
        names.append("did_observe_write")
    if events & EventSet.ATTRIBUTE:
        names.append("did_observe_attribute")
    if events & EventSet.RENAME:
        names.append(
            "did_observe_rename"
            if isinstance(delegate, RenameObserver)
            else "did_observe_delete"
        )
    if events & EventSet.DELETE and "did_observe_delete" not in names:
        names.append("did_observe_delete")

    calls = []
    for name in names:
        method = getattr(delegate, name, None)
        if callable(method):
            calls.append((name, method))
    return calls


__all__ = [
    "DirectoryChangeObserver",
    "CreateObserver",
    "WriteObserver",
    "AttributeObserver",
    "RenameObserver",
    "DeleteObserver",
    "ChangeWatcherDelegate",
    "delegate_calls",
]
