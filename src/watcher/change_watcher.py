"""
Pathwatch Change Watcher.

Observes a single file system path using watchdog and delivers
classified, debounced change notifications to a handler or delegate.
Requires Python 3.11+.

Caveats of the underlying notification facilities, which this module does
not hide:

- Events can be missed. There is a window between registration and the
  kernel (or polling snapshot) being ready, and virtualized or network
  file systems drop notifications. Use ``wait_ready()`` before acting on
  the watched path, and never rely on one mutation producing one callback.
- Events are coalesced. Several mutations can arrive as one notification,
  and the debouncer merges further within its latency window.
  ``current_event`` is a set.
- Watchers are independent. Two watchers on the same path each own a
  registration and have no ordering relative to each other.
- Each watcher costs one observer; on Linux that is one inotify instance,
  limited per user by ``fs.inotify.max_user_instances``. A watcher that
  hits the limit polls instead, which still gives it its own registration
  but costs a directory scan every ``WATCHER_POLLING_INTERVAL`` seconds.
"""

import asyncio
import inspect
import os
import threading
from collections.abc import Callable
from typing import Any

from watchdog.events import (
    DirCreatedEvent,
    DirDeletedEvent,
    DirModifiedEvent,
    DirMovedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver
from watchdog.observers.polling import PollingObserver

from paths.errors import Reason
from paths.path import Path
from utils.config import get_settings
from utils.logger import LoggerMixin
from watcher.debouncer import Debouncer
from watcher.delegate import delegate_calls
from watcher.errors import WatchRegistrationError
from watcher.events import (
    EventSet,
    Notification,
    StatSnapshot,
    WatcherState,
    classify_modification,
)


class TargetEventHandler(FileSystemEventHandler, LoggerMixin):
    """
    Translates watchdog events about one target into EventSets.

    In file mode the handler is scheduled on the target's parent directory
    and ignores siblings. In directory mode it is scheduled on the target
    itself; entries being added, removed or renamed inside it count as a
    write to the directory. Content changes of entries do not.
    """

    def __init__(
        self,
        target: str,
        on_events: Callable[[EventSet], None],
    ) -> None:
        """
        Initialize the handler.

        Args:
            target: Absolute path of the watched object
            on_events: Called with every non-empty EventSet
        """
        super().__init__()
        self._target = target
        # Some backends report resolved paths (FSEvents under /private)
        self._aliases = {target, os.path.realpath(target)}
        self._on_events = on_events
        self._snapshot = StatSnapshot.capture(target)
        self.directory_mode = False

    def _matches(self, raw: Any) -> bool:
        if not raw:
            return False
        return os.path.normpath(os.fsdecode(raw)) in self._aliases

    def _is_entry(self, raw: Any) -> bool:
        if not raw or not self.directory_mode:
            return False
        return os.path.dirname(os.path.normpath(os.fsdecode(raw))) in self._aliases

    def _emit(self, events: EventSet) -> None:
        if events:
            self._on_events(events)

    def on_created(self, event: FileCreatedEvent | DirCreatedEvent) -> None:
        """Handle file/directory creation."""
        if self._matches(event.src_path):
            self._snapshot = StatSnapshot.capture(self._target)
            self._emit(EventSet.CREATE)
        elif self._is_entry(event.src_path):
            self._emit(EventSet.WRITE)

    def on_deleted(self, event: FileDeletedEvent | DirDeletedEvent) -> None:
        """Handle file/directory deletion."""
        if self._matches(event.src_path):
            self._snapshot = None
            self._emit(EventSet.DELETE)
        elif self._is_entry(event.src_path):
            self._emit(EventSet.WRITE)

    def on_moved(self, event: FileMovedEvent | DirMovedEvent) -> None:
        """Handle file/directory move/rename."""
        events = EventSet(0)

        if self._matches(event.src_path):
            self._snapshot = None
            events |= EventSet.RENAME
        if self._matches(event.dest_path):
            # Something was moved onto the target, e.g. an atomic save
            self._snapshot = StatSnapshot.capture(self._target)
            events |= EventSet.CREATE
        if self._is_entry(event.src_path) or self._is_entry(event.dest_path):
            events |= EventSet.WRITE

        self._emit(events)

    def on_modified(self, event: FileModifiedEvent | DirModifiedEvent) -> None:
        """Handle file/directory modification."""
        if not self._matches(event.src_path):
            return

        after = StatSnapshot.capture(self._target)
        events = classify_modification(self._snapshot, after)
        self._snapshot = after
        self._emit(events)


class ChangeWatcher(LoggerMixin):
    """
    Watches one path and delivers change notifications.

    Lifecycle is ``UNOPENED -> OPEN -> CLOSED``. ``open`` is the only way
    in and ``close`` the only way out; a closed watcher cannot be reopened.

    Each open watcher owns exactly one watchdog observer with at most one
    scheduled watch. Notifications are translated to EventSets on the
    observer thread, merged by a Debouncer and delivered on a timer thread,
    one at a time and in arrival order.

    Use ``ChangeWatcher.open`` (or ``Path.watch``) rather than the
    constructor.
    """

    def __init__(
        self,
        path: Path | str,
        handler: Callable[["ChangeWatcher"], Any] | None = None,
        *,
        delegate: Any = None,
        events: EventSet = EventSet.ALL,
        single_shot: bool = False,
        latency_ms: int | None = None,
        use_polling: bool | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        """
        Initialize the watcher (not registered yet).

        Args:
            path: Path to observe
            handler: Called with the watcher for every delivered notification
            delegate: Object implementing any of the ``did_observe_*`` methods
            events: Interest mask; only these members are delivered
            single_shot: Close before the first delivery is dispatched
            latency_ms: Debounce window, defaults to ``WATCHER_LATENCY_MS``
            use_polling: Use the polling observer, defaults to ``WATCHER_USE_POLLING``
            loop: Event loop for coroutine handlers

        Raises:
            ValueError: If neither or both of handler and delegate are given
            TypeError: If handler is not callable
        """
        if (handler is None) == (delegate is None):
            raise ValueError("Exactly one of handler or delegate is required")
        if handler is not None and not callable(handler):
            raise TypeError(f"handler must be callable, got {type(handler).__name__}")

        settings = get_settings().watcher

        self._path = path if isinstance(path, Path) else Path(path)
        self._target = os.path.abspath(os.fspath(self._path))
        self._handler = handler
        self._delegate = delegate
        self._events = events
        self._single_shot = single_shot
        self._loop = loop
        self._latency_ms = settings.latency_ms if latency_ms is None else latency_ms
        self._use_polling = settings.use_polling if use_polling is None else use_polling
        self._polling_interval = settings.polling_interval
        self._observer_timeout = settings.observer_timeout
        self._stop_timeout = settings.stop_timeout

        self._state = WatcherState.UNOPENED
        self._current_event: EventSet | None = None
        self._anchor: str | None = None
        self._observer: BaseObserver | None = None
        self._lock = threading.Lock()
        self._ready = threading.Event()

        self._debouncer = Debouncer(
            delay_ms=self._latency_ms,
            callback=self._deliver,
            empty=Notification(),
        )
        self._event_handler = TargetEventHandler(self._target, self._ingest)

    @classmethod
    def open(
        cls,
        path: Path | str,
        handler: Callable[["ChangeWatcher"], Any] | None = None,
        **options: Any,
    ) -> "ChangeWatcher":
        """
        Start watching ``path``.

        Returns as soon as the registration is in place; delivery happens
        asynchronously. The target itself may be missing, in which case a
        later create is reported, but its parent directory must exist.

        Raises:
            WatchRegistrationError: If the path cannot be watched
        """
        watcher = cls(path, handler, **options)
        watcher._register()
        return watcher

    # ------------------------------------------------------------------
    # Public state
    # ------------------------------------------------------------------

    @property
    def path(self) -> Path:
        return self._path

    @property
    def state(self) -> WatcherState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is WatcherState.OPEN

    @property
    def current_event(self) -> EventSet | None:
        """The EventSet of the notification being (or last) delivered."""
        return self._current_event

    @property
    def anchor(self) -> Path | None:
        """The directory the observer is currently scheduled on."""
        anchor = self._anchor
        return Path(anchor) if anchor is not None else None

    @property
    def uses_polling(self) -> bool:
        """True when the polling observer is in use, by choice or as a fallback."""
        return self._use_polling

    @property
    def ready(self) -> threading.Event:
        """Set once the registration is live."""
        return self._ready

    def wait_ready(self, timeout: float | None = None) -> bool:
        """Block until the registration is live. Returns False on timeout."""
        return self._ready.wait(timeout)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def _make_observer(self) -> BaseObserver:
        if self._use_polling:
            return PollingObserver(timeout=self._polling_interval)
        return Observer(timeout=self._observer_timeout)

    def _resolve_anchor(self) -> tuple[str, bool]:
        """Pick the directory to schedule on and whether the target is it."""
        if os.path.isdir(self._target):
            return self._target, True

        parent = os.path.dirname(self._target)
        if not os.path.isdir(parent):
            raise WatchRegistrationError(
                self._path,
                Reason.NOT_FOUND,
                detail=f"parent directory {parent} does not exist",
            )
        return parent, False

    def _schedule(self, observer: BaseObserver, anchor: str, directory_mode: bool) -> None:
        self._event_handler.directory_mode = directory_mode
        observer.schedule(self._event_handler, anchor, recursive=False)
        self._anchor = anchor

    def _start(self, observer: BaseObserver, anchor: str, directory_mode: bool) -> None:
        """Schedule and start ``observer``, stopping it again if either fails."""
        try:
            self._schedule(observer, anchor, directory_mode)
            observer.start()
        except OSError:
            observer.stop()
            raise

    def _register(self) -> None:
        with self._lock:
            if self._state is not WatcherState.UNOPENED:
                raise RuntimeError(f"ChangeWatcher is {self._state.value}, not reusable")

            anchor, directory_mode = self._resolve_anchor()
            observer = self._make_observer()
            # Open before starting so the first notification is not dropped
            self._observer = observer
            self._state = WatcherState.OPEN

        try:
            try:
                self._start(observer, anchor, directory_mode)
            except OSError as e:
                if self._use_polling or Reason.from_errno(e.errno) is not Reason.LIMIT_REACHED:
                    raise
                # Out of inotify instances or watches, poll instead
                self.log.warning(
                    "watcher_polling_fallback",
                    path=str(self._path),
                    error=str(e),
                )
                self._use_polling = True
                observer = self._make_observer()
                with self._lock:
                    self._observer = observer
                self._start(observer, anchor, directory_mode)
        except OSError as e:
            with self._lock:
                self._state = WatcherState.CLOSED
            raise WatchRegistrationError.from_os_error(self._path, e) from e

        self._ready.set()
        self.log.info(
            "watcher_opened",
            path=str(self._path),
            anchor=anchor,
            directory=directory_mode,
            polling=self._use_polling,
            latency_ms=self._latency_ms,
        )

    def _reanchor(self, events: EventSet) -> None:
        """
        Move the registration when the target changes kind.

        A directory that appears is watched directly so its entries are
        seen. A watched directory that disappears hands over to its parent
        so a later re-create is seen. Notifications in between are missed.
        """
        with self._lock:
            if self._state is not WatcherState.OPEN or self._observer is None:
                return
            observer = self._observer
            directory_mode = self._event_handler.directory_mode

            if directory_mode and events & (EventSet.DELETE | EventSet.RENAME):
                anchor, new_mode = os.path.dirname(self._target), False
                if not os.path.isdir(anchor):
                    return
            elif not directory_mode and events & EventSet.CREATE and os.path.isdir(self._target):
                anchor, new_mode = self._target, True
            else:
                return

        try:
            observer.unschedule_all()
            self._schedule(observer, anchor, new_mode)
        except OSError as e:
            self.log.warning(
                "watcher_reanchor_failed",
                path=str(self._path),
                anchor=anchor,
                error=str(e),
            )
            return

        self.log.debug("watcher_reanchored", path=str(self._path), anchor=anchor, directory=new_mode)

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def _ingest(self, events: EventSet) -> None:
        """Receive a translated notification on the observer thread."""
        if self._state is not WatcherState.OPEN:
            return
        # Re-anchoring happens on this thread, so the mode is the one
        # these events were seen under
        self._debouncer.debounce(
            Notification(events, self._event_handler.directory_mode)
        )
        self._reanchor(events)

    def _deliver(self, notification: Notification) -> None:
        """Dispatch one merged notification on the delivery thread."""
        closing = False
        with self._lock:
            if self._state is not WatcherState.OPEN:
                return
            selected = notification.events & self._events
            if not selected:
                return
            self._current_event = selected
            if self._single_shot:
                self._state = WatcherState.CLOSED
                closing = True

        self._dispatch(selected, notification.directory)

        if closing:
            self._shutdown()

    def _dispatch(self, events: EventSet, is_directory: bool) -> None:
        if self._handler is not None:
            self._call("handler", self._handler)
            return

        for name, method in delegate_calls(self._delegate, events, is_directory):
            self._call(name, method)

    def _call(self, name: str, callback: Callable[["ChangeWatcher"], Any]) -> None:
        """Run one client callback; its failures never stop delivery."""
        try:
            if inspect.iscoroutinefunction(callback):
                if self._loop is not None:
                    asyncio.run_coroutine_threadsafe(callback(self), self._loop)
                else:
                    # No event loop set, run in a new loop
                    asyncio.run(callback(self))
            else:
                callback(self)
        except Exception as e:
            self.log.error(
                "handler_failed",
                path=str(self._path),
                callback=name,
                error=str(e),
                exc_info=True,
            )

    def flush(self) -> EventSet:
        """Deliver anything waiting in the latency window now."""
        return self._debouncer.flush().events

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    def close(self) -> None:
        """
        Stop watching.

        Idempotent and safe to call from any thread, including from inside
        the handler. Nothing is dispatched after ``close`` returns, except a
        delivery that was already running when it was called.
        """
        with self._lock:
            if self._state is WatcherState.CLOSED:
                return
            self._state = WatcherState.CLOSED
        self._shutdown()

    def _shutdown(self) -> None:
        self._debouncer.clear()

        observer = self._observer
        if observer is None:
            return

        observer.stop()
        if observer.is_alive() and observer is not threading.current_thread():
            observer.join(timeout=self._stop_timeout)
        self.log.info("watcher_closed", path=str(self._path))

    def __enter__(self) -> "ChangeWatcher":
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.close()

    def __repr__(self) -> str:
        return f"<ChangeWatcher path={self._path.raw_value!r} state={self._state.value}>"


__all__ = ["ChangeWatcher", "TargetEventHandler"]
