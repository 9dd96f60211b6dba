"""
Pathwatch Debouncer.

Merges rapid change notifications for one watcher into a single delivery.
Requires Python 3.11+.
"""

import threading
from collections.abc import Callable
from typing import Any

from utils.logger import LoggerMixin
from watcher.events import EventSet


class Debouncer(LoggerMixin):
    """
    Debounces rapid change notifications.

    Accumulates EventSets and triggers the callback once no new
    notification has arrived for the delay period. Everything pending is
    OR-merged into the set handed to the callback. Any value that supports
    ``|`` and truth testing can be debounced by passing its empty value as
    ``empty``.

    The callback runs on a timer thread, never on the thread that called
    ``debounce``. Deliveries are serialized: a batch is taken and delivered
    under one lock, so batches reach the callback in arrival order even
    when two timers fire close together.
    """

    def __init__(
        self,
        delay_ms: int = 0,
        callback: Callable[[Any], Any] | None = None,
        empty: Any = EventSet(0),
    ) -> None:
        """
        Initialize the debouncer.

        Args:
            delay_ms: Delay in milliseconds before delivering, 0 for as soon
                as a timer thread is scheduled
            callback: Function to call with the merged value
            empty: The value pending starts from, ``EventSet(0)`` by default
        """
        self._delay = delay_ms / 1000.0
        self._callback = callback
        self._empty = empty
        self._pending = empty
        self._pending_count = 0
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()
        self._delivery_lock = threading.RLock()

    def set_callback(self, callback: Callable[[Any], Any]) -> None:
        """Set or update the callback function."""
        self._callback = callback

    def debounce(self, events: Any) -> None:
        """
        Add a notification to the pending set.

        The callback is triggered after delay_ms milliseconds of no new
        notifications.
        """
        if not events:
            return

        with self._lock:
            # Cancel existing timer
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

            self._pending |= events
            self._pending_count += 1

            # Start new timer
            self._timer = threading.Timer(self._delay, self._process_pending)
            self._timer.daemon = True
            self._timer.start()

    def _take_pending(self) -> tuple[Any, int]:
        with self._lock:
            events, count = self._pending, self._pending_count
            self._pending = self._empty
            self._pending_count = 0
            if self._timer is threading.current_thread():
                self._timer = None
        return events, count

    def _process_pending(self) -> None:
        """Deliver everything pending."""
        with self._delivery_lock:
            events, count = self._take_pending()
            if not events:
                return

            self.log.debug("processing_debounced_changes", count=count, events=str(events))
            self._invoke(events)

    def _invoke(self, events: Any) -> None:
        if self._callback is None:
            return
        try:
            self._callback(events)
        except Exception as e:
            self.log.error("debounce_callback_failed", error=str(e), exc_info=True)

    def flush(self) -> Any:
        """
        Immediately deliver all pending notifications.

        Returns:
            The merged value that was pending, ``empty`` if nothing was
        """
        with self._delivery_lock:
            with self._lock:
                if self._timer is not None:
                    self._timer.cancel()
                    self._timer = None
            events, _ = self._take_pending()
            if events:
                self._invoke(events)
        return events

    def clear(self) -> None:
        """Clear all pending notifications without delivering them."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._pending = self._empty
            self._pending_count = 0

    @property
    def pending(self) -> Any:
        """The merged value waiting for delivery."""
        return self._pending

    @property
    def pending_count(self) -> int:
        """Number of notifications merged into the pending set."""
        return self._pending_count
