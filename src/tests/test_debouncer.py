"""
Tests for the Debouncer.

Requires Python 3.11+.
"""

import threading

import pytest

from watcher import Debouncer, EventSet, Notification


class TestDebouncer:
    """Test cases for Debouncer."""

    @pytest.fixture
    def delivered(self) -> list:
        return []

    def test_merges_within_window(self, delivered: list, wait):
        """Test that notifications inside the window are OR-merged."""
        debouncer = Debouncer(delay_ms=200, callback=delivered.append)

        debouncer.debounce(EventSet.WRITE)
        debouncer.debounce(EventSet.EXTEND)
        debouncer.debounce(EventSet.ATTRIBUTE)

        assert debouncer.pending_count == 3
        assert wait(lambda: delivered)
        assert delivered == [EventSet.WRITE | EventSet.EXTEND | EventSet.ATTRIBUTE]
        assert debouncer.pending_count == 0

    def test_zero_delay_delivers(self, delivered: list, wait):
        """Test immediate delivery on a timer thread."""
        debouncer = Debouncer(callback=delivered.append)

        debouncer.debounce(EventSet.CREATE)

        assert wait(lambda: delivered)
        assert delivered[0] & EventSet.CREATE

    def test_empty_set_ignored(self, delivered: list):
        """Test that an empty set never schedules a delivery."""
        debouncer = Debouncer(callback=delivered.append)

        debouncer.debounce(EventSet(0))

        assert debouncer.pending_count == 0
        assert debouncer.flush() == EventSet(0)
        assert delivered == []

    def test_flush(self, delivered: list):
        """Test flushing delivers synchronously."""
        debouncer = Debouncer(delay_ms=5000, callback=delivered.append)
        debouncer.debounce(EventSet.DELETE)

        flushed = debouncer.flush()

        assert flushed == EventSet.DELETE
        assert delivered == [EventSet.DELETE]
        assert debouncer.pending == EventSet(0)

    def test_clear(self, delivered: list):
        """Test dropping pending notifications."""
        debouncer = Debouncer(delay_ms=100, callback=delivered.append)
        debouncer.debounce(EventSet.WRITE)

        debouncer.clear()
        assert debouncer.flush() == EventSet(0)

        threading.Event().wait(0.3)
        assert delivered == []

    def test_callback_errors_are_contained(self, wait):
        """Test that a failing callback does not stop later deliveries."""
        calls = []

        def flaky(events: EventSet) -> None:
            calls.append(events)
            if len(calls) == 1:
                raise RuntimeError("boom")

        debouncer = Debouncer(callback=flaky)
        debouncer.debounce(EventSet.WRITE)
        assert wait(lambda: len(calls) == 1)

        debouncer.debounce(EventSet.DELETE)
        assert wait(lambda: len(calls) == 2)
        assert calls == [EventSet.WRITE, EventSet.DELETE]

    def test_flush_from_callback(self, wait):
        """Test re-entrant flush from inside a delivery."""
        calls = []
        debouncer = Debouncer()

        def callback(events: EventSet) -> None:
            calls.append(events)
            debouncer.flush()

        debouncer.set_callback(callback)
        debouncer.debounce(EventSet.WRITE)

        assert wait(lambda: calls)
        assert calls == [EventSet.WRITE]

    def test_deliveries_are_serialized(self, wait):
        """Test that two deliveries never overlap."""
        active = []
        overlaps = []
        done = []
        lock = threading.Lock()

        def slow(events: EventSet) -> None:
            with lock:
                if active:
                    overlaps.append(events)
                active.append(events)
            threading.Event().wait(0.05)
            with lock:
                active.remove(events)
                done.append(events)

        debouncer = Debouncer(callback=slow)
        for member in (EventSet.WRITE, EventSet.DELETE, EventSet.CREATE):
            debouncer.debounce(member)
            threading.Event().wait(0.01)

        def merged() -> EventSet:
            result = EventSet(0)
            for events in list(done):
                result |= events
            return result

        assert wait(lambda: merged() == EventSet.WRITE | EventSet.DELETE | EventSet.CREATE)
        assert overlaps == []

    def test_custom_empty_value(self, delivered: list):
        """Test debouncing values other than EventSet."""
        debouncer = Debouncer(delay_ms=5000, callback=delivered.append, empty=Notification())
        debouncer.debounce(Notification(EventSet.WRITE, directory=True))
        debouncer.debounce(Notification(EventSet.DELETE))

        flushed = debouncer.flush()

        assert flushed == Notification(EventSet.WRITE | EventSet.DELETE, directory=True)
        assert delivered == [flushed]
        assert debouncer.pending == Notification()
