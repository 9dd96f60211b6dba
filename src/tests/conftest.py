"""
Pathwatch Test Configuration.

Pytest fixtures and configuration.
Requires Python 3.11+.
"""

import threading
import time
from collections.abc import Callable, Generator
from pathlib import Path as StdPath

import pytest

from paths import Path
from utils.config import get_settings
from watcher import EventSet


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Give every test settings built from a known environment."""
    monkeypatch.setenv("WATCHER_LATENCY_MS", "0")
    monkeypatch.setenv("WATCHER_USE_POLLING", "false")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_home(tmp_path: StdPath, monkeypatch: pytest.MonkeyPatch) -> StdPath:
    """Point ``~`` at a temporary directory."""
    home = tmp_path / "home" / "tester"
    home.mkdir(parents=True)
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture
def workdir(tmp_path: StdPath) -> Path:
    """A fresh, empty directory as a Path."""
    directory = tmp_path / "work"
    directory.mkdir()
    return Path(str(directory))


class Recorder:
    """Collects deliveries from a watcher handler."""

    def __init__(self) -> None:
        self.events: list = []
        self._lock = threading.Lock()

    def __call__(self, watcher) -> None:
        with self._lock:
            self.events.append(watcher.current_event)

    @property
    def count(self) -> int:
        with self._lock:
            return len(self.events)

    def merged(self) -> EventSet:
        result = EventSet(0)
        with self._lock:
            for events in self.events:
                result |= events
        return result


@pytest.fixture
def recorder() -> Recorder:
    """A handler that records every delivered EventSet."""
    return Recorder()


def wait_for(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.02) -> bool:
    """Poll ``predicate`` until it holds or ``timeout`` seconds pass."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def wait() -> Callable[..., bool]:
    """The ``wait_for`` helper as a fixture."""
    return wait_for
