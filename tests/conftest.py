"""
Pytest configuration and shared fixtures for the PrintHero test suite.
"""

import threading
import time
from pathlib import Path
from typing import Callable, List, Optional, Union

import pytest

from printhero.printing.dispatcher import PrintDispatcher
from printhero.watchfolders.availability import AvailabilityProber
from printhero.watchfolders.events import OutcomeNotifier
from printhero.watchfolders.models import MonitoredFolder, ProcessingOutcome
from printhero.watchfolders.processor import FileProcessor


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests that wait on real filesystem events"
    )


class RecordingPrintDispatcher(PrintDispatcher):
    """Print dispatcher that records calls instead of printing."""

    def __init__(self, succeed: bool = True, fail_names: Optional[List[str]] = None):
        super().__init__()
        self.succeed = succeed
        self.fail_names = set(fail_names or [])
        self.printed: List[str] = []
        self.attempts: List[str] = []
        self._lock = threading.Lock()

    def print_file(self, file_path: Union[str, Path]) -> bool:
        path = Path(file_path)
        with self._lock:
            self.attempts.append(str(path))
            if not self.succeed or path.name in self.fail_names:
                return False
            self.printed.append(str(path))
            return True


class OutcomeCollector:
    """Thread-safe outcome listener."""

    def __init__(self):
        self.outcomes: List[ProcessingOutcome] = []
        self._lock = threading.Lock()

    def __call__(self, outcome: ProcessingOutcome) -> None:
        with self._lock:
            self.outcomes.append(outcome)

    def __len__(self) -> int:
        with self._lock:
            return len(self.outcomes)


def wait_for(condition: Callable[[], bool], timeout: float = 10.0, interval: float = 0.05) -> bool:
    """Poll ``condition`` until it holds or ``timeout`` expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(interval)
    return condition()


@pytest.fixture
def dispatcher():
    return RecordingPrintDispatcher()


@pytest.fixture
def notifier():
    return OutcomeNotifier()


@pytest.fixture
def collector(notifier):
    collector = OutcomeCollector()
    notifier.subscribe(collector)
    return collector


@pytest.fixture
def fast_prober():
    return AvailabilityProber(poll_interval=0.01, max_wait=0.1)


@pytest.fixture
def processor(dispatcher, notifier, fast_prober):
    return FileProcessor(dispatcher=dispatcher, notifier=notifier, prober=fast_prober)


@pytest.fixture
def hot_folder(tmp_path):
    folder = tmp_path / "hot"
    folder.mkdir()
    return folder


@pytest.fixture
def make_folder(hot_folder):
    """Build a MonitoredFolder for the hot folder with overrides."""

    def _make(**overrides) -> MonitoredFolder:
        data = {"folder_path": str(hot_folder)}
        data.update(overrides)
        return MonitoredFolder(**data)

    return _make


@pytest.fixture
def waiter():
    return wait_for
