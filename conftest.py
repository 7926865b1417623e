"""Root conftest.py for the fuelsim monorepo.

Puts every package src directory on the path and provides shared fixtures
for tests that exercise the background emitter.
"""

from __future__ import annotations

import sys
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Callable

import pytest

if TYPE_CHECKING:
    from _pytest.config import Config


# Add all package src directories to path for imports
PROJECT_ROOT = Path(__file__).parent
for pkg_dir in PROJECT_ROOT.glob("fuelsim-*/src"):
    if str(pkg_dir) not in sys.path:
        sys.path.insert(0, str(pkg_dir))


def pytest_configure(config: Config) -> None:
    """Register custom markers.

    Args:
        config: pytest configuration object.
    """
    config.addinivalue_line(
        "markers",
        "integration: Integration test requiring a real or virtual CAN bus",
    )
    config.addinivalue_line(
        "markers",
        "slow: Slow-running test",
    )


@dataclass
class SentFrame:
    """A frame captured by ``RecordingSender``."""

    arbitration_id: int
    dlc: int
    data: bytes
    timestamp: float


@dataclass
class RecordingSender:
    """Frame sender that records every frame it is given.

    Thread-safe: frames are appended from the emitter thread and read from
    the test thread.
    """

    frames: list[SentFrame] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock)
    _changed: threading.Condition = field(init=False)

    def __post_init__(self) -> None:
        self._changed = threading.Condition(self._lock)

    def send_frame(self, arbitration_id: int, dlc: int, data: bytes) -> None:
        with self._changed:
            self.frames.append(SentFrame(arbitration_id, dlc, bytes(data), time.monotonic()))
            self._changed.notify_all()

    @property
    def count(self) -> int:
        with self._lock:
            return len(self.frames)

    def snapshot(self) -> list[SentFrame]:
        with self._lock:
            return list(self.frames)

    def wait_for(self, count: int, timeout: float = 2.0) -> bool:
        """Block until at least ``count`` frames were sent."""
        with self._changed:
            return self._changed.wait_for(lambda: len(self.frames) >= count, timeout)


@pytest.fixture
def recording_sender() -> RecordingSender:
    """Create a sender that records frames."""
    return RecordingSender()


@pytest.fixture
def wait_until() -> Callable[[Callable[[], bool], float], bool]:
    """Return a helper that polls a predicate until it holds or times out."""

    def _wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(0.005)
        return predicate()

    return _wait_until
