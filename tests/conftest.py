"""Shared fixtures for crucible tests."""

import threading

import pytest


class FakeClock:
    """Thread-safe manual clock usable as both ``clock`` and ``sleep``."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._lock = threading.Lock()

    def __call__(self) -> float:
        with self._lock:
            return self._now

    def advance(self, seconds: float) -> None:
        with self._lock:
            self._now += seconds

    def sleep(self, seconds: float) -> None:
        self.advance(max(0.0, seconds))


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
