"""Shared fixtures: an in-memory store, a controllable clock and a registry."""

import pytest

from beacon.config import BeaconConfig
from beacon.registry import LeaseRegistry
from beacon.store import InMemoryStore


class FakeClock:
    """Callable returning epoch seconds; advanced by hand."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class LogRecorder:
    def __init__(self):
        self.records = []

    def __call__(self, level, message, detail=None):
        self.records.append((level, message, detail))

    def levels(self):
        return [level for level, _, _ in self.records]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def log():
    return LogRecorder()


@pytest.fixture
def config():
    return BeaconConfig(seconds_to_expire=10)


@pytest.fixture
def registry(store, config, clock, log):
    return LeaseRegistry(store, config=config, log=log, clock=clock)


@pytest.fixture
def svc():
    return {"name": "svc", "version": "1.0.0", "host": "10.0.0.1", "port": 9000}
