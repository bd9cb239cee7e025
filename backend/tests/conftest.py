"""Root conftest: shared test configuration and deterministic time/id sources."""

import itertools
import os

import pytest

# Ensure tests never reach a real Redis
os.environ.setdefault("KV_URL", "redis://localhost:6379/15")

from tests.fake_backend import FakeBackend  # noqa: E402

CLOCK_START = 1_700_000_000_000


class FakeClock:
    """Millisecond clock that advances by `step` on every read."""

    def __init__(self, start: int = CLOCK_START, step: int = 1):
        self.now = start
        self.step = step

    def __call__(self) -> int:
        self.now += self.step
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def id_factory():
    counter = itertools.count(1)
    return lambda: f"id{next(counter):04d}"


@pytest.fixture
def backend():
    return FakeBackend()
