import random

import pytest

from photoflow.engine.transitions import TransitionEngine
from photoflow.items.service import ItemService
from photoflow.storage.memory_store import ItemStore


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000.0


@pytest.fixture()
def store():
    return ItemStore()


@pytest.fixture()
def service(store):
    return ItemService(store, max_payload_bytes=1024, max_batch_bytes=4096)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def make_engine(service, clock):
    def _make(**kwargs):
        kwargs.setdefault("min_duration_ms", 3000)
        kwargs.setdefault("max_extra_ms", 5000)
        kwargs.setdefault("rng", random.Random(42))
        return TransitionEngine(service, clock=clock, **kwargs)

    return _make
