"""Shared fixtures: a virtual clock and an in-memory store."""

import pytest

from leaselock import LockManager, MemoryStore, ValueCache


class FakeClock:
    """Virtual wall clock; sleeping advances it instead of blocking."""

    def __init__(self, start: int = 1_700_000_000) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += int(seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def make_manager(store: MemoryStore, clock: FakeClock):
    def _make(worker_id: str, **kwargs) -> LockManager:
        kwargs.setdefault("namespace", "test")
        return LockManager(store, worker_id=worker_id, clock=clock, sleep=clock.sleep, **kwargs)

    return _make


@pytest.fixture
def cache(store: MemoryStore, clock: FakeClock) -> ValueCache:
    return ValueCache(store, namespace="test", clock=clock)
