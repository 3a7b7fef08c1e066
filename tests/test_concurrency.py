"""Tests for concurrent lock operations."""

import asyncio

import pytest

from leaselock import LockAcquisitionError, LockManager, MemoryStore


@pytest.mark.asyncio
async def test_concurrent_acquirers_single_winner(clock) -> None:
    """Test that only one of many racing workers acquires the lock."""
    store = MemoryStore()
    managers = [
        LockManager(store, namespace="t", worker_id=f"w{i}", clock=clock) for i in range(20)
    ]

    results = await asyncio.gather(
        *(manager.acquire("job") for manager in managers), return_exceptions=True
    )

    winners = [r for r in results if not isinstance(r, BaseException)]
    losers = [r for r in results if isinstance(r, LockAcquisitionError)]
    assert len(winners) == 1
    assert len(losers) == 19
    assert (await managers[0].inspect("job")).token == winners[0].token


@pytest.mark.asyncio
async def test_concurrent_takeover_of_expired_lease(clock) -> None:
    """Test that an expired lease is taken over by exactly one racer."""
    store = MemoryStore()
    old = LockManager(store, namespace="t", worker_id="old", clock=clock)
    await old.acquire("job", ttl=5)
    clock.advance(5)

    racers = [LockManager(store, namespace="t", worker_id=f"r{i}", clock=clock) for i in range(10)]
    results = await asyncio.gather(
        *(racer.acquire("job") for racer in racers), return_exceptions=True
    )

    assert sum(1 for r in results if not isinstance(r, BaseException)) == 1


@pytest.mark.asyncio
async def test_waiters_take_turns() -> None:
    """Test that polling waiters serialize their critical sections."""
    store = MemoryStore()
    active = 0
    max_active = 0
    completed = []

    async def worker(name: str) -> None:
        nonlocal active, max_active
        manager = LockManager(store, namespace="t", worker_id=name)

        async def body(lease) -> None:
            nonlocal active, max_active
            active += 1
            max_active = max(max_active, active)
            await asyncio.sleep(0.01)
            active -= 1
            completed.append(name)

        await manager.with_lease("job", body, max_attempts=None, sleep_interval=0.005)

    await asyncio.gather(*(worker(f"w{i}") for i in range(5)))

    assert max_active == 1
    assert sorted(completed) == [f"w{i}" for i in range(5)]


@pytest.mark.asyncio
async def test_concurrent_different_keys(clock) -> None:
    """Test that locks on different keys are acquired in parallel."""
    store = MemoryStore()
    manager = LockManager(store, namespace="t", worker_id="w", clock=clock)

    leases = await asyncio.gather(*(manager.acquire(f"key-{i}") for i in range(10)))

    assert {lease.key for lease in leases} == {f"key-{i}" for i in range(10)}
    assert len(await store.keys()) == 10
