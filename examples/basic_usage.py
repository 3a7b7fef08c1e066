"""Basic usage example for leaselock."""

import asyncio

from leaselock import Client, LockAcquisitionError, LockExtendError, MemoryStore


async def main() -> None:
    """Demonstrate acquiring, contending for and releasing a lock."""
    store = MemoryStore()
    alice = Client(store, namespace="demo", worker_id="alice", lock_default_ttl=2)
    bob = Client(store, namespace="demo", worker_id="bob")

    print("=== Basic Lock Example ===\n")

    lease = await alice.lock("report")
    print(f"alice holds 'report' with token {lease.token[:8]}")

    try:
        await bob.lock("report")
    except LockAcquisitionError as e:
        print(f"bob: {e}")

    # alice stops extending; bob waits for the lease to expire
    print("bob waiting for the lease to expire...")
    bob_lease = await bob.lock_with_retry("report", sleep_interval=0.5)
    print(f"bob holds 'report' with token {bob_lease.token[:8]}")

    try:
        await lease.extend()
    except LockExtendError as e:
        print(f"alice: {e}")
    print(f"alice release returned {await lease.release()}")
    print(f"bob release returned {await bob_lease.release()}\n")

    print("=== Scoped Lock ===\n")
    async with bob.locked("report") as scoped:
        print(f"bob working under {scoped.token[:8]}")
    print(f"'report' after block: {await bob.inspect('report')}\n")

    print("=== Value Cache ===\n")
    await alice.store("last-report", {"rows": 120}, ttl=1)
    print(f"fetch: {await alice.fetch('last-report')}")
    await asyncio.sleep(2)
    print(f"fetch after ttl: {await alice.fetch('last-report', 'expired')}")
    print(f"fetch ignoring ttl: {await alice.fetch('last-report', ignore_ttl=True)}")


if __name__ == "__main__":
    asyncio.run(main())
