"""Example running a unique recipe from several workers."""

import asyncio
import logging

from leaselock import LockAcquisitionError, LockManager, MemoryStore, Recipe

recipe = Recipe("nightly-import", unique=True)


@recipe.step("download")
async def download(ctx: dict) -> int:
    await asyncio.sleep(0.2)
    return 3


@recipe.step("load")
def load(ctx: dict) -> str:
    return f"loaded by {ctx['worker']}"


async def worker(store: MemoryStore, name: str) -> None:
    manager = LockManager(store, namespace="jobs", worker_id=name, default_ttl=5)
    try:
        results = await recipe.run(manager, {"worker": name})
        print(f"[{name}] ✓ {results}")
    except LockAcquisitionError:
        print(f"[{name}] recipe already running elsewhere")


async def main() -> None:
    logging.basicConfig(level=logging.DEBUG, format="%(name)s %(levelname)s: %(message)s")
    store = MemoryStore()
    await asyncio.gather(*(worker(store, f"worker-{i}") for i in range(3)))


if __name__ == "__main__":
    asyncio.run(main())
