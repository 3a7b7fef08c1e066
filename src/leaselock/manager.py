"""Lease-based distributed lock protocol."""

import asyncio
import logging
import time
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from leaselock.errors import ConditionFailedError, LockAcquisitionError, LockExtendError
from leaselock.lease import Lease
from leaselock.record import EXPIRY, OWNER, TOKEN, LeaseRecord, lock_key
from leaselock.store import Absent, AtMost, Equals, Store
from leaselock.types import Clock, Sleeper, T

logger = logging.getLogger(__name__)

DEFAULT_LEASE_TTL = 60


def wall_clock() -> int:
    """Current wall-clock time in whole epoch seconds."""
    return int(time.time())


class LockManager:
    """
    Acquires, extends and releases leases on named locks.

    All coordination state lives in the store and is changed only through
    conditional writes, so any number of managers (in any number of
    processes) can share one table. The manager itself only holds fixed
    configuration and is safe to share between tasks; tasks sharing a
    manager share its worker id, and so can re-acquire each other's locks.
    """

    def __init__(
        self,
        store: Store,
        *,
        namespace: str,
        worker_id: str | None = None,
        default_ttl: int = DEFAULT_LEASE_TTL,
        consistent_reads: bool = True,
        clock: Clock | None = None,
        sleep: Sleeper | None = None,
    ) -> None:
        """
        Initialize the manager.

        Args:
            store: Backing store adapter
            namespace: Prefix isolating this manager's keys from others in the table
            worker_id: Stable owner id for this manager (random if omitted)
            default_ttl: Lease duration in seconds when none is given per call
            consistent_reads: Request strongly-consistent reads from the store
            clock: Returns epoch seconds (defaults to wall-clock time)
            sleep: Awaitable sleep used between retries (defaults to asyncio.sleep)
        """
        self._store = store
        self.namespace = namespace
        self.worker_id = worker_id or str(uuid.uuid4())
        self.default_ttl = default_ttl
        self.consistent_reads = consistent_reads
        self._clock = clock or wall_clock
        self._sleep = sleep or asyncio.sleep

    def _expiry(self, now: int, ttl: int | None) -> int:
        return now + (ttl if ttl is not None else self.default_ttl)

    async def acquire(self, key: str, ttl: int | None = None) -> Lease:
        """
        Acquire the lock on ``key`` in a single attempt.

        Succeeds when no lease exists, when this worker already holds it, or
        when the current lease has expired. Every success issues a fresh token.

        Args:
            key: Logical lock name
            ttl: Lease duration in seconds (overrides default_ttl)

        Returns:
            The new lease

        Raises:
            LockAcquisitionError: If another worker holds an unexpired lease
        """
        now = self._clock()
        token = str(uuid.uuid4())
        record = LeaseRecord(owner=self.worker_id, token=token, expiry=self._expiry(now, ttl))
        condition = Absent() | Equals(OWNER, self.worker_id) | AtMost(EXPIRY, now)

        try:
            await self._store.conditional_upsert(
                lock_key(self.namespace, key), record.to_item(), condition
            )
        except ConditionFailedError as exc:
            logger.debug("Lock %r is held by another worker", key)
            raise LockAcquisitionError(key) from exc

        logger.debug("Acquired lock %r (token=%s, expiry=%d)", key, token, record.expiry)
        return Lease(key=key, token=token, manager=self)

    async def acquire_with_retry(
        self,
        key: str,
        ttl: int | None = None,
        *,
        max_attempts: int | None = None,
        sleep_interval: float = 1.0,
    ) -> Lease:
        """
        Acquire the lock on ``key``, polling until it is free.

        Args:
            key: Logical lock name
            ttl: Lease duration in seconds (overrides default_ttl)
            max_attempts: Number of attempts (None = wait forever)
            sleep_interval: Seconds to sleep between attempts

        Returns:
            The new lease

        Raises:
            LockAcquisitionError: From the last attempt, once attempts are exhausted
            ValueError: If max_attempts is less than 1
        """
        if max_attempts is not None and max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

        attempt = 0
        while True:
            attempt += 1
            try:
                return await self.acquire(key, ttl)
            except LockAcquisitionError:
                if max_attempts is not None and attempt >= max_attempts:
                    raise
            logger.debug(
                "Lock %r busy (attempt %d), retrying in %.2fs", key, attempt, sleep_interval
            )
            await self._sleep(sleep_interval)

    async def extend(self, lease: Lease, ttl: int | None = None) -> None:
        """
        Push the expiry of ``lease`` to ``ttl`` seconds from now.

        Must be called more often than the lease duration to keep the lease.

        Raises:
            LockExtendError: If the lease was taken over or no longer exists;
                the caller must stop work guarded by it
        """
        now = self._clock()
        record = LeaseRecord(owner=self.worker_id, token=lease.token, expiry=self._expiry(now, ttl))
        condition = Equals(OWNER, self.worker_id) & Equals(TOKEN, lease.token)

        try:
            await self._store.conditional_upsert(
                lock_key(self.namespace, lease.key), record.to_item(), condition
            )
        except ConditionFailedError as exc:
            logger.debug("Lease on %r was lost (token=%s)", lease.key, lease.token)
            raise LockExtendError(lease) from exc

        logger.debug("Extended lock %r until %d", lease.key, record.expiry)

    async def release(self, lease: Lease) -> bool:
        """
        Release ``lease``.

        Returns:
            True if the lease was deleted, False if it had already been taken
            over or removed (the current holder's lease is left intact)
        """
        try:
            await self._store.conditional_delete(
                lock_key(self.namespace, lease.key), Equals(TOKEN, lease.token)
            )
        except ConditionFailedError:
            logger.debug("Lease on %r no longer ours, nothing released", lease.key)
            return False

        logger.debug("Released lock %r", lease.key)
        return True

    async def with_lease(
        self,
        key: str,
        body: Callable[[Lease], Awaitable[T]],
        ttl: int | None = None,
        *,
        max_attempts: int | None = 1,
        sleep_interval: float = 1.0,
    ) -> T:
        """
        Run ``body`` while holding the lock on ``key``.

        The lease is released on every exit path. If ``body`` raises, a failure
        while releasing is logged and the body's exception propagates.

        Returns:
            Whatever ``body`` returns

        Raises:
            LockAcquisitionError: If the lock could not be acquired
        """
        async with self.lease(
            key, ttl, max_attempts=max_attempts, sleep_interval=sleep_interval
        ) as lease:
            return await body(lease)

    @asynccontextmanager
    async def lease(
        self,
        key: str,
        ttl: int | None = None,
        *,
        max_attempts: int | None = 1,
        sleep_interval: float = 1.0,
    ) -> AsyncIterator[Lease]:
        """Context manager form of with_lease: ``async with manager.lease(key) as lease``."""
        lease = await self.acquire_with_retry(
            key, ttl, max_attempts=max_attempts, sleep_interval=sleep_interval
        )
        try:
            yield lease
        except BaseException:
            try:
                await self.release(lease)
            except Exception:
                logger.warning("Failed to release lock %r during cleanup", key, exc_info=True)
            raise
        else:
            await self.release(lease)

    async def inspect(self, key: str) -> LeaseRecord | None:
        """Return the stored lease for ``key`` (possibly expired), or None."""
        item = await self._store.read(lock_key(self.namespace, key), consistent=self.consistent_reads)
        return LeaseRecord.from_item(item) if item is not None else None
