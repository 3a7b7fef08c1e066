"""Client combining the lock manager and value cache over one store."""

import os
from collections.abc import Awaitable, Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Any

from leaselock.cache import DEFAULT_VALUE_TTL, ValueCache
from leaselock.dynamodb import DynamoDBStore
from leaselock.lease import Lease
from leaselock.manager import DEFAULT_LEASE_TTL, LockManager
from leaselock.record import LeaseRecord
from leaselock.store import Store
from leaselock.types import Clock, Sleeper, T

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class ClientSettings:
    """Configuration for a Client."""

    namespace: str
    table_name: str | None = None
    worker_id: str | None = None
    lock_default_ttl: int = DEFAULT_LEASE_TTL
    value_default_ttl: int = DEFAULT_VALUE_TTL
    consistent_reads: bool = True

    @classmethod
    def from_env(cls, prefix: str = "LEASELOCK_") -> "ClientSettings":
        """
        Read settings from ``<prefix>NAMESPACE``, ``<prefix>TABLE_NAME`` and so on.

        Raises:
            ValueError: If the namespace is not set or a TTL is not an integer
        """
        env = os.environ
        namespace = env.get(f"{prefix}NAMESPACE")
        if not namespace:
            raise ValueError(f"{prefix}NAMESPACE must be set")

        def _int(name: str, default: int) -> int:
            raw = env.get(f"{prefix}{name}")
            if raw is None or raw == "":
                return default
            try:
                return int(raw)
            except ValueError as exc:
                raise ValueError(f"{prefix}{name} must be an integer, got {raw!r}") from exc

        consistent = env.get(f"{prefix}CONSISTENT_READS")
        return cls(
            namespace=namespace,
            table_name=env.get(f"{prefix}TABLE_NAME") or None,
            worker_id=env.get(f"{prefix}WORKER_ID") or None,
            lock_default_ttl=_int("LOCK_DEFAULT_TTL", DEFAULT_LEASE_TTL),
            value_default_ttl=_int("VALUE_DEFAULT_TTL", DEFAULT_VALUE_TTL),
            consistent_reads=True if consistent is None else consistent.strip().lower() in _TRUE_VALUES,
        )


class Client:
    """
    Locks and cached values for one namespace of a shared table.

    Build one per process (or per worker) and pass it to whatever needs it.
    """

    def __init__(
        self,
        store: Store,
        *,
        namespace: str,
        worker_id: str | None = None,
        lock_default_ttl: int = DEFAULT_LEASE_TTL,
        value_default_ttl: int = DEFAULT_VALUE_TTL,
        consistent_reads: bool = True,
        clock: Clock | None = None,
        sleep: Sleeper | None = None,
    ) -> None:
        self.locks = LockManager(
            store,
            namespace=namespace,
            worker_id=worker_id,
            default_ttl=lock_default_ttl,
            consistent_reads=consistent_reads,
            clock=clock,
            sleep=sleep,
        )
        self.values = ValueCache(
            store,
            namespace=namespace,
            default_ttl=value_default_ttl,
            consistent_reads=consistent_reads,
            clock=clock,
        )

    @classmethod
    def from_settings(
        cls, settings: ClientSettings, store: Store | None = None, **kwargs: Any
    ) -> "Client":
        """
        Build a client from settings; ``kwargs`` may supply ``clock`` and ``sleep``.

        Without an explicit store, a DynamoDBStore is opened on ``settings.table_name``.
        """
        if store is None:
            if not settings.table_name:
                raise ValueError("A table name is required when no store is given")
            store = DynamoDBStore(settings.table_name)
        return cls(
            store,
            namespace=settings.namespace,
            worker_id=settings.worker_id,
            lock_default_ttl=settings.lock_default_ttl,
            value_default_ttl=settings.value_default_ttl,
            consistent_reads=settings.consistent_reads,
            **kwargs,
        )

    @property
    def namespace(self) -> str:
        return self.locks.namespace

    @property
    def worker_id(self) -> str:
        return self.locks.worker_id

    async def lock(self, key: str, ttl: int | None = None) -> Lease:
        return await self.locks.acquire(key, ttl)

    async def lock_with_retry(
        self,
        key: str,
        ttl: int | None = None,
        *,
        max_attempts: int | None = None,
        sleep_interval: float = 1.0,
    ) -> Lease:
        return await self.locks.acquire_with_retry(
            key, ttl, max_attempts=max_attempts, sleep_interval=sleep_interval
        )

    async def with_lock(
        self,
        key: str,
        body: Callable[[Lease], Awaitable[T]],
        ttl: int | None = None,
        *,
        max_attempts: int | None = 1,
        sleep_interval: float = 1.0,
    ) -> T:
        return await self.locks.with_lease(
            key, body, ttl, max_attempts=max_attempts, sleep_interval=sleep_interval
        )

    def locked(
        self,
        key: str,
        ttl: int | None = None,
        *,
        max_attempts: int | None = 1,
        sleep_interval: float = 1.0,
    ) -> AbstractAsyncContextManager[Lease]:
        return self.locks.lease(key, ttl, max_attempts=max_attempts, sleep_interval=sleep_interval)

    async def extend(self, lease: Lease, ttl: int | None = None) -> None:
        await self.locks.extend(lease, ttl)

    async def release(self, lease: Lease) -> bool:
        return await self.locks.release(lease)

    async def inspect(self, key: str) -> LeaseRecord | None:
        return await self.locks.inspect(key)

    async def store(self, key: str, value: Any, ttl: int | None = None) -> None:
        await self.values.store(key, value, ttl)

    async def fetch(self, key: str, default: Any = None, *, ignore_ttl: bool = False) -> Any:
        return await self.values.fetch(key, default, ignore_ttl=ignore_ttl)
