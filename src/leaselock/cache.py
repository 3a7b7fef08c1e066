"""TTL-tagged value cache stored alongside the locks."""

import logging
from typing import Any

from leaselock.manager import wall_clock
from leaselock.record import ValueRecord, value_key
from leaselock.store import Store
from leaselock.types import Clock

logger = logging.getLogger(__name__)

DEFAULT_VALUE_TTL = 60


class ValueCache:
    """
    Key/value storage with client-side expiry.

    Expired records are never deleted here; they are treated as absent when
    read unless the caller asks to ignore the TTL.
    """

    def __init__(
        self,
        store: Store,
        *,
        namespace: str,
        default_ttl: int = DEFAULT_VALUE_TTL,
        consistent_reads: bool = True,
        clock: Clock | None = None,
    ) -> None:
        self._store = store
        self.namespace = namespace
        self.default_ttl = default_ttl
        self.consistent_reads = consistent_reads
        self._clock = clock or wall_clock

    async def store(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store ``value`` under ``key`` for ``ttl`` seconds (overrides default_ttl)."""
        expiry = self._clock() + (ttl if ttl is not None else self.default_ttl)
        await self._store.put(value_key(self.namespace, key), ValueRecord(value, expiry).to_item())
        logger.debug("Stored value %r until %d", key, expiry)

    async def fetch(self, key: str, default: Any = None, *, ignore_ttl: bool = False) -> Any:
        """
        Fetch the value stored under ``key``.

        Args:
            key: Logical key
            default: Returned when the value is absent or expired
            ignore_ttl: Return the stored value even if it has expired

        Returns:
            The stored value, or ``default``
        """
        item = await self._store.read(value_key(self.namespace, key), consistent=self.consistent_reads)
        if item is None:
            return default

        record = ValueRecord.from_item(item)
        if not ignore_ttl and record.is_expired(self._clock()):
            return default
        return record.value
