"""Lease handle returned by a successful acquisition."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from leaselock.manager import LockManager


@dataclass(frozen=True)
class Lease:
    """
    Immutable proof of a single acquisition of a lock.

    The token is unique per acquisition, so a lease taken over by another
    worker (or re-acquired by this one) invalidates every older handle. The
    handle carries no expiry: renewal state lives only in the store.
    """

    key: str
    token: str  # UUID-based fencing token
    manager: LockManager = field(repr=False, compare=False)

    async def extend(self, ttl: int | None = None) -> None:
        """Push the expiry out by ``ttl`` seconds from now. See LockManager.extend."""
        await self.manager.extend(self, ttl)

    async def release(self) -> bool:
        """Give the lease back. See LockManager.release."""
        return await self.manager.release(self)
