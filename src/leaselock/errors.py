"""Exception classes for leaselock."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from leaselock.lease import Lease


class LeaseLockError(Exception):
    """Base exception for all leaselock errors."""


class ConditionFailedError(LeaseLockError):
    """Raised by a store when the condition of a conditional write does not hold."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Condition failed for key: {key}")
        self.key = key


class LockAcquisitionError(LeaseLockError):
    """Raised when a lease is held, unexpired, by another worker."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Unable to acquire lock with key: {key}")
        self.key = key


class LockExtendError(LeaseLockError):
    """Raised when a lease can no longer be extended because it was lost."""

    def __init__(self, lease: Lease) -> None:
        super().__init__(f"Unable to extend lock key: {lease.key}")
        self.lease = lease
