"""leaselock - Distributed lease locks and a TTL value cache over a conditional key-value store."""

from leaselock.cache import ValueCache
from leaselock.client import Client, ClientSettings
from leaselock.dynamodb import DynamoDBStore
from leaselock.errors import (
    ConditionFailedError,
    LeaseLockError,
    LockAcquisitionError,
    LockExtendError,
)
from leaselock.lease import Lease
from leaselock.manager import LockManager
from leaselock.recipe import Recipe, Step
from leaselock.record import LeaseRecord, ValueRecord
from leaselock.store import Absent, AllOf, AnyOf, AtMost, Condition, Equals, MemoryStore, Store

__version__ = "0.1.0"

__all__ = [
    "Client",
    "ClientSettings",
    "LockManager",
    "ValueCache",
    "Lease",
    "LeaseRecord",
    "ValueRecord",
    "Recipe",
    "Step",
    "Store",
    "MemoryStore",
    "DynamoDBStore",
    "Condition",
    "Absent",
    "Equals",
    "AtMost",
    "AnyOf",
    "AllOf",
    "LeaseLockError",
    "ConditionFailedError",
    "LockAcquisitionError",
    "LockExtendError",
]
