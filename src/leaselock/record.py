"""Physical key layout and the records stored under it."""

from dataclasses import dataclass
from typing import Any

from leaselock.types import Item

LOCK_KEY_FORMAT = "{namespace}/l/{key}"
VALUE_KEY_FORMAT = "{namespace}/v/{key}"

# Stored attribute names
OWNER = "w"
TOKEN = "lid"
EXPIRY = "e"
VALUE = "v"


def lock_key(namespace: str, key: str) -> str:
    """Return the physical key holding the lease for ``key``."""
    return LOCK_KEY_FORMAT.format(namespace=namespace, key=key)


def value_key(namespace: str, key: str) -> str:
    """Return the physical key holding the cached value for ``key``."""
    return VALUE_KEY_FORMAT.format(namespace=namespace, key=key)


@dataclass(frozen=True)
class LeaseRecord:
    """A lease as stored: who holds it, under which token, until when."""

    owner: str
    token: str
    expiry: int  # epoch seconds

    def is_valid(self, now: int) -> bool:
        """A lease is valid until its expiry; at or past it, anyone may take it over."""
        return self.expiry > now

    def to_item(self) -> Item:
        return {OWNER: self.owner, TOKEN: self.token, EXPIRY: self.expiry}

    @classmethod
    def from_item(cls, item: Item) -> "LeaseRecord":
        # Numeric attributes may come back from the backend as Decimal
        return cls(owner=str(item[OWNER]), token=str(item[TOKEN]), expiry=int(item[EXPIRY]))


@dataclass(frozen=True)
class ValueRecord:
    """A cached value and its expiry."""

    value: Any
    expiry: int  # epoch seconds

    def is_expired(self, now: int) -> bool:
        return self.expiry <= now

    def to_item(self) -> Item:
        return {VALUE: self.value, EXPIRY: self.expiry}

    @classmethod
    def from_item(cls, item: Item) -> "ValueRecord":
        return cls(value=item.get(VALUE), expiry=int(item[EXPIRY]))
