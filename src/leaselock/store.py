"""Store adapter interface, write conditions and the in-memory store."""

import abc
import asyncio
import copy
from dataclasses import dataclass
from typing import Any

from leaselock.errors import ConditionFailedError
from leaselock.types import Item


class Condition(abc.ABC):
    """A predicate over the current record (or its absence) at a physical key."""

    @abc.abstractmethod
    def evaluate(self, item: Item | None) -> bool:
        """Return True if the condition holds for ``item`` (None = absent)."""

    def __or__(self, other: "Condition") -> "AnyOf":
        return AnyOf(self, other)

    def __and__(self, other: "Condition") -> "AllOf":
        return AllOf(self, other)


@dataclass(frozen=True)
class Absent(Condition):
    """Holds when no record exists at the key."""

    def evaluate(self, item: Item | None) -> bool:
        return item is None


@dataclass(frozen=True)
class Equals(Condition):
    """Holds when the record exists and ``field == value``."""

    field: str
    value: Any

    def evaluate(self, item: Item | None) -> bool:
        return item is not None and self.field in item and item[self.field] == self.value


@dataclass(frozen=True)
class AtMost(Condition):
    """Holds when the record exists and ``field <= value``."""

    field: str
    value: Any

    def evaluate(self, item: Item | None) -> bool:
        return item is not None and self.field in item and item[self.field] <= self.value


class AnyOf(Condition):
    """Disjunction of conditions."""

    def __init__(self, *conditions: Condition) -> None:
        if not conditions:
            raise ValueError("AnyOf requires at least one condition")
        self.conditions = conditions

    def evaluate(self, item: Item | None) -> bool:
        return any(condition.evaluate(item) for condition in self.conditions)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, AnyOf) and self.conditions == other.conditions

    def __hash__(self) -> int:
        return hash(("any", self.conditions))

    def __repr__(self) -> str:
        return f"AnyOf{self.conditions!r}"


class AllOf(Condition):
    """Conjunction of conditions."""

    def __init__(self, *conditions: Condition) -> None:
        if not conditions:
            raise ValueError("AllOf requires at least one condition")
        self.conditions = conditions

    def evaluate(self, item: Item | None) -> bool:
        return all(condition.evaluate(item) for condition in self.conditions)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, AllOf) and self.conditions == other.conditions

    def __hash__(self) -> int:
        return hash(("all", self.conditions))

    def __repr__(self) -> str:
        return f"AllOf{self.conditions!r}"


class Store(abc.ABC):
    """
    Narrow interface to a conditionally-writable key-value table.

    Implementations translate each call into a single primitive of the
    backing store. They do not retry. A conditional call either applies or
    raises ConditionFailedError; any other failure propagates unchanged.
    """

    @abc.abstractmethod
    async def read(self, key: str, *, consistent: bool = True) -> Item | None:
        """Return the record stored at ``key``, or None if there is none."""

    @abc.abstractmethod
    async def put(self, key: str, fields: Item) -> None:
        """Unconditionally replace the record at ``key`` with ``fields``."""

    @abc.abstractmethod
    async def conditional_upsert(self, key: str, fields: Item, condition: Condition) -> None:
        """
        Set ``fields`` on the record at ``key`` if ``condition`` holds.

        Creates the record when it is absent. Must be atomic with respect to
        concurrent callers on the same key.

        Raises:
            ConditionFailedError: If the condition does not hold
        """

    @abc.abstractmethod
    async def conditional_delete(self, key: str, condition: Condition) -> None:
        """
        Delete the record at ``key`` if ``condition`` holds.

        Raises:
            ConditionFailedError: If the condition does not hold
        """


class MemoryStore(Store):
    """
    In-process store backed by a dict.

    All operations are serialized by an asyncio lock, which gives the same
    per-key atomicity a real conditional-write backend provides. Records are
    deep-copied in and out.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._items: dict[str, Item] = {}

    async def read(self, key: str, *, consistent: bool = True) -> Item | None:
        async with self._lock:
            item = self._items.get(key)
            return copy.deepcopy(item) if item is not None else None

    async def put(self, key: str, fields: Item) -> None:
        async with self._lock:
            self._items[key] = copy.deepcopy(fields)

    async def conditional_upsert(self, key: str, fields: Item, condition: Condition) -> None:
        async with self._lock:
            current = self._items.get(key)
            if not condition.evaluate(current):
                raise ConditionFailedError(key)
            updated = dict(current) if current is not None else {}
            updated.update(copy.deepcopy(fields))
            self._items[key] = updated

    async def conditional_delete(self, key: str, condition: Condition) -> None:
        async with self._lock:
            if not condition.evaluate(self._items.get(key)):
                raise ConditionFailedError(key)
            self._items.pop(key, None)

    async def keys(self) -> set[str]:
        """Return every physical key currently stored."""
        async with self._lock:
            return set(self._items.keys())

    async def clear(self) -> None:
        """Remove every record."""
        async with self._lock:
            self._items.clear()
