"""Type definitions for leaselock."""

from collections.abc import Awaitable, Callable
from typing import Any, TypeAlias, TypeVar

T = TypeVar("T")

# A stored record: attribute name -> value
Item: TypeAlias = dict[str, Any]

# Returns the current wall-clock time in whole epoch seconds
Clock: TypeAlias = Callable[[], int]

# Awaitable sleep used between acquisition attempts
Sleeper: TypeAlias = Callable[[float], Awaitable[None]]
