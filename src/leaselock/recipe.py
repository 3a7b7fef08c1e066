"""Named sequences of steps run under a single lease."""

import inspect
import logging
import uuid
from collections.abc import Callable
from typing import Any, NamedTuple

from leaselock.lease import Lease
from leaselock.manager import LockManager

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Any]


class Step(NamedTuple):
    name: str
    handler: Handler


class Recipe:
    """
    An ordered list of steps that run while holding one lock.

    A unique recipe locks on its name, so only one run of it can be in
    progress across all workers. A non-unique recipe locks on a fresh key per
    run and only guards against the run's own lease being lost.
    """

    def __init__(self, name: str, *, unique: bool = False) -> None:
        self.name = name
        self.unique = unique
        self._steps: list[Step] = []

    @property
    def steps(self) -> list[Step]:
        return list(self._steps)

    def step(self, name: str, handler: Handler | None = None) -> Any:
        """
        Register a step. Without ``handler``, returns a decorator.

        Handlers are called with the run's context and may be coroutines.
        """
        if handler is not None:
            self._steps.append(Step(name, handler))
            return handler

        def decorator(func: Handler) -> Handler:
            self._steps.append(Step(name, func))
            return func

        return decorator

    def lock_key(self) -> str:
        if self.unique:
            return self.name
        return f"{self.name}:{uuid.uuid4()}"

    async def run(
        self,
        manager: LockManager,
        context: Any = None,
        *,
        ttl: int | None = None,
        max_attempts: int | None = 1,
        sleep_interval: float = 1.0,
    ) -> dict[str, Any]:
        """
        Run every step in order while holding the recipe's lock.

        The lease is extended before each step after the first, so ``ttl``
        only needs to cover the longest single step.

        Returns:
            Mapping of step name to the value its handler returned

        Raises:
            LockAcquisitionError: If the lock could not be acquired
            LockExtendError: If the lease was lost between steps
        """

        async def _body(lease: Lease) -> dict[str, Any]:
            results: dict[str, Any] = {}
            for index, step in enumerate(self._steps):
                if index > 0:
                    await manager.extend(lease, ttl)
                logger.debug("Recipe %r running step %r", self.name, step.name)
                result = step.handler(context)
                if inspect.isawaitable(result):
                    result = await result
                results[step.name] = result
            return results

        return await manager.with_lease(
            self.lock_key(), _body, ttl, max_attempts=max_attempts, sleep_interval=sleep_interval
        )
