"""Single-flight runner for reconciliation passes.

At most one pass runs at a time and at most one more is queued behind
it.  A trigger arriving while a pass is already queued joins that queued
pass instead of adding another, so a burst of ledger mutations costs at
most two passes, and the last one always starts after the latest
mutation.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SingleFlight(Generic[T]):
    """Serialize calls to *fn* with "one running + one queued" semantics.

    Parameters
    ----------
    fn:
        Zero-argument coroutine function performing one pass.  It should
        read its inputs when it starts, not when it is triggered.
    """

    def __init__(self, fn: Callable[[], Awaitable[T]]) -> None:
        self._fn = fn
        self._task: asyncio.Task[None] | None = None
        self._queued: asyncio.Future[T] | None = None
        self.runs = 0

    async def run(self) -> T:
        """Trigger a pass and wait for the pass that covers this trigger.

        Exceptions raised by *fn* propagate to every waiter of that pass.
        """
        return await asyncio.shield(self._trigger())

    def _trigger(self) -> asyncio.Future[T]:
        if self._queued is not None:
            return self._queued

        fut: asyncio.Future[T] = asyncio.get_running_loop().create_future()
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._drain(fut))
        else:
            self._queued = fut
        return fut

    async def _drain(self, fut: asyncio.Future[T] | None) -> None:
        try:
            while fut is not None:
                self.runs += 1
                try:
                    result = await self._fn()
                except asyncio.CancelledError:
                    fut.cancel()
                    raise
                except Exception as exc:
                    fut.set_exception(exc)
                else:
                    fut.set_result(result)
                fut, self._queued = self._queued, None
        finally:
            if self._queued is not None:
                self._queued.cancel()
                self._queued = None
            self._task = None
