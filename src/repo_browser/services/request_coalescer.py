"""Request coalescing — share one in-flight fetch among identical callers.

The client and cache never de-duplicate on their own: two identical calls
made before the first response arrives both miss the cache and both hit the
network.  This layer sits above the client and lets concurrent callers with
the same key await the same task.  The key is forgotten as soon as the task
settles, so a later call always starts a fresh fetch (which the cache will
usually answer).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Hashable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RequestCoalescer:
    """Map of key -> in-flight task.

    A caller that is cancelled while waiting does not cancel the shared
    task; the fetch still completes and still populates the cache.
    """

    def __init__(self) -> None:
        self._tasks: dict[Hashable, asyncio.Task[Any]] = {}

    async def run(self, key: Hashable, factory: Callable[[], Awaitable[T]]) -> T:
        """Await the task registered under *key*, starting it if needed."""
        task = self._tasks.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._tasks[key] = task
            task.add_done_callback(lambda done, key=key: self._forget(key, done))
        else:
            logger.debug("coalesced %s", key)
        return await asyncio.shield(task)

    def _forget(self, key: Hashable, task: asyncio.Task[Any]) -> None:
        if self._tasks.get(key) is task:
            del self._tasks[key]
        # Mark the exception as retrieved when every waiter has gone away.
        if not task.cancelled():
            task.exception()

    @property
    def pending(self) -> int:
        return len(self._tasks)
