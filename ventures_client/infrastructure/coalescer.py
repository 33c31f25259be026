"""Request Coalescer: concurrent identical reads share one in-flight call.

Invariants:
    - At most one in-flight task per key
    - Every caller joined to a key receives the same result or the same exception
    - The key is released as soon as the task settles (success, failure, cancellation)
    - Settled results are never reused: this is deduplication, not a cache
    - Cancelling one waiting caller does not cancel the shared call
    - A shared call that fails after every waiter was cancelled is not reported
      as an unretrieved exception (shield marks it retrieved)

Design Decisions:
    - asyncio.shield around the shared task: callers can be cancelled independently
    - Release via done-callback registered before any waiter: the key is gone
      by the time the first waiter resumes
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


class RequestCoalescer:
    """Keyed single-flight for coroutine factories."""

    def __init__(self):
        self._inflight: dict[str, asyncio.Future] = {}

    async def coalesce(self, key: str, factory: Callable[[], Awaitable[Any]]) -> Any:
        task = self._inflight.get(key)
        if task is None or task.done():
            task = asyncio.ensure_future(factory())
            self._inflight[key] = task
            task.add_done_callback(lambda t, k=key: self._release(k, t))
        else:
            logger.debug("Joined in-flight request", extra={"request_key": key})
        return await asyncio.shield(task)

    def is_pending(self, key: str) -> bool:
        task = self._inflight.get(key)
        return task is not None and not task.done()

    @property
    def pending_keys(self) -> list[str]:
        return [k for k, t in self._inflight.items() if not t.done()]

    def _release(self, key: str, task: asyncio.Future) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
