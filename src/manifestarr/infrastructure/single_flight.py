"""Single-flight registry: concurrent callers for one key share one task.

The first caller for a key starts the work; callers arriving while it
is still running await the same task and receive the same result or
exception. The key is released as soon as the task finishes, so the
next call after completion starts fresh work.
"""

from __future__ import annotations

import asyncio
import functools
from typing import Awaitable, Callable, Generic, TypeVar

import structlog

log = structlog.get_logger(__name__)

T = TypeVar("T")


class SingleFlight(Generic[T]):
    """Deduplicate in-flight async calls per key."""

    def __init__(self) -> None:
        self._inflight: dict[str, asyncio.Task[T]] = {}

    @property
    def inflight_keys(self) -> list[str]:
        return list(self._inflight)

    async def do(self, key: str, fn: Callable[[], Awaitable[T]]) -> T:
        task = self._inflight.get(key)
        if task is not None:
            log.debug("single_flight_joined", key=key)
        else:
            task = asyncio.ensure_future(fn())
            self._inflight[key] = task
            task.add_done_callback(functools.partial(self._release, key))

        # A cancelled waiter must not cancel the shared task.
        return await asyncio.shield(task)

    def _release(self, key: str, task: asyncio.Task[T]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if not task.cancelled() and task.exception() is not None:
            log.debug("single_flight_failed", key=key)
