"""Graceful shutdown: track in-flight requests and drain them on stop.

A resolve request can hold a browser session open for the full
resolution timeout, so the lifespan waits for active requests before
tearing down shared state.
"""

from __future__ import annotations

import asyncio
from contextlib import contextmanager
from typing import Iterator

import structlog

log = structlog.get_logger(__name__)


class GracefulShutdown:
    """Readiness flag plus an in-flight request counter.

    Usage::

        gs = GracefulShutdown()
        gs.mark_ready()

        with gs.track():
            response = await call_next(request)

        await gs.wait_for_drain(timeout=25.0)
    """

    def __init__(self) -> None:
        self._active = 0
        self._ready = False
        self._shutting_down = False
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def active_requests(self) -> int:
        return self._active

    @property
    def is_shutting_down(self) -> bool:
        return self._shutting_down

    @property
    def is_ready(self) -> bool:
        """True after startup and before shutdown begins."""
        return self._ready and not self._shutting_down

    def mark_ready(self) -> None:
        self._ready = True

    @contextmanager
    def track(self) -> Iterator[None]:
        """Count the enclosed block as one active request."""
        self._active += 1
        self._idle.clear()
        try:
            yield
        finally:
            self._active = max(0, self._active - 1)
            if self._active == 0:
                self._idle.set()

    async def wait_for_drain(self, *, timeout: float) -> bool:
        """Stop accepting readiness and wait up to *timeout* for idle.

        Returns True when all requests finished in time.
        """
        self._shutting_down = True
        if self._active == 0:
            return True
        log.info("graceful_shutdown_draining", active_requests=self._active)
        try:
            await asyncio.wait_for(self._idle.wait(), timeout=timeout)
        except TimeoutError:
            log.warning(
                "graceful_shutdown_timeout",
                remaining_requests=self._active,
                timeout=timeout,
            )
            return False
        log.info("graceful_shutdown_drained")
        return True
