"""Use case: identifier -> manifest URL, cache first, browser on miss."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from typing import Protocol

import structlog

from manifestarr.domain.entities.resolution import ResolvedManifest
from manifestarr.domain.exceptions import (
    ClientInputError,
    ManifestNotFoundError,
    ResolutionTimeoutError,
)
from manifestarr.domain.ports.link_resolver import LinkResolverPort
from manifestarr.domain.ports.resolution_cache import ResolutionCachePort

log = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Protocols: define what this use case needs from its dependencies.
# Infrastructure components satisfy these via structural subtyping.
# ---------------------------------------------------------------------------


class _MetricsRecorder(Protocol):
    """Records cache and resolution metrics."""

    def record_cache_hit(self) -> None: ...

    def record_cache_miss(self) -> None: ...

    def record_rejected(self) -> None: ...

    def record_resolution(self, outcome: str, duration_ns: int) -> None: ...


class _SingleFlight(Protocol):
    """Shares one in-flight call between concurrent callers of a key."""

    async def do(self, key: str, fn: Callable[[], Awaitable[str]]) -> str: ...


class ResolveVideoUseCase:
    """Serve a fresh cached URL or run exactly one live resolution.

    Live failures are not retried here; the caller gets a
    ``ManifestNotFoundError`` and the cache is left untouched.
    """

    def __init__(
        self,
        *,
        cache: ResolutionCachePort,
        resolver: LinkResolverPort,
        metrics: _MetricsRecorder | None = None,
        single_flight: _SingleFlight | None = None,
    ) -> None:
        self._cache = cache
        self._resolver = resolver
        self._metrics = metrics
        self._single_flight = single_flight

    async def execute(self, identifier: str | None) -> ResolvedManifest:
        if identifier is None or not identifier.strip():
            if self._metrics is not None:
                self._metrics.record_rejected()
            raise ClientInputError('query parameter "id" is required')

        cached = await self._cache.lookup(identifier)
        if cached is not None:
            if self._metrics is not None:
                self._metrics.record_cache_hit()
            log.info("serving_cached", identifier=identifier)
            return ResolvedManifest(url=cached, source="cache")

        if self._metrics is not None:
            self._metrics.record_cache_miss()
        log.info("resolving_live", identifier=identifier)

        if self._single_flight is not None:
            url = await self._single_flight.do(
                identifier, lambda: self._resolve_and_store(identifier)
            )
        else:
            url = await self._resolve_and_store(identifier)
        return ResolvedManifest(url=url, source="live")

    async def _resolve_and_store(self, identifier: str) -> str:
        start_ns = time.perf_counter_ns()
        try:
            url = await self._resolver.resolve(identifier)
        except ResolutionTimeoutError:
            self._record("timeout", start_ns)
            raise
        except ManifestNotFoundError:
            self._record("driver_error", start_ns)
            raise

        self._record("found", start_ns)
        await self._cache.store(identifier, url)
        return url

    def _record(self, outcome: str, start_ns: int) -> None:
        if self._metrics is not None:
            self._metrics.record_resolution(outcome, time.perf_counter_ns() - start_ns)
