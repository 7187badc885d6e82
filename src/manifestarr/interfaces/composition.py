"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import structlog
from fastapi import FastAPI

from manifestarr.application.use_cases.resolve_video import ResolveVideoUseCase
from manifestarr.infrastructure.browser.playwright_driver import (
    PlaywrightBrowserDriver,
)
from manifestarr.infrastructure.metrics import MetricsCollector
from manifestarr.infrastructure.persistence.memory_resolution_cache import (
    InMemoryResolutionCache,
)
from manifestarr.infrastructure.resolvers.link_resolver import BrowserLinkResolver
from manifestarr.infrastructure.single_flight import SingleFlight
from manifestarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: Initialize and cleanup all resources (DI Composition Root).

    Order matters:
        1. Metrics (recorded into by the use case)
        2. Resolution cache (empty at every start)
        3. Browser driver
        4. Link resolver (uses driver)
        5. Resolve-video use case (uses cache + resolver)
    """
    state = cast(AppState, app.state)
    config = state.config

    # 1) Metrics collector
    state.metrics = MetricsCollector()

    # 2) Resolution cache
    state.resolution_cache = InMemoryResolutionCache(
        ttl_seconds=config.cache.ttl_seconds,
    )
    log.info("resolution_cache_initialized", ttl_seconds=config.cache.ttl_seconds)

    # 3) Browser driver (sessions are launched per resolution, not here)
    override = getattr(state, "browser_driver_override", None)
    if override is not None:
        state.browser_driver = override
        log.info("browser_driver_injected", driver=type(override).__name__)
    else:
        state.browser_driver = PlaywrightBrowserDriver(
            headless=config.browser.headless,
            launch_args=config.browser.launch_args,
            user_agent=config.browser.user_agent,
            stealth=config.browser.stealth,
        )
        log.info(
            "browser_driver_configured",
            headless=config.browser.headless,
            stealth=config.browser.stealth,
        )

    # 4) Link resolver
    state.link_resolver = BrowserLinkResolver(
        state.browser_driver,
        embed_domain=config.resolver.embed_domain,
        timeout_seconds=config.resolver.timeout_seconds,
        user_agent=config.browser.user_agent,
        manifest_suffix=config.resolver.manifest_suffix,
        wait_until=config.browser.wait_until,
        navigation_timeout_ms=config.browser.navigation_timeout_ms,
    )
    log.info(
        "link_resolver_initialized",
        embed_domain=config.resolver.embed_domain,
        timeout_seconds=config.resolver.timeout_seconds,
    )

    # 5) Use case
    state.single_flight = SingleFlight() if config.resolver.single_flight else None
    state.resolve_video_uc = ResolveVideoUseCase(
        cache=state.resolution_cache,
        resolver=state.link_resolver,
        metrics=state.metrics,
        single_flight=state.single_flight,
    )

    state.graceful_shutdown.mark_ready()
    log.info("app_startup_complete", single_flight=config.resolver.single_flight)

    try:
        yield
    finally:
        # In-flight resolutions hold browser sessions; let them finish
        # so their finally blocks close Chromium.
        await state.graceful_shutdown.wait_for_drain(
            timeout=config.shutdown_drain_seconds
        )
        log.info("app_shutdown_complete")
