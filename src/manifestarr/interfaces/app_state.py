"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.datastructures import State

from manifestarr.infrastructure.config import AppConfig
from manifestarr.infrastructure.graceful_shutdown import GracefulShutdown

if TYPE_CHECKING:
    from manifestarr.application.use_cases.resolve_video import ResolveVideoUseCase
    from manifestarr.domain.ports import BrowserDriverPort, LinkResolverPort
    from manifestarr.infrastructure.metrics import MetricsCollector
    from manifestarr.infrastructure.persistence.memory_resolution_cache import (
        InMemoryResolutionCache,
    )
    from manifestarr.infrastructure.single_flight import SingleFlight


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Optional pre-built driver (tests, embedding); lifespan builds
    # a Playwright driver when this is None.
    browser_driver_override: BrowserDriverPort | None

    # Infrastructure
    browser_driver: BrowserDriverPort
    resolution_cache: InMemoryResolutionCache
    single_flight: SingleFlight[str] | None

    # Domain Ports
    link_resolver: LinkResolverPort

    # Application Services
    resolve_video_uc: ResolveVideoUseCase

    # Metrics (zero-impact in-memory counters)
    metrics: MetricsCollector

    # Graceful shutdown (request tracking + drain)
    graceful_shutdown: GracefulShutdown
