"""FastAPI application factory (create_app)."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.responses import Response

from manifestarr.domain.ports.browser import BrowserDriverPort
from manifestarr.infrastructure.config import AppConfig
from manifestarr.infrastructure.graceful_shutdown import GracefulShutdown
from manifestarr.interfaces.app_state import AppState
from manifestarr.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


def create_app(
    config: AppConfig,
    *,
    browser_driver: BrowserDriverPort | None = None,
) -> FastAPI:
    """Create FastAPI app: configuration ONLY, NO resource initialization.

    Resources (cache, browser driver, resolver) are created in lifespan().
    *browser_driver* replaces the Playwright driver (tests, embedding).
    """
    app = FastAPI(
        title="Manifestarr",
        description="Resolves embed identifiers to direct HLS manifest URLs",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config
    app.state.browser_driver_override = browser_driver
    app.state.graceful_shutdown = GracefulShutdown()

    from manifestarr.interfaces.api.stats import router as stats_router
    from manifestarr.interfaces.api.video import router as video_router

    app.include_router(video_router)
    app.include_router(stats_router, prefix="/api")

    @app.get("/healthz")
    async def healthz() -> dict[str, str | int]:
        """Liveness check. Returns 200 as long as the process is running."""
        cache = getattr(app.state, "resolution_cache", None)
        return {
            "status": "ok",
            "cached_entries": len(cache) if cache is not None else 0,
        }

    @app.get("/readyz")
    async def readyz() -> Response:
        """Readiness check: 200 after startup complete, 503 otherwise."""
        gs: GracefulShutdown = app.state.graceful_shutdown
        if gs.is_ready:
            return JSONResponse({"status": "ready"}, status_code=200)
        return JSONResponse({"status": "not_ready"}, status_code=503)

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        gs: GracefulShutdown = app.state.graceful_shutdown
        start = time.perf_counter()
        status_code = 500
        try:
            with gs.track():
                response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            log.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                query=str(request.url.query),
                status_code=status_code,
                duration_ms=round(duration_ms, 2),
                client_host=(request.client.host if request.client else None),
            )

    return app
