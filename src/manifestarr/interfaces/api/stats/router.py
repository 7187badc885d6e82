"""Debug endpoint for runtime metrics."""

from __future__ import annotations

from typing import cast

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from manifestarr.interfaces.app_state import AppState

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/metrics")
async def metrics(request: Request) -> JSONResponse:
    """Return in-memory runtime metrics.

    Includes cache hit/miss counters, live resolution outcomes, cache
    occupancy, single-flight state, and graceful-shutdown status.
    """
    state = cast(AppState, request.app.state)

    data = state.metrics.snapshot()
    data["resolution_cache"] = state.resolution_cache.snapshot()

    single_flight = getattr(state, "single_flight", None)
    data["single_flight"] = {
        "enabled": single_flight is not None,
        "inflight": len(single_flight.inflight_keys) if single_flight else 0,
    }

    gs = state.graceful_shutdown
    data["graceful_shutdown"] = {
        "active_requests": gs.active_requests,
        "is_shutting_down": gs.is_shutting_down,
    }

    return JSONResponse(content=data)
