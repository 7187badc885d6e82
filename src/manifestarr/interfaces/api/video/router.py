"""Video API endpoints (liveness banner, manifest resolution)."""

from __future__ import annotations

from typing import cast

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from manifestarr.domain.exceptions import ClientInputError, ManifestNotFoundError
from manifestarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["video"])

BANNER = "Video proxy server is up! Use the endpoint /api/video?id=YOUR_ID"
NOT_FOUND_MESSAGE = "Could not find the streaming link (.m3u8)."


@router.get("/", response_class=PlainTextResponse)
async def root() -> PlainTextResponse:
    """Liveness banner."""
    return PlainTextResponse(BANNER)


@router.get("/api/video")
async def get_video(
    request: Request,
    id: str | None = Query(default=None, description="Embed identifier."),  # noqa: A002
) -> JSONResponse:
    """Resolve an identifier to a manifest URL.

    200 ``{success, url, source}`` | 400 missing id | 404 not resolvable.

    An empty or whitespace-only ``id`` counts as missing and gets the 400
    without launching a browser.
    """
    state = cast(AppState, request.app.state)

    try:
        result = await state.resolve_video_uc.execute(id)
    except ClientInputError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    except ManifestNotFoundError as e:
        log.info("video_not_found", identifier=e.identifier, reason=type(e).__name__)
        return JSONResponse(status_code=404, content={"error": NOT_FOUND_MESSAGE})

    return JSONResponse(
        content={"success": True, "url": result.url, "source": result.source}
    )
