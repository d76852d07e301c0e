"""Stream resolution endpoints."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal, cast

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from leecharr.domain.entities import ContentQuery, LeecharrError, MediaType
from leecharr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/streams", tags=["streams"])

ContentTypeParam = Literal["movie", "tv", "series"]


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _media_type(content_type: str) -> MediaType:
    return "movie" if content_type == "movie" else "series"


def _build_query(
    content_id: str, content_type: str, season: int | None, episode: int | None
) -> ContentQuery:
    media_type = _media_type(content_type)
    if media_type == "movie":
        return ContentQuery(content_id=content_id, media_type=media_type)
    return ContentQuery(
        content_id=content_id, media_type=media_type, season=season, episode=episode
    )


def _error(status_code: int, error: str, provider: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": error,
            "provider": provider,
            "timestamp": _timestamp(),
        },
    )


def _ok(streams: list[dict[str, Any]], provider: str) -> JSONResponse:
    return JSONResponse(
        content={
            "success": True,
            "streams": streams,
            "provider": provider,
            "timestamp": _timestamp(),
        }
    )


@router.get("/{provider}/{content_id}")
async def provider_streams(
    request: Request,
    provider: str,
    content_id: str,
    content_type: ContentTypeParam = Query(default="movie", alias="type"),
    season: int | None = Query(default=None, ge=0),
    episode: int | None = Query(default=None, ge=0),
) -> JSONResponse:
    """Resolve streams for one content id on a single provider."""
    state = cast(AppState, request.app.state)
    site = state.sites.get(provider)
    if site is None:
        return _error(404, f"Unknown provider: {provider}", provider)

    query = _build_query(content_id, content_type, season, episode)
    try:
        streams = await state.resolve_streams_uc.execute(site, query)
    except LeecharrError as exc:
        log.error(
            "streams_request_failed",
            provider=provider,
            content_id=content_id,
            error=str(exc),
        )
        return _error(500, str(exc), provider)

    return _ok([s.to_dict() for s in streams], provider)


@router.get("/{content_id}")
async def all_streams(
    request: Request,
    content_id: str,
    content_type: ContentTypeParam = Query(default="movie", alias="type"),
    season: int | None = Query(default=None, ge=0),
    episode: int | None = Query(default=None, ge=0),
) -> JSONResponse:
    """Resolve streams across every enabled provider, ranked together."""
    state = cast(AppState, request.app.state)
    query = _build_query(content_id, content_type, season, episode)
    try:
        streams = await state.resolve_streams_uc.execute_all(
            list(state.sites.values()), query
        )
    except LeecharrError as exc:
        log.error(
            "streams_request_failed",
            provider="all",
            content_id=content_id,
            error=str(exc),
        )
        return _error(500, str(exc), "all")

    return _ok([s.to_dict() for s in streams], "all")
