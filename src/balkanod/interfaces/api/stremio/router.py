"""Stremio addon API endpoints (manifest, catalog, meta, stream)."""

from __future__ import annotations

from typing import Any, cast
from urllib.parse import parse_qs

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from balkanod.domain.entities.catalog import (
    CatalogFilters,
    Episode,
    MetaDetail,
    MetaPreview,
)
from balkanod.domain.entities.stremio import (
    SourceKind,
    StreamCandidate,
    StremioStreamRequest,
)
from balkanod.infrastructure.config.schema import StremioConfig
from balkanod.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/stremio", tags=["stremio"])

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "*",
}
_CONTENT_TYPES = ("movie", "series")


def _json(content: dict[str, Any]) -> JSONResponse:
    return JSONResponse(content=content, headers=_CORS_HEADERS)


def _drop_empty(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v not in (None, "", [], ())}


# ----------------------------------------------------------------------
# Manifest
# ----------------------------------------------------------------------


def build_manifest(config: StremioConfig) -> dict[str, Any]:
    """Build the Stremio addon manifest."""
    catalogs = []
    for c in config.catalogs:
        extra: list[dict[str, Any]] = [
            {"name": "search", "isRequired": False},
            {"name": "skip", "isRequired": False},
        ]
        if c.type == "movie" and config.genres:
            extra.insert(
                0, {"name": "genre", "isRequired": False, "options": list(config.genres)}
            )
        catalogs.append({"type": c.type, "id": c.id, "name": c.name, "extra": extra})

    return _drop_empty(
        {
            "id": config.addon_id,
            "version": config.addon_version,
            "name": config.addon_name,
            "description": config.addon_description,
            "logo": config.logo,
            "resources": ["catalog", "meta", "stream"],
            "types": list(_CONTENT_TYPES),
            "catalogs": catalogs,
            "idPrefixes": list(config.id_prefixes),
            "behaviorHints": {"adult": False, "configurable": False},
        }
    )


# ----------------------------------------------------------------------
# Request parsing
# ----------------------------------------------------------------------


def parse_catalog_extra(extra: str | None) -> CatalogFilters:
    """Parse the ``genre=Drama&skip=100&search=...`` path segment."""
    if not extra:
        return CatalogFilters()
    params = parse_qs(extra, keep_blank_values=False)

    def first(name: str) -> str | None:
        values = params.get(name)
        return values[0] if values else None

    try:
        skip = max(int(first("skip") or 0), 0)
    except ValueError:
        skip = 0
    return CatalogFilters(genre=first("genre"), search=first("search"), skip=skip)


def parse_stream_id(
    content_type: str, raw_id: str, id_prefixes: list[str]
) -> StremioStreamRequest | None:
    """Validate a stream request; None for types or ids this addon does not serve."""
    if content_type not in _CONTENT_TYPES or not raw_id:
        return None
    if id_prefixes and not raw_id.startswith(tuple(id_prefixes)):
        return None
    return StremioStreamRequest(identifier=raw_id, content_type=content_type)  # type: ignore[arg-type]


# ----------------------------------------------------------------------
# Presenters
# ----------------------------------------------------------------------


def format_stream(candidate: StreamCandidate, addon_name: str) -> dict[str, Any]:
    """Convert a StreamCandidate into a Stremio stream object."""
    hints: dict[str, Any] = {"notWebReady": False}
    if candidate.group:
        hints["bingeGroup"] = candidate.group
    stream: dict[str, Any] = {
        "name": f"{addon_name}\n{candidate.quality}",
        "title": candidate.title or candidate.quality,
        "behaviorHints": hints,
    }
    if candidate.source_kind is SourceKind.EMBEDDED_PLAYER:
        stream["ytId"] = candidate.locator
    else:
        stream["url"] = candidate.locator
    if candidate.file_index is not None:
        stream["fileIdx"] = candidate.file_index
    return stream


def format_preview(meta: MetaPreview) -> dict[str, Any]:
    return _drop_empty(
        {
            "id": meta.id,
            "type": meta.type,
            "name": meta.name,
            "poster": meta.poster,
            "posterShape": "poster",
            "description": meta.description,
            "releaseInfo": meta.release_info,
            "genres": list(meta.genres),
        }
    )


def _format_video(episode: Episode) -> dict[str, Any]:
    return _drop_empty(
        {
            "id": episode.id,
            "title": episode.title,
            "season": episode.season,
            "episode": episode.episode,
            "thumbnail": episode.thumbnail,
            "released": episode.released,
        }
    )


def format_meta(meta: MetaDetail) -> dict[str, Any]:
    data = _drop_empty(
        {
            "id": meta.id,
            "type": meta.type,
            "name": meta.name,
            "poster": meta.poster,
            "background": meta.background,
            "logo": meta.logo,
            "description": meta.description,
            "releaseInfo": meta.release_info,
            "genres": list(meta.genres),
            "cast": list(meta.cast),
            "director": [meta.director] if meta.director else None,
            "country": meta.country,
            "runtime": meta.runtime,
            "imdbRating": meta.imdb_rating,
        }
    )
    if meta.type == "series":
        data["videos"] = [_format_video(e) for e in meta.videos]
    return data


# ----------------------------------------------------------------------
# Endpoints
# ----------------------------------------------------------------------


@router.get("/manifest.json")
async def stremio_manifest(request: Request) -> JSONResponse:
    """Serve the Stremio addon manifest."""
    state = cast(AppState, request.app.state)
    return _json(build_manifest(state.config.stremio))


def _catalog_response(
    request: Request, content_type: str, catalog_id: str, extra: str | None
) -> JSONResponse:
    state = cast(AppState, request.app.state)
    filters = parse_catalog_extra(extra)
    try:
        metas = state.stremio_catalog_uc.execute(content_type, catalog_id, filters)
    except Exception:
        log.warning(
            "stremio_catalog_failed",
            content_type=content_type,
            catalog_id=catalog_id,
            exc_info=True,
        )
        metas = []
    return _json({"metas": [format_preview(m) for m in metas]})


@router.get("/catalog/{content_type}/{catalog_id}.json")
async def stremio_catalog(
    request: Request, content_type: str, catalog_id: str
) -> JSONResponse:
    """Serve the first page of a catalog."""
    return _catalog_response(request, content_type, catalog_id, None)


@router.get("/catalog/{content_type}/{catalog_id}/{extra}.json")
async def stremio_catalog_extra(
    request: Request, content_type: str, catalog_id: str, extra: str
) -> JSONResponse:
    """Serve a filtered or paged catalog (genre, search, skip)."""
    return _catalog_response(request, content_type, catalog_id, extra)


@router.get("/meta/{content_type}/{content_id}.json")
async def stremio_meta(
    request: Request, content_type: str, content_id: str
) -> JSONResponse:
    """Serve the detail page of one title."""
    state = cast(AppState, request.app.state)
    if content_type not in _CONTENT_TYPES:
        return _json({"meta": None})

    try:
        meta = await state.stremio_meta_uc.execute(content_type, content_id)
    except Exception:
        log.warning("stremio_meta_failed", id=content_id, exc_info=True)
        meta = None
    return _json({"meta": format_meta(meta) if meta else None})


@router.get("/stream/{content_type}/{content_id}.json")
async def stremio_stream(
    request: Request, content_type: str, content_id: str
) -> JSONResponse:
    """Resolve streams for a movie or an episode."""
    state = cast(AppState, request.app.state)
    stremio_config = state.config.stremio

    stream_request = parse_stream_id(content_type, content_id, stremio_config.id_prefixes)
    if stream_request is None:
        log.debug("stremio_stream_unsupported_id", content_type=content_type, id=content_id)
        return _json({"streams": []})

    candidates = await state.stremio_stream_uc.execute(stream_request)
    streams = [format_stream(c, stremio_config.addon_name) for c in candidates]
    log.info(
        "stremio_stream_served",
        content_type=content_type,
        id=content_id,
        streams=len(streams),
    )
    return _json({"streams": streams})
