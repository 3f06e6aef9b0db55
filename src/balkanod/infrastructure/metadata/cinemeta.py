"""Cinemeta metadata client: free, key-less id lookup and title search."""

from __future__ import annotations

import asyncio
import re
from typing import Any
from urllib.parse import quote

import httpx
import structlog
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from balkanod.domain.entities.catalog import ContentKind, MetaEnrichment
from balkanod.domain.ports.cache import CachePort
from balkanod.domain.providers.exceptions import (
    MalformedUpstreamResponse,
    ProviderTimeout,
    ProviderUnavailable,
)
from balkanod.infrastructure.metadata.codec import (
    MISS,
    enrichment_from_dict,
    enrichment_to_dict,
)

log = structlog.get_logger(__name__)

_PARENS_RE = re.compile(r"\([^)]*\)")
_WS_RE = re.compile(r"\s+")


class CinemetaPreview(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(min_length=1)
    name: str = ""
    poster: str | None = None
    year: str | int | None = None
    release_info: str | None = Field(
        default=None, validation_alias=AliasChoices("releaseInfo", "release_info")
    )

    @property
    def year_text(self) -> str:
        return str(self.year or self.release_info or "")[:4]


class CinemetaMeta(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = ""
    poster: str | None = None
    background: str | None = None
    logo: str | None = None
    description: str | None = None
    genres: list[str] = Field(default_factory=list)
    cast: list[str] = Field(default_factory=list)
    director: list[str] | str | None = None
    runtime: str | None = None
    imdb_rating: str | None = Field(
        default=None, validation_alias=AliasChoices("imdbRating", "imdb_rating")
    )


def clean_title(title: str) -> str:
    """Strip parenthesised suffixes ("(1985)", "(TV)") and squash whitespace."""
    return _WS_RE.sub(" ", _PARENS_RE.sub("", title)).strip()


def pick_match(
    previews: list[CinemetaPreview], year: int | None
) -> CinemetaPreview | None:
    """Exact year match first, otherwise the first result."""
    if not previews:
        return None
    if year is not None:
        for p in previews:
            if p.year_text == str(year):
                return p
    return previews[0]


def _to_enrichment(match: CinemetaPreview, meta: CinemetaMeta | None) -> MetaEnrichment:
    if meta is None:
        return MetaEnrichment(imdb_id=match.id, poster=match.poster)
    director = meta.director
    if isinstance(director, list):
        director = ", ".join(director) or None
    return MetaEnrichment(
        imdb_id=match.id,
        poster=match.poster or meta.poster,
        background=meta.background,
        logo=meta.logo,
        description=meta.description,
        genres=tuple(meta.genres),
        cast=tuple(meta.cast),
        director=director,
        runtime=meta.runtime,
        imdb_rating=meta.imdb_rating,
    )


class CinemetaClient:
    """Fetch Cinemeta meta records by IMDb id, or by title via the best match.

    Implements ``MetadataSearchPort``. Results (including misses) are cached.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        cache: CachePort,
        base_url: str = "https://v3-cinemeta.strem.io",
        timeout_seconds: float = 5.0,
        ttl_seconds: int = 86_400,
    ) -> None:
        self._http = http_client
        self._cache = cache
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._ttl = ttl_seconds

    async def _get_json(self, url: str) -> Any:
        try:
            resp = await asyncio.wait_for(self._http.get(url), timeout=self._timeout)
        except (TimeoutError, httpx.TimeoutException) as e:
            raise ProviderTimeout("cinemeta", f"timed out: {url}") from e
        except httpx.HTTPError as e:
            raise ProviderUnavailable("cinemeta", str(e)) from e
        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            raise ProviderUnavailable("cinemeta", f"HTTP {resp.status_code}")
        try:
            return resp.json()
        except ValueError as e:
            raise MalformedUpstreamResponse("cinemeta", "body is not JSON") from e

    async def _search(self, title: str, kind: ContentKind) -> list[CinemetaPreview]:
        url = f"{self._base_url}/catalog/{kind}/top/search={quote(title)}.json"
        data = await self._get_json(url)
        if not isinstance(data, dict):
            return []
        previews: list[CinemetaPreview] = []
        for raw in data.get("metas") or []:
            try:
                previews.append(CinemetaPreview.model_validate(raw))
            except ValidationError:
                log.debug("cinemeta_preview_skipped")
        return previews

    async def _meta(self, kind: ContentKind, meta_id: str) -> CinemetaMeta | None:
        data = await self._get_json(f"{self._base_url}/meta/{kind}/{meta_id}.json")
        if not isinstance(data, dict) or not isinstance(data.get("meta"), dict):
            return None
        try:
            return CinemetaMeta.model_validate(data["meta"])
        except ValidationError as e:
            raise MalformedUpstreamResponse("cinemeta", "invalid meta record") from e

    async def search(
        self, title: str, year: int | None, kind: ContentKind
    ) -> MetaEnrichment | None:
        query = clean_title(title)
        if not query:
            return None

        cache_key = f"cinemeta:{kind}:{query.lower()}:{year or ''}"
        cached = await self._cache.get(cache_key)
        if cached is not None:
            return None if cached == MISS else enrichment_from_dict(cached)

        match = pick_match(await self._search(query, kind), year)
        if match is None:
            await self._cache.set(cache_key, MISS, ttl=self._ttl)
            log.debug("cinemeta_no_match", title=query, year=year)
            return None

        result = _to_enrichment(match, await self._meta(kind, match.id))
        await self._cache.set(cache_key, enrichment_to_dict(result), ttl=self._ttl)
        log.debug("cinemeta_match", title=query, year=year, imdb_id=match.id)
        return result

    async def lookup(self, imdb_id: str, kind: ContentKind) -> MetaEnrichment | None:
        cache_key = f"cinemeta:{kind}:id:{imdb_id}"
        cached = await self._cache.get(cache_key)
        if cached is not None:
            return None if cached == MISS else enrichment_from_dict(cached)

        meta = await self._meta(kind, imdb_id)
        if meta is None:
            await self._cache.set(cache_key, MISS, ttl=self._ttl)
            log.debug("cinemeta_unknown_id", imdb_id=imdb_id)
            return None

        result = _to_enrichment(CinemetaPreview(id=imdb_id), meta)
        await self._cache.set(cache_key, enrichment_to_dict(result), ttl=self._ttl)
        log.debug("cinemeta_lookup", imdb_id=imdb_id)
        return result
