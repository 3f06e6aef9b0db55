"""TMDB metadata client: async httpx implementation with caching."""

from __future__ import annotations

from dataclasses import replace
from typing import Any

import httpx
import structlog

from balkanod.domain.entities.catalog import ContentKind, MetaEnrichment
from balkanod.domain.ports.cache import CachePort
from balkanod.infrastructure.metadata.codec import (
    MISS,
    enrichment_from_dict,
    enrichment_to_dict,
)

log = structlog.get_logger(__name__)

_BASE_URL = "https://api.themoviedb.org/3"
_POSTER_BASE = "https://image.tmdb.org/t/p/w500"
_BACKDROP_BASE = "https://image.tmdb.org/t/p/original"

_TTL_SEARCH = 86_400  # 24 hours
_MAX_CAST = 10


class HttpxTmdbClient:
    """Async TMDB client using httpx + CachePort.

    Implements ``MetadataSearchPort``. Used instead of Cinemeta when an API
    key is configured; TMDB knows far more regional titles.
    """

    def __init__(
        self,
        *,
        api_key: str,
        http_client: httpx.AsyncClient,
        cache: CachePort,
        language: str = "en-US",
        ttl_seconds: int = _TTL_SEARCH,
    ) -> None:
        self._api_key = api_key
        self._http = http_client
        self._cache = cache
        self._language = language
        self._ttl = ttl_seconds

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _params(self, **extra: Any) -> dict[str, Any]:
        return {"api_key": self._api_key, "language": self._language, **extra}

    async def _get(self, path: str, **extra: Any) -> dict[str, Any] | None:
        """GET request with error handling. Returns parsed JSON or None."""
        url = f"{_BASE_URL}{path}"
        try:
            resp = await self._http.get(url, params=self._params(**extra))
            if resp.status_code == 401:
                log.error("tmdb_api_key_invalid", status=401)
                return None
            if resp.status_code == 404:
                log.debug("tmdb_resource_not_found", path=path)
                return None
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError:
            log.warning("tmdb_http_error", path=path, exc_info=True)
            return None
        except httpx.HTTPError:
            log.warning("tmdb_network_error", path=path, exc_info=True)
            return None
        except ValueError:
            log.warning("tmdb_invalid_json", path=path)
            return None
        return data if isinstance(data, dict) else None

    @staticmethod
    def _image(base: str, path: str | None) -> str | None:
        return f"{base}{path}" if path else None

    @staticmethod
    def _release_year(item: dict[str, Any]) -> str:
        date = item.get("release_date") or item.get("first_air_date") or ""
        return str(date)[:4]

    @classmethod
    def _pick(cls, results: list[Any], year: int | None) -> dict[str, Any] | None:
        candidates = [r for r in results if isinstance(r, dict) and r.get("id")]
        if not candidates:
            return None
        if year is not None:
            for r in candidates:
                if cls._release_year(r) == str(year):
                    return r
        return candidates[0]

    async def _details(
        self, media: str, tmdb_id: Any, kind: ContentKind
    ) -> MetaEnrichment | None:
        details = await self._get(
            f"/{media}/{tmdb_id}", append_to_response="credits,external_ids"
        )
        return None if details is None else self._to_enrichment(details, kind)

    def _to_enrichment(self, details: dict[str, Any], kind: ContentKind) -> MetaEnrichment:
        credits = details.get("credits") or {}
        cast = tuple(
            c["name"] for c in (credits.get("cast") or [])[:_MAX_CAST] if c.get("name")
        )
        if kind == "movie":
            directors = [
                c["name"]
                for c in credits.get("crew") or []
                if c.get("job") == "Director" and c.get("name")
            ]
            runtime = details.get("runtime")
        else:
            directors = [c["name"] for c in details.get("created_by") or [] if c.get("name")]
            run_times = details.get("episode_run_time") or []
            runtime = run_times[0] if run_times else None

        imdb_id = details.get("imdb_id") or (details.get("external_ids") or {}).get(
            "imdb_id"
        )
        vote = details.get("vote_average")
        return MetaEnrichment(
            imdb_id=imdb_id or None,
            poster=self._image(_POSTER_BASE, details.get("poster_path")),
            background=self._image(_BACKDROP_BASE, details.get("backdrop_path")),
            description=details.get("overview") or None,
            genres=tuple(g["name"] for g in details.get("genres") or [] if g.get("name")),
            cast=cast,
            director=", ".join(directors) or None,
            runtime=f"{runtime} min" if runtime else None,
            imdb_rating=f"{float(vote):.1f}" if vote else None,
        )

    # ------------------------------------------------------------------
    # Public API (MetadataSearchPort)
    # ------------------------------------------------------------------

    async def search(
        self, title: str, year: int | None, kind: ContentKind
    ) -> MetaEnrichment | None:
        cache_key = f"tmdb:search:{kind}:{title.lower()}:{year or ''}"
        cached = await self._cache.get(cache_key)
        if cached is not None:
            return None if cached == MISS else enrichment_from_dict(cached)

        media = "movie" if kind == "movie" else "tv"
        year_param = "year" if kind == "movie" else "first_air_date_year"
        extra: dict[str, Any] = {"query": title}
        if year is not None:
            extra[year_param] = year

        data = await self._get(f"/search/{media}", **extra)
        if data is None:
            return None

        match = self._pick(data.get("results") or [], year)
        if match is None:
            await self._cache.set(cache_key, MISS, ttl=self._ttl)
            return None

        result = await self._details(media, match["id"], kind)
        if result is None:
            return None

        await self._cache.set(cache_key, enrichment_to_dict(result), ttl=self._ttl)
        log.debug("tmdb_match", title=title, year=year, tmdb_id=match["id"])
        return result

    async def lookup(self, imdb_id: str, kind: ContentKind) -> MetaEnrichment | None:
        cache_key = f"tmdb:find:{kind}:{imdb_id}"
        cached = await self._cache.get(cache_key)
        if cached is not None:
            return None if cached == MISS else enrichment_from_dict(cached)

        data = await self._get(f"/find/{imdb_id}", external_source="imdb_id")
        if data is None:
            return None

        media = "movie" if kind == "movie" else "tv"
        match = self._pick(data.get(f"{media}_results") or [], None)
        if match is None:
            await self._cache.set(cache_key, MISS, ttl=self._ttl)
            log.debug("tmdb_unknown_imdb_id", imdb_id=imdb_id)
            return None

        result = await self._details(media, match["id"], kind)
        if result is None:
            return None
        if result.imdb_id is None:
            result = replace(result, imdb_id=imdb_id)

        await self._cache.set(cache_key, enrichment_to_dict(result), ttl=self._ttl)
        log.debug("tmdb_lookup", imdb_id=imdb_id, tmdb_id=match["id"])
        return result
