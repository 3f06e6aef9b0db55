"""Internet Archive provider.

Items that carry an archive.org identifier are resolved through the public
metadata API:
    GET https://archive.org/metadata/{identifier}

Items without one are looked up by title first:
    GET https://archive.org/advancedsearch.php?q=<terms> AND mediatype:(movies)

Video files are served from
    https://archive.org/download/{identifier}/{file name}
"""

from __future__ import annotations

import asyncio
import re
from typing import Any
from urllib.parse import quote

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from balkanod.domain.entities.stremio import ProviderQuery, SourceKind, StreamCandidate
from balkanod.domain.providers.exceptions import (
    MalformedUpstreamResponse,
    ProviderError,
    ProviderTimeout,
    ProviderUnavailable,
)

log = structlog.get_logger(__name__)

_BASE_URL = "https://archive.org"
_VIDEO_EXTENSIONS = (".mp4", ".mkv", ".avi", ".webm")
_EXCLUDED_NAME_PARTS = ("sample", "trailer")
_MIN_SIZE_BYTES = 10_000_000
_MAX_FILES = 5
_MAX_FILES_PER_SEARCH_HIT = 3
_SEARCH_ROWS = 3
_HD_THRESHOLD_BYTES = 1_000_000_000
_PARENTHESIZED = re.compile(r"\(.*?\)")


class ArchiveFile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    format: str = ""
    size: int = 0

    @field_validator("size", mode="before")
    @classmethod
    def _parse_size(cls, v: object) -> int:
        # archive.org reports sizes as strings
        try:
            return int(v)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 0

    @property
    def playable(self) -> bool:
        name = self.name.lower()
        return (
            name.endswith(_VIDEO_EXTENSIONS)
            and self.format != "Metadata"
            and self.size > _MIN_SIZE_BYTES
            and not any(part in name for part in _EXCLUDED_NAME_PARTS)
        )


class ArchiveMetadata(BaseModel):
    model_config = ConfigDict(extra="ignore")

    files: list[dict] = []
    is_dark: bool = False
    access_restricted_item: bool = False

    @property
    def restricted(self) -> bool:
        return self.is_dark or self.access_restricted_item


class ArchiveSearchDoc(BaseModel):
    model_config = ConfigDict(extra="ignore")

    identifier: str


class ArchiveSearchResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    docs: list[dict] = []


def _video_files(metadata: ArchiveMetadata, limit: int = _MAX_FILES) -> list[ArchiveFile]:
    """Largest playable files first; none for dark or restricted items."""
    if metadata.restricted:
        return []
    files: list[ArchiveFile] = []
    for raw in metadata.files:
        try:
            f = ArchiveFile.model_validate(raw)
        except ValidationError:
            continue
        if f.playable:
            files.append(f)
    files.sort(key=lambda f: f.size, reverse=True)
    return files[:limit]


def search_terms(title: str, year: int | None) -> list[str]:
    """Title-bound terms first, then the broad regional ones."""
    clean = _PARENTHESIZED.sub("", title).strip()
    if not clean:
        return []
    first = f"{clean} {year}" if year is not None else clean
    return [first, f"{clean} yugoslav", "serbian", "croatian", "bosnian"]


class ArchiveOrgProvider:
    """Lists the largest video files of an archive.org item.

    Without an archive id the title is searched instead, one term at a time,
    stopping at the first term whose hits carry playable files. Every HTTP
    call is bounded by ``timeout_seconds``.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        timeout_seconds: float = 5.0,
        base_url: str = _BASE_URL,
        search_enabled: bool = True,
        max_search_queries: int = 2,
    ) -> None:
        self._http = http_client
        self._timeout = timeout_seconds
        self._base_url = base_url.rstrip("/")
        self._search_enabled = search_enabled
        self._max_search_queries = max_search_queries

    @property
    def name(self) -> str:
        return "archive-org"

    @property
    def fallback(self) -> bool:
        return False

    async def resolve(self, query: ProviderQuery) -> list[StreamCandidate]:
        if query.archive_id:
            metadata = await self._fetch_metadata(query.archive_id)
            if metadata.restricted:
                log.info("archive_org_item_restricted", archive_id=query.archive_id)
            candidates = self._candidates(query, query.archive_id, _video_files(metadata))
            log.debug(
                "archive_org_resolved",
                archive_id=query.archive_id,
                count=len(candidates),
            )
            return candidates

        if not self._search_enabled:
            return []
        return await self._search(query)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def _search(self, query: ProviderQuery) -> list[StreamCandidate]:
        terms = search_terms(query.title, query.year)[: self._max_search_queries]
        errors: list[ProviderError] = []

        for term in terms:
            try:
                identifiers = await self._search_identifiers(term)
            except ProviderError as e:
                log.info("archive_org_search_failed", term=term, error=str(e))
                errors.append(e)
                continue

            candidates: list[StreamCandidate] = []
            for identifier in identifiers:
                try:
                    metadata = await self._fetch_metadata(identifier)
                except ProviderError as e:
                    log.info(
                        "archive_org_search_hit_failed",
                        archive_id=identifier,
                        error=str(e),
                    )
                    continue
                files = _video_files(metadata, limit=_MAX_FILES_PER_SEARCH_HIT)
                candidates.extend(self._candidates(query, identifier, files))

            if candidates:
                log.debug(
                    "archive_org_search_resolved",
                    identifier=query.identifier,
                    term=term,
                    count=len(candidates),
                )
                return candidates

        if terms and len(errors) == len(terms):
            if all(isinstance(e, ProviderTimeout) for e in errors):
                raise ProviderTimeout(self.name, "every search call timed out")
            raise ProviderUnavailable(self.name, "every search call failed")
        return []

    async def _search_identifiers(self, term: str) -> list[str]:
        url = f"{self._base_url}/advancedsearch.php"
        params = [
            ("q", f"{term} AND mediatype:(movies)"),
            ("fl[]", "identifier"),
            ("fl[]", "title"),
            ("rows", str(_SEARCH_ROWS)),
            ("output", "json"),
        ]
        body = await self._get_json(url, params=params)
        try:
            response = ArchiveSearchResponse.model_validate(body.get("response") or {})
        except (AttributeError, ValidationError) as e:
            raise MalformedUpstreamResponse(self.name, "unexpected search body") from e

        identifiers: list[str] = []
        for raw in response.docs[:_SEARCH_ROWS]:
            try:
                identifiers.append(ArchiveSearchDoc.model_validate(raw).identifier)
            except ValidationError:
                continue
        return identifiers

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    async def _fetch_metadata(self, archive_id: str) -> ArchiveMetadata:
        url = f"{self._base_url}/metadata/{archive_id}"
        body = await self._get_json(url)
        try:
            return ArchiveMetadata.model_validate(body)
        except ValidationError as e:
            raise MalformedUpstreamResponse(self.name, "unexpected metadata body") from e

    async def _get_json(
        self, url: str, params: list[tuple[str, str]] | None = None
    ) -> Any:
        try:
            resp = await asyncio.wait_for(
                self._http.get(url, params=params), timeout=self._timeout
            )
        except (TimeoutError, httpx.TimeoutException) as e:
            raise ProviderTimeout(self.name, f"call timed out: {url}") from e
        except httpx.HTTPError as e:
            raise ProviderUnavailable(self.name, f"request failed: {e}") from e

        if resp.status_code != 200:
            raise ProviderUnavailable(self.name, f"HTTP {resp.status_code} from {url}")

        try:
            return resp.json()
        except ValueError as e:
            raise MalformedUpstreamResponse(self.name, f"non-JSON body from {url}") from e

    def _candidates(
        self, query: ProviderQuery, archive_id: str, files: list[ArchiveFile]
    ) -> list[StreamCandidate]:
        candidates: list[StreamCandidate] = []
        for f in files:
            quality = "HD" if f.size > _HD_THRESHOLD_BYTES else "SD"
            size_gb = f.size / (1024**3)
            candidates.append(
                StreamCandidate(
                    locator=f"{self._base_url}/download/{archive_id}/{quote(f.name)}",
                    quality=quality,
                    source_kind=SourceKind.DIRECT_CDN,
                    provider=self.name,
                    group=query.group,
                    title=f"Internet Archive - {quality} ({size_gb:.2f}GB)",
                )
            )
        return candidates
