"""Hosting-proxy provider: YouTube-backed titles via Invidious/Piped instances.

Instances are interchangeable and individually unreliable, so they are
tried one after another until one returns usable formats. Every call is
bounded by ``per_call_timeout``; worst case per title is roughly
``len(endpoints) * per_call_timeout``.

API shapes:
    invidious  GET {base}/api/v1/videos/{id}
               formatStreams[]   muxed audio+video
               adaptiveFormats[] separate video/audio tracks
               hlsUrl            HLS manifest (mostly live streams)
    piped      GET {base}/streams/{id}
               videoStreams[]    videoOnly=false muxed, true adaptive
               hls               HLS manifest

Formats are classified into playability tiers: muxed (0) beats adaptive
(1) beats manifest (2). The tier travels with each candidate.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Literal
from urllib.parse import urlparse

import httpx
import structlog
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from balkanod.domain.entities.stremio import ProviderQuery, SourceKind, StreamCandidate
from balkanod.domain.providers.exceptions import (
    MalformedUpstreamResponse,
    ProviderError,
    ProviderTimeout,
    ProviderUnavailable,
)
from balkanod.infrastructure.providers.circuit_breaker import EndpointCircuitBreaker

log = structlog.get_logger(__name__)


class FormatTier(IntEnum):
    COMBINED = 0
    ADAPTIVE = 1
    MANIFEST = 2


_TIER_LABELS = {
    FormatTier.COMBINED: "",
    FormatTier.ADAPTIVE: " (video only)",
    FormatTier.MANIFEST: " (HLS)",
}


@dataclass(frozen=True)
class ProxyEndpoint:
    url: str
    api: Literal["invidious", "piped"] = "invidious"

    @property
    def host(self) -> str:
        return urlparse(self.url).hostname or self.url

    def video_url(self, video_id: str) -> str:
        if self.api == "piped":
            return f"{self.url}/streams/{video_id}"
        return f"{self.url}/api/v1/videos/{video_id}"


@dataclass(frozen=True)
class _Format:
    url: str
    quality: str
    tier: FormatTier


# ----------------------------------------------------------------------
# Upstream record types
# ----------------------------------------------------------------------


class InvidiousFormat(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    url: str = Field(min_length=1)
    type: str = ""
    quality_label: str | None = Field(
        default=None, validation_alias=AliasChoices("qualityLabel", "quality_label")
    )
    resolution: str | None = None


class InvidiousVideo(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    format_streams: list[Any] = Field(
        default_factory=list, validation_alias=AliasChoices("formatStreams", "format_streams")
    )
    adaptive_formats: list[Any] = Field(
        default_factory=list,
        validation_alias=AliasChoices("adaptiveFormats", "adaptive_formats"),
    )
    hls_url: str | None = Field(
        default=None, validation_alias=AliasChoices("hlsUrl", "hls_url")
    )


class PipedStream(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    url: str = Field(min_length=1)
    quality: str = ""
    mime_type: str = Field(
        default="", validation_alias=AliasChoices("mimeType", "mime_type")
    )
    video_only: bool = Field(
        default=False, validation_alias=AliasChoices("videoOnly", "video_only")
    )


class PipedStreams(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    video_streams: list[Any] = Field(
        default_factory=list, validation_alias=AliasChoices("videoStreams", "video_streams")
    )
    hls: str | None = None


def _valid_entries(model: type[BaseModel], raw: Sequence[Any]) -> list[Any]:
    """Validate list entries one by one; malformed ones are skipped."""
    out = []
    for entry in raw:
        try:
            out.append(model.model_validate(entry))
        except ValidationError:
            log.debug("proxy_format_skipped", model=model.__name__)
    return out


def parse_invidious(data: Any) -> list[_Format]:
    try:
        video = InvidiousVideo.model_validate(data)
    except ValidationError as e:
        raise MalformedUpstreamResponse("hosting-proxy", "invalid invidious body") from e

    formats: list[_Format] = []
    for f in _valid_entries(InvidiousFormat, video.format_streams):
        if "video/mp4" in f.type:
            formats.append(
                _Format(f.url, f.quality_label or f.resolution or "", FormatTier.COMBINED)
            )
    for f in _valid_entries(InvidiousFormat, video.adaptive_formats):
        if f.type.startswith("video/mp4"):
            formats.append(
                _Format(f.url, f.quality_label or f.resolution or "", FormatTier.ADAPTIVE)
            )
    if video.hls_url:
        formats.append(_Format(video.hls_url, "HLS", FormatTier.MANIFEST))
    return formats


def parse_piped(data: Any) -> list[_Format]:
    try:
        streams = PipedStreams.model_validate(data)
    except ValidationError as e:
        raise MalformedUpstreamResponse("hosting-proxy", "invalid piped body") from e

    formats: list[_Format] = []
    for s in _valid_entries(PipedStream, streams.video_streams):
        if s.mime_type and not s.mime_type.startswith("video/mp4"):
            continue
        tier = FormatTier.ADAPTIVE if s.video_only else FormatTier.COMBINED
        formats.append(_Format(s.url, s.quality, tier))
    if streams.hls:
        formats.append(_Format(streams.hls, "HLS", FormatTier.MANIFEST))
    return formats


_PARSERS = {"invidious": parse_invidious, "piped": parse_piped}


class HostingProxyProvider:
    """Resolves a hosted video id through an ordered list of proxy instances."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        endpoints: Sequence[ProxyEndpoint],
        *,
        per_call_timeout: float = 3.0,
        breaker: EndpointCircuitBreaker | None = None,
        group_prefix: str = "balkan",
    ) -> None:
        self._http = http_client
        self._endpoints = list(endpoints)
        self._timeout = per_call_timeout
        self._breaker = breaker or EndpointCircuitBreaker()
        self._group = f"{group_prefix}-proxy"

    @property
    def name(self) -> str:
        return "hosting-proxy"

    @property
    def fallback(self) -> bool:
        return False

    @property
    def endpoints(self) -> list[ProxyEndpoint]:
        return list(self._endpoints)

    async def _fetch(self, endpoint: ProxyEndpoint, video_id: str) -> list[_Format]:
        url = endpoint.video_url(video_id)
        try:
            resp = await asyncio.wait_for(self._http.get(url), timeout=self._timeout)
        except (TimeoutError, httpx.TimeoutException) as e:
            raise ProviderTimeout(self.name, f"{endpoint.host} timed out") from e
        except httpx.HTTPError as e:
            raise ProviderUnavailable(self.name, f"{endpoint.host}: {e}") from e

        if resp.status_code != 200:
            raise ProviderUnavailable(
                self.name, f"{endpoint.host} answered HTTP {resp.status_code}"
            )
        try:
            data = resp.json()
        except ValueError as e:
            raise MalformedUpstreamResponse(self.name, f"{endpoint.host}: not JSON") from e
        return _PARSERS[endpoint.api](data)

    def _to_candidates(
        self, endpoint: ProxyEndpoint, formats: list[_Format]
    ) -> list[StreamCandidate]:
        return [
            StreamCandidate(
                locator=f.url,
                quality=f.quality or "unknown",
                source_kind=SourceKind.PROXIED_HOST,
                provider=self.name,
                group=self._group,
                tier=int(f.tier),
                title=f"{endpoint.host} - {f.quality or 'unknown'}{_TIER_LABELS[f.tier]}",
            )
            for f in formats
        ]

    async def resolve(self, query: ProviderQuery) -> list[StreamCandidate]:
        video_id = query.video_id
        if not video_id:
            return []

        errors: list[ProviderError] = []
        answered = False

        for endpoint in self._endpoints:
            if not self._breaker.allow(endpoint.url):
                log.debug("proxy_endpoint_skipped", endpoint=endpoint.host)
                continue

            try:
                formats = await self._fetch(endpoint, video_id)
            except ProviderError as e:
                self._breaker.record_failure(endpoint.url)
                errors.append(e)
                log.info(
                    "proxy_endpoint_failed",
                    endpoint=endpoint.host,
                    video_id=video_id,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                continue

            self._breaker.record_success(endpoint.url)
            answered = True
            if formats:
                log.info(
                    "proxy_endpoint_resolved",
                    endpoint=endpoint.host,
                    video_id=video_id,
                    formats=len(formats),
                )
                return self._to_candidates(endpoint, formats)

        if answered:
            return []
        if errors and all(isinstance(e, ProviderTimeout) for e in errors):
            raise ProviderTimeout(self.name, f"all endpoints timed out for {video_id}")
        raise ProviderUnavailable(
            self.name,
            f"no endpoint answered for {video_id} "
            f"({len(errors)} failed, {len(self._endpoints) - len(errors)} skipped)",
        )
