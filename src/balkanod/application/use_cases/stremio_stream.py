"""Stremio stream resolution use case.

content id -> snapshot lookup -> providers in priority order
-> dedupe -> rank within provider -> cached candidate list.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from typing import Protocol

import structlog

from balkanod.application.stream_ranking import (
    dedupe_by_locator,
    sort_within_provider_groups,
)
from balkanod.domain.entities.stremio import (
    ProviderQuery,
    StreamCandidate,
    StremioStreamRequest,
)
from balkanod.domain.ports.content_repository import ContentRepositoryPort
from balkanod.domain.ports.resolution_cache import ResolutionCachePort
from balkanod.domain.ports.stream_provider import StreamProviderPort
from balkanod.domain.providers.exceptions import ContentNotFoundError, ProviderError

log = structlog.get_logger(__name__)


class _StreamConfig(Protocol):
    """Configuration values consumed by StremioStreamUseCase."""

    provider_timeout_seconds: float
    binge_group_prefix: str


def build_provider_query(
    repository: ContentRepositoryPort,
    request: StremioStreamRequest,
    group_prefix: str,
) -> ProviderQuery:
    """Look up the title behind a stream request.

    Raises:
        ContentNotFoundError: identifier is not in the snapshot.
    """
    if request.is_episode:
        try:
            series, episode = repository.get_episode(request.identifier)
        except ContentNotFoundError:
            pass
        else:
            return ProviderQuery(
                identifier=episode.id,
                title=series.name,
                kind="series",
                year=series.year,
                video_id=episode.video_id,
                sources=episode.sources,
                group=f"{group_prefix}-series-{series.slug}",
                season=episode.season,
                episode=episode.episode,
            )

    item = repository.get(request.identifier)
    return ProviderQuery(
        identifier=item.id,
        title=item.name,
        kind=item.kind,
        year=item.year,
        video_id=item.video_id,
        archive_id=item.archive_id,
        sources=item.sources,
        group=f"{group_prefix}-{item.id}",
    )


class StremioStreamUseCase:
    """Resolves a content id into a ranked list of stream candidates.

    Providers are consulted in the order given; fallback providers only when
    the regular ones produced nothing. A failing or slow provider costs its
    own candidates and nothing else: ``execute`` never raises.
    """

    def __init__(
        self,
        *,
        repository: ContentRepositoryPort,
        providers: Sequence[StreamProviderPort],
        cache: ResolutionCachePort,
        config: _StreamConfig,
    ) -> None:
        self._repository = repository
        self._providers = list(providers)
        self._cache = cache
        self._provider_timeout = config.provider_timeout_seconds
        self._group_prefix = config.binge_group_prefix

    @property
    def provider_names(self) -> list[str]:
        return [p.name for p in self._providers]

    async def execute(self, request: StremioStreamRequest) -> list[StreamCandidate]:
        try:
            return await self._cache.get_or_resolve(
                request.identifier, lambda: self._resolve(request)
            )
        except Exception:
            # fail open
            log.warning(
                "stream_cache_unavailable",
                identifier=request.identifier,
                exc_info=True,
            )
            return await self._resolve(request)

    async def _resolve(self, request: StremioStreamRequest) -> list[StreamCandidate]:
        t0 = time.perf_counter()
        try:
            query = build_provider_query(self._repository, request, self._group_prefix)
        except ContentNotFoundError:
            log.info(
                "stream_content_not_found",
                identifier=request.identifier,
                content_type=request.content_type,
            )
            return []

        collected: list[StreamCandidate] = []
        for provider in self._providers:
            if not provider.fallback:
                collected.extend(await self._call_provider(provider, query))

        if not collected:
            for provider in self._providers:
                if provider.fallback:
                    collected.extend(await self._call_provider(provider, query))

        ranked = sort_within_provider_groups(dedupe_by_locator(collected))

        log.info(
            "stream_resolution_complete",
            identifier=request.identifier,
            candidates=len(ranked),
            duplicates=len(collected) - len(ranked),
            duration_ms=round((time.perf_counter() - t0) * 1000.0, 1),
        )
        return ranked

    async def _call_provider(
        self, provider: StreamProviderPort, query: ProviderQuery
    ) -> list[StreamCandidate]:
        """Run one provider under the ceiling; failures yield no candidates."""
        t0 = time.perf_counter_ns()
        try:
            candidates = await asyncio.wait_for(
                provider.resolve(query), timeout=self._provider_timeout
            )
        except TimeoutError:
            log.warning(
                "stream_provider_timeout",
                provider=provider.name,
                identifier=query.identifier,
                timeout=self._provider_timeout,
            )
            return []
        except ProviderError as e:
            log.info(
                "stream_provider_failed",
                provider=provider.name,
                identifier=query.identifier,
                error_type=type(e).__name__,
                error=str(e),
            )
            return []
        except Exception:
            log.warning(
                "stream_provider_error",
                provider=provider.name,
                identifier=query.identifier,
                exc_info=True,
            )
            return []

        log.debug(
            "stream_provider_resolved",
            provider=provider.name,
            identifier=query.identifier,
            count=len(candidates),
            duration_ms=round((time.perf_counter_ns() - t0) / 1e6, 1),
        )
        return candidates
