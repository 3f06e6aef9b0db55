"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from balkanod.application.use_cases.stremio_catalog import StremioCatalogUseCase
from balkanod.application.use_cases.stremio_meta import StremioMetaUseCase
from balkanod.application.use_cases.stremio_stream import StremioStreamUseCase
from balkanod.domain.ports import CachePort, MetadataSearchPort, StreamProviderPort
from balkanod.infrastructure.cache.cache_factory import create_cache
from balkanod.infrastructure.config.schema import AppConfig
from balkanod.infrastructure.content import JsonContentRepository
from balkanod.infrastructure.metadata import CinemetaClient, HttpxTmdbClient
from balkanod.infrastructure.persistence import ResolutionCache
from balkanod.infrastructure.providers import (
    ArchiveOrgProvider,
    DirectCdnProvider,
    EmbeddedPlayerProvider,
    EndpointCircuitBreaker,
    HostingProxyProvider,
    ProxyEndpoint,
)
from balkanod.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def build_providers(
    config: AppConfig,
    http_client: httpx.AsyncClient,
    breaker: EndpointCircuitBreaker,
) -> list[StreamProviderPort]:
    """Provider chain in priority order: direct, archive, proxy, embedded."""
    pc = config.providers
    providers: list[StreamProviderPort] = [DirectCdnProvider()]

    if pc.archive_enabled:
        providers.append(
            ArchiveOrgProvider(
                http_client,
                timeout_seconds=pc.archive_timeout_seconds,
                search_enabled=pc.archive_search_enabled,
                max_search_queries=pc.archive_search_max_queries,
            )
        )

    if pc.proxy_endpoints:
        providers.append(
            HostingProxyProvider(
                http_client,
                [ProxyEndpoint(url=e.url, api=e.api) for e in pc.proxy_endpoints],
                per_call_timeout=pc.per_call_timeout_seconds,
                breaker=breaker,
                group_prefix=pc.binge_group_prefix,
            )
        )

    if pc.embedded_fallback_enabled:
        providers.append(EmbeddedPlayerProvider(group_prefix=pc.binge_group_prefix))

    return providers


def build_metadata_client(
    config: AppConfig, http_client: httpx.AsyncClient, cache: CachePort
) -> MetadataSearchPort | None:
    """TMDB when an API key is configured, otherwise Cinemeta."""
    mc = config.metadata
    if not mc.enabled:
        return None
    if mc.tmdb_api_key:
        log.info("metadata_client_initialized", source="tmdb")
        return HttpxTmdbClient(
            api_key=mc.tmdb_api_key,
            http_client=http_client,
            cache=cache,
            ttl_seconds=mc.ttl_seconds,
        )
    log.info("metadata_client_initialized", source="cinemeta")
    return CinemetaClient(
        http_client=http_client,
        cache=cache,
        base_url=mc.cinemeta_url,
        timeout_seconds=mc.timeout_seconds,
        ttl_seconds=mc.ttl_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: Initialize and cleanup all resources (DI Composition Root).

    Order matters:
        1. Cache (required by the resolution cache and metadata clients)
        2. HTTP Client (required by the network providers)
        3. Content repository
        4. Providers + resolution cache
        5. Use cases
    """
    state = cast(AppState, app.state)
    config = state.config

    # 1) Cache
    cache = create_cache(config.cache)
    await cache.__aenter__()
    state.cache = cache
    log.info("cache_initialized", backend=config.cache.backend)

    if config.environment == "dev":
        await cache.clear()
        log.debug("cache_cleared", environment="dev")

    # 2) HTTP client
    state.http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        headers={"User-Agent": config.http_user_agent},
        follow_redirects=config.http_follow_redirects,
    )
    log.info("http_client_initialized", timeout=config.http_timeout_seconds)

    try:
        # 3) Content snapshot (missing or broken file fails startup)
        repository = JsonContentRepository.from_file(config.content_path)
        state.repository = repository
        log.info(
            "content_repository_initialized",
            path=str(config.content_path),
            movies=repository.count("movie"),
            series=repository.count("series"),
        )

        # 4) Providers and resolution cache
        state.proxy_breaker = EndpointCircuitBreaker(
            failure_threshold=config.providers.breaker_failure_threshold,
            cooldown_seconds=config.providers.breaker_cooldown_seconds,
        )
        providers = build_providers(config, state.http_client, state.proxy_breaker)
        state.resolution_cache = ResolutionCache(
            cache, ttl_seconds=config.cache.ttl_seconds
        )
        log.info(
            "providers_initialized",
            providers=[p.name for p in providers],
            proxy_endpoints=len(config.providers.proxy_endpoints),
        )

        # 5) Use cases
        state.metadata_client = build_metadata_client(config, state.http_client, cache)
        state.stremio_stream_uc = StremioStreamUseCase(
            repository=repository,
            providers=providers,
            cache=state.resolution_cache,
            config=config.providers,
        )
        state.stremio_catalog_uc = StremioCatalogUseCase(
            repository,
            catalogs={c.id: c.type for c in config.stremio.catalogs},
            page_size=config.stremio.page_size,
        )
        state.stremio_meta_uc = StremioMetaUseCase(repository, state.metadata_client)
    except Exception:
        await state.http_client.aclose()
        await cache.aclose()
        raise

    log.info("app_startup_complete")

    try:
        yield
    finally:
        await state.http_client.aclose()
        log.info("http_client_closed")

        await state.cache.aclose()
        log.info("cache_closed")

        log.info("app_shutdown_complete")
