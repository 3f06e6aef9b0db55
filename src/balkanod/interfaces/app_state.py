"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from balkanod.infrastructure.config import AppConfig

if TYPE_CHECKING:
    from balkanod.application.use_cases.stremio_catalog import StremioCatalogUseCase
    from balkanod.application.use_cases.stremio_meta import StremioMetaUseCase
    from balkanod.application.use_cases.stremio_stream import StremioStreamUseCase
    from balkanod.domain.ports import (
        CachePort,
        ContentRepositoryPort,
        MetadataSearchPort,
        ResolutionCachePort,
    )
    from balkanod.infrastructure.providers import EndpointCircuitBreaker


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    cache: CachePort
    http_client: httpx.AsyncClient
    resolution_cache: ResolutionCachePort

    # Content snapshot
    repository: ContentRepositoryPort

    # Proxy endpoint health (shared across requests)
    proxy_breaker: EndpointCircuitBreaker

    # Metadata enrichment (None when disabled)
    metadata_client: MetadataSearchPort | None

    # Stremio use cases
    stremio_stream_uc: StremioStreamUseCase
    stremio_catalog_uc: StremioCatalogUseCase
    stremio_meta_uc: StremioMetaUseCase
