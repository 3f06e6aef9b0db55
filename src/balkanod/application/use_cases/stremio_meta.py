"""Stremio meta use case: detail page from the snapshot, enriched on demand."""

from __future__ import annotations

import structlog

from balkanod.domain.entities.catalog import ContentItem, MetaDetail, MetaEnrichment
from balkanod.domain.ports.content_repository import ContentRepositoryPort
from balkanod.domain.ports.metadata import MetadataSearchPort
from balkanod.domain.providers.exceptions import ContentNotFoundError

log = structlog.get_logger(__name__)


def merge_meta(item: ContentItem, extra: MetaEnrichment | None) -> MetaDetail:
    """Snapshot fields win; the enrichment only fills gaps."""
    e = extra or MetaEnrichment()
    return MetaDetail(
        id=item.id,
        type=item.kind,
        name=item.name,
        poster=item.poster or e.poster,
        background=item.background or e.background,
        logo=e.logo,
        description=item.description or e.description,
        release_info=str(item.year) if item.year else None,
        genres=item.genres or e.genres,
        cast=item.cast or e.cast,
        director=item.director or e.director,
        country=item.country,
        runtime=e.runtime,
        imdb_rating=e.imdb_rating,
        videos=item.episodes,
    )


class StremioMetaUseCase:
    """Builds the detail page for one title.

    Titles with an IMDb id are enriched by that id. Otherwise, or when the
    id is unknown upstream, the title is searched by name, which needs a
    year to avoid matching a different film with the same name. Titles with
    neither are served from the snapshot alone.
    """

    def __init__(
        self,
        repository: ContentRepositoryPort,
        metadata: MetadataSearchPort | None = None,
    ) -> None:
        self._repository = repository
        self._metadata = metadata

    async def execute(self, content_type: str, identifier: str) -> MetaDetail | None:
        try:
            item = self._repository.get(identifier)
        except ContentNotFoundError:
            log.info("stremio_meta_not_found", content_type=content_type, id=identifier)
            return None

        return merge_meta(item, await self._enrich(item))

    async def _enrich(self, item: ContentItem) -> MetaEnrichment | None:
        if self._metadata is None:
            return None
        try:
            if item.imdb_id:
                found = await self._metadata.lookup(item.imdb_id, item.kind)
                if found is not None:
                    return found
            if item.year is None:
                return None
            return await self._metadata.search(item.name, item.year, item.kind)
        except Exception:
            log.warning(
                "stremio_meta_enrichment_failed",
                id=item.id,
                title=item.name,
                exc_info=True,
            )
            return None
