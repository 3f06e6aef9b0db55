"""Stremio catalog use case: browse and filter the local snapshot."""

from __future__ import annotations

from collections.abc import Mapping

import structlog

from balkanod.domain.entities.catalog import (
    CatalogFilters,
    ContentItem,
    ContentKind,
    MetaPreview,
)
from balkanod.domain.ports.content_repository import ContentRepositoryPort

log = structlog.get_logger(__name__)


def _matches(item: ContentItem, filters: CatalogFilters) -> bool:
    if filters.genre:
        wanted = filters.genre.strip().lower()
        if not any(g.lower() == wanted for g in item.genres):
            return False
    if filters.search:
        if filters.search.strip().lower() not in item.name.lower():
            return False
    return True


def to_preview(item: ContentItem) -> MetaPreview:
    return MetaPreview(
        id=item.id,
        type=item.kind,
        name=item.name,
        poster=item.poster,
        description=item.description,
        release_info=str(item.year) if item.year else None,
        genres=item.genres,
    )


class StremioCatalogUseCase:
    """Pages through one catalog of the snapshot.

    Catalog ids map to a content kind; an unknown id or a type mismatch
    yields an empty page.
    """

    def __init__(
        self,
        repository: ContentRepositoryPort,
        *,
        catalogs: Mapping[str, ContentKind],
        page_size: int = 100,
    ) -> None:
        self._repository = repository
        self._catalogs = dict(catalogs)
        self._page_size = page_size

    def execute(
        self,
        content_type: str,
        catalog_id: str,
        filters: CatalogFilters | None = None,
    ) -> list[MetaPreview]:
        filters = filters or CatalogFilters()
        kind = self._catalogs.get(catalog_id)
        if kind is None or kind != content_type:
            log.debug(
                "stremio_catalog_unknown",
                content_type=content_type,
                catalog_id=catalog_id,
            )
            return []

        items = [i for i in self._repository.list_by_kind(kind) if _matches(i, filters)]
        skip = max(filters.skip, 0)
        page = items[skip : skip + self._page_size]

        log.debug(
            "stremio_catalog_page",
            catalog_id=catalog_id,
            genre=filters.genre,
            search=filters.search,
            skip=skip,
            matched=len(items),
            returned=len(page),
        )
        return [to_preview(i) for i in page]
