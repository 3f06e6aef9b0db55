"""Metadata search port (Cinemeta, TMDB)."""

from __future__ import annotations

from typing import Protocol

from balkanod.domain.entities.catalog import ContentKind, MetaEnrichment


class MetadataSearchPort(Protocol):
    """Look up artwork and credits for a title by IMDb id or by name and year."""

    async def lookup(self, imdb_id: str, kind: ContentKind) -> MetaEnrichment | None:
        """Return the record behind an IMDb id (``tt...``).

        Returns None when the id is unknown.
        """
        ...

    async def search(
        self, title: str, year: int | None, kind: ContentKind
    ) -> MetaEnrichment | None:
        """Return the best match, preferring an exact year match.

        Returns None when nothing was found.
        """
        ...
