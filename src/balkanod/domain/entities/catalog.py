"""Catalog domain entities.

Pure value objects, no framework dependencies, no I/O. Content records are
loaded once from the snapshot and never mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

ContentKind = Literal["movie", "series"]


@dataclass(frozen=True)
class DirectSource:
    """A pre-resolved stream record shipped with the content snapshot."""

    url: str
    quality: str = "HD"
    source: str = ""
    file_index: int | None = None


@dataclass(frozen=True)
class Episode:
    """One episode of a series.

    ``id`` is the composite ``<series id>:<season>:<episode>`` key the
    player sends back when it requests streams for this episode.
    """

    id: str
    season: int
    episode: int
    title: str = ""
    video_id: str | None = None
    thumbnail: str | None = None
    released: str | None = None
    sources: tuple[DirectSource, ...] = ()


@dataclass(frozen=True)
class ContentItem:
    """A movie or series record from the curated snapshot."""

    id: str
    name: str
    kind: ContentKind
    year: int | None = None
    genres: tuple[str, ...] = ()
    poster: str | None = None
    background: str | None = None
    description: str | None = None
    cast: tuple[str, ...] = ()
    director: str | None = None
    country: str | None = None
    imdb_id: str | None = None
    video_id: str | None = None
    archive_id: str | None = None
    sources: tuple[DirectSource, ...] = ()
    episodes: tuple[Episode, ...] = ()

    @property
    def slug(self) -> str:
        """Last segment of the namespaced id (``bilosta:series:foo`` -> ``foo``)."""
        return self.id.rsplit(":", 1)[-1]


@dataclass(frozen=True)
class CatalogFilters:
    """Extra arguments of a catalog request."""

    genre: str | None = None
    search: str | None = None
    skip: int = 0


@dataclass(frozen=True)
class MetaEnrichment:
    """Metadata found for a title by an external metadata search."""

    imdb_id: str | None = None
    poster: str | None = None
    background: str | None = None
    logo: str | None = None
    description: str | None = None
    genres: tuple[str, ...] = ()
    cast: tuple[str, ...] = ()
    director: str | None = None
    runtime: str | None = None
    imdb_rating: str | None = None


@dataclass(frozen=True)
class MetaPreview:
    """Catalog row as shown in the player's browse view."""

    id: str
    type: ContentKind
    name: str
    poster: str | None = None
    description: str | None = None
    release_info: str | None = None
    genres: tuple[str, ...] = ()


@dataclass(frozen=True)
class MetaDetail:
    """Full detail page for a single title."""

    id: str
    type: ContentKind
    name: str
    poster: str | None = None
    background: str | None = None
    logo: str | None = None
    description: str | None = None
    release_info: str | None = None
    genres: tuple[str, ...] = ()
    cast: tuple[str, ...] = ()
    director: str | None = None
    country: str | None = None
    runtime: str | None = None
    imdb_rating: str | None = None
    videos: tuple[Episode, ...] = field(default_factory=tuple)
