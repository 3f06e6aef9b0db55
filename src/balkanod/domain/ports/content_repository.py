"""Port for read-only access to the curated content snapshot."""

from __future__ import annotations

from typing import Protocol

from balkanod.domain.entities.catalog import ContentItem, ContentKind, Episode


class ContentRepositoryPort(Protocol):
    """Immutable lookup over movies, series and their episodes.

    Lookups raise ``ContentNotFoundError`` for unknown identifiers; callers
    treat that as an ordinary empty answer.
    """

    def get(self, identifier: str) -> ContentItem:
        """Return the movie or series with this id (or IMDb id)."""
        ...

    def get_episode(self, identifier: str) -> tuple[ContentItem, Episode]:
        """Return the parent series and the episode for a composite episode id."""
        ...

    def list_by_kind(self, kind: ContentKind) -> list[ContentItem]:
        """Return all items of one kind in snapshot order."""
        ...

    def count(self, kind: ContentKind) -> int:
        ...
