"""Content repository loaded from a JSON snapshot."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from balkanod.domain.entities.catalog import ContentItem, ContentKind, Episode
from balkanod.domain.providers.exceptions import ContentNotFoundError
from balkanod.infrastructure.content.snapshot import ItemRecord

log = structlog.get_logger(__name__)

_SECTIONS: dict[str, ContentKind] = {"movies": "movie", "series": "series"}


class JsonContentRepository:
    """Immutable in-memory index over the curated catalog.

    Items are indexed by id and by IMDb id; episodes by their composite
    ``<series id>:<season>:<episode>`` key. Built once, read concurrently.

    Implements ``ContentRepositoryPort``.
    """

    def __init__(self, items: Iterable[ContentItem]) -> None:
        self._by_id: dict[str, ContentItem] = {}
        self._by_imdb: dict[str, ContentItem] = {}
        self._episodes: dict[str, tuple[ContentItem, Episode]] = {}
        self._by_kind: dict[ContentKind, list[ContentItem]] = {"movie": [], "series": []}

        for item in items:
            if item.id in self._by_id:
                log.warning("content_duplicate_id", id=item.id)
                continue
            self._by_id[item.id] = item
            self._by_kind[item.kind].append(item)
            if item.imdb_id:
                self._by_imdb.setdefault(item.imdb_id, item)
            for episode in item.episodes:
                self._episodes.setdefault(episode.id, (item, episode))

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> JsonContentRepository:
        """Build from parsed snapshot JSON; malformed records are skipped."""
        items: list[ContentItem] = []
        skipped = 0
        for section, kind in _SECTIONS.items():
            for raw in data.get(section) or []:
                try:
                    items.append(ItemRecord.model_validate(raw).to_entity(kind))
                except ValidationError as e:
                    skipped += 1
                    log.warning(
                        "content_record_invalid",
                        section=section,
                        record_id=raw.get("id") if isinstance(raw, Mapping) else None,
                        errors=e.error_count(),
                    )
        repo = cls(items)
        log.info(
            "content_loaded",
            movies=repo.count("movie"),
            series=repo.count("series"),
            episodes=len(repo._episodes),
            skipped=skipped,
        )
        return repo

    @classmethod
    def from_file(cls, path: Path) -> JsonContentRepository:
        """Load the snapshot at ``path``.

        Raises:
            FileNotFoundError: snapshot missing.
            ValueError: file is not a JSON object.
        """
        if not path.exists():
            raise FileNotFoundError(path)
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Content snapshot must be a JSON object, got: {type(data)!r}")
        return cls.from_mapping(data)

    # ------------------------------------------------------------------
    # ContentRepositoryPort
    # ------------------------------------------------------------------

    def get(self, identifier: str) -> ContentItem:
        item = self._by_id.get(identifier) or self._by_imdb.get(identifier)
        if item is None:
            raise ContentNotFoundError(identifier)
        return item

    def get_episode(self, identifier: str) -> tuple[ContentItem, Episode]:
        hit = self._episodes.get(identifier)
        if hit is not None:
            return hit

        # IMDb-style series ids: tt123:1:2
        series_id, sep, rest = identifier.partition(":")
        if sep and series_id in self._by_imdb:
            series = self._by_imdb[series_id]
            hit = self._episodes.get(f"{series.id}:{rest}")
            if hit is not None:
                return hit
        raise ContentNotFoundError(identifier)

    def list_by_kind(self, kind: ContentKind) -> list[ContentItem]:
        return list(self._by_kind.get(kind, []))

    def count(self, kind: ContentKind) -> int:
        return len(self._by_kind.get(kind, []))
