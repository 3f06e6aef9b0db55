"""Shared test fixtures for the balkanod test suite."""

from __future__ import annotations

import copy
from typing import Any

import pytest

from balkanod.domain.entities.stremio import SourceKind, StreamCandidate
from balkanod.infrastructure.cache.memory_adapter import MemoryCacheAdapter
from balkanod.infrastructure.content.json_repository import JsonContentRepository

# ---------------------------------------------------------------------------
# Content snapshot fixtures
# ---------------------------------------------------------------------------

SNAPSHOT: dict[str, Any] = {
    "movies": [
        {
            "id": "movie:123",
            "name": "Ko to tamo peva",
            "year": 1980,
            "genres": ["Comedy", "Drama"],
            "imdb_id": "tt0076276",
            "streams": [{"url": "https://cdn.example/a.mp4", "quality": "HD"}],
        },
        {
            "id": "bilosta:maratonci",
            "name": "Maratonci trče počasni krug",
            "year": 1982,
            "genres": "Comedy, Crime",
            "youtube_id": "vid-maratonci",
            "archive_id": "maratonci-1982",
        },
        {
            "id": "yt:vid-valter",
            "name": "Valter brani Sarajevo",
            "year": 1972,
            "genres": ["War"],
        },
    ],
    "series": [
        {
            "id": "bilosta:bolji-zivot",
            "name": "Bolji život",
            "year": "1987-1991",
            "genres": ["Drama"],
            "imdb_id": "tt0211206",
            "seasons": [
                {
                    "number": 1,
                    "episodes": [
                        {
                            "episode": 2,
                            "title": "Epizoda 2",
                            "youtube_id": "vid-bz-s1e2",
                        },
                        {
                            "episode": 1,
                            "title": "Epizoda 1",
                            "url": "https://cdn.example/bz/s01e01.mp4",
                            "quality": "SD",
                        },
                    ],
                }
            ],
        }
    ],
}


@pytest.fixture()
def snapshot() -> dict[str, Any]:
    """Raw snapshot mapping (fresh copy per test)."""
    return copy.deepcopy(SNAPSHOT)


@pytest.fixture()
def repository(snapshot: dict[str, Any]) -> JsonContentRepository:
    """Repository built from the sample snapshot."""
    return JsonContentRepository.from_mapping(snapshot)


# ---------------------------------------------------------------------------
# Infrastructure fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def memory_cache() -> MemoryCacheAdapter:
    return MemoryCacheAdapter(max_entries=64, ttl_seconds=3600)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def _make_candidate(
    locator: str,
    quality: str = "HD",
    *,
    provider: str = "direct-cdn",
    source_kind: SourceKind = SourceKind.DIRECT_CDN,
    tier: int = 0,
    group: str = "",
) -> StreamCandidate:
    """StreamCandidate with sensible defaults."""
    return StreamCandidate(
        locator=locator,
        quality=quality,
        source_kind=source_kind,
        provider=provider,
        group=group,
        tier=tier,
    )


@pytest.fixture()
def make_candidate():
    """Factory fixture for StreamCandidate objects."""
    return _make_candidate
