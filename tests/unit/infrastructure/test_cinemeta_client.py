"""Tests for CinemetaClient (key-less metadata search)."""

from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest
import respx

from balkanod.domain.providers.exceptions import ProviderTimeout, ProviderUnavailable
from balkanod.infrastructure.metadata.cinemeta import (
    CinemetaClient,
    CinemetaPreview,
    clean_title,
    pick_match,
)
from balkanod.infrastructure.metadata.codec import MISS

_BASE = "https://v3-cinemeta.strem.io"
_SEARCH_URL = f"{_BASE}/catalog/movie/top/search=Ko%20to%20tamo%20peva.json"
_META_URL = f"{_BASE}/meta/movie/tt0076276.json"

_SEARCH_RESPONSE = {
    "metas": [
        {"id": "tt9999999", "name": "Ko to tamo peva", "releaseInfo": "2019"},
        {
            "id": "tt0076276",
            "name": "Ko to tamo peva",
            "releaseInfo": "1980",
            "poster": "https://img/ktp.jpg",
        },
    ]
}

_META_RESPONSE = {
    "meta": {
        "id": "tt0076276",
        "background": "https://img/ktp-bg.jpg",
        "description": "A bus journey to Belgrade.",
        "genres": ["Comedy", "Drama"],
        "cast": ["Pavle Vuisić", "Dragan Nikolić"],
        "director": ["Slobodan Šijan"],
        "runtime": "86 min",
        "imdbRating": "8.9",
    }
}


@pytest.fixture()
def cache() -> AsyncMock:
    mock = AsyncMock()
    mock.get.return_value = None  # default: cache miss
    return mock


@pytest.fixture()
def client(cache: AsyncMock) -> CinemetaClient:
    return CinemetaClient(
        http_client=httpx.AsyncClient(), cache=cache, timeout_seconds=1.0, ttl_seconds=600
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestCleanTitle:
    def test_strips_parenthesised_suffix(self) -> None:
        assert clean_title("Ko to tamo peva (1980)") == "Ko to tamo peva"

    def test_squashes_whitespace(self) -> None:
        assert clean_title("  Bolji   život (TV) ") == "Bolji život"


class TestPickMatch:
    def test_prefers_exact_year(self) -> None:
        previews = [
            CinemetaPreview(id="a", year="2019"),
            CinemetaPreview(id="b", year=1980),
        ]
        assert pick_match(previews, 1980).id == "b"

    def test_falls_back_to_first(self) -> None:
        previews = [CinemetaPreview(id="a", year="2019"), CinemetaPreview(id="b")]
        assert pick_match(previews, 1950).id == "a"

    def test_empty(self) -> None:
        assert pick_match([], 1980) is None

    def test_release_info_range(self) -> None:
        previews = [CinemetaPreview(id="a", release_info="1987-1991")]
        assert pick_match(previews, 1987).id == "a"


# ---------------------------------------------------------------------------
# search()
# ---------------------------------------------------------------------------


class TestSearch:
    @respx.mock
    @pytest.mark.asyncio()
    async def test_match_with_meta(self, client: CinemetaClient, cache: AsyncMock) -> None:
        respx.get(_SEARCH_URL).respond(json=_SEARCH_RESPONSE)
        respx.get(_META_URL).respond(json=_META_RESPONSE)

        result = await client.search("Ko to tamo peva", 1980, "movie")

        assert result is not None
        assert result.imdb_id == "tt0076276"
        assert result.poster == "https://img/ktp.jpg"
        assert result.director == "Slobodan Šijan"
        assert result.imdb_rating == "8.9"
        assert result.genres == ("Comedy", "Drama")
        cache.set.assert_awaited_once()
        key = cache.set.call_args[0][0]
        assert key == "cinemeta:movie:ko to tamo peva:1980"
        assert cache.set.call_args[1]["ttl"] == 600

    @respx.mock
    @pytest.mark.asyncio()
    async def test_meta_missing_keeps_preview_data(self, client: CinemetaClient) -> None:
        respx.get(_SEARCH_URL).respond(json=_SEARCH_RESPONSE)
        respx.get(_META_URL).respond(status_code=404)

        result = await client.search("Ko to tamo peva", 1980, "movie")

        assert result is not None
        assert result.imdb_id == "tt0076276"
        assert result.description is None

    @respx.mock
    @pytest.mark.asyncio()
    async def test_no_results_caches_miss(
        self, client: CinemetaClient, cache: AsyncMock
    ) -> None:
        respx.get(_SEARCH_URL).respond(json={"metas": []})

        assert await client.search("Ko to tamo peva", 1980, "movie") is None
        cache.set.assert_awaited_once()
        assert cache.set.call_args[0][1] == MISS

    @pytest.mark.asyncio()
    async def test_cached_miss(self, client: CinemetaClient, cache: AsyncMock) -> None:
        cache.get.return_value = MISS
        assert await client.search("Ko to tamo peva", 1980, "movie") is None

    @pytest.mark.asyncio()
    async def test_cached_hit(self, client: CinemetaClient, cache: AsyncMock) -> None:
        cache.get.return_value = {"imdb_id": "tt0076276", "genres": ["Comedy"]}

        result = await client.search("Ko to tamo peva", 1980, "movie")

        assert result is not None
        assert result.imdb_id == "tt0076276"
        assert result.genres == ("Comedy",)

    @pytest.mark.asyncio()
    async def test_blank_title(self, client: CinemetaClient, cache: AsyncMock) -> None:
        assert await client.search("(TV)", None, "series") is None
        cache.get.assert_not_awaited()

    @respx.mock
    @pytest.mark.asyncio()
    async def test_server_error_raises(self, client: CinemetaClient) -> None:
        respx.get(_SEARCH_URL).respond(status_code=500)
        with pytest.raises(ProviderUnavailable):
            await client.search("Ko to tamo peva", 1980, "movie")

    @respx.mock
    @pytest.mark.asyncio()
    async def test_timeout_raises(self, client: CinemetaClient) -> None:
        respx.get(_SEARCH_URL).mock(side_effect=httpx.ReadTimeout("slow"))
        with pytest.raises(ProviderTimeout):
            await client.search("Ko to tamo peva", 1980, "movie")


# ---------------------------------------------------------------------------
# lookup()
# ---------------------------------------------------------------------------


class TestLookup:
    @respx.mock
    @pytest.mark.asyncio()
    async def test_fetches_meta_by_id(self, client: CinemetaClient, cache: AsyncMock) -> None:
        meta = respx.get(_META_URL).respond(json=_META_RESPONSE)

        result = await client.lookup("tt0076276", "movie")

        assert meta.call_count == 1
        assert result is not None
        assert result.imdb_id == "tt0076276"
        assert result.background == "https://img/ktp-bg.jpg"
        assert result.runtime == "86 min"
        assert cache.set.call_args[0][0] == "cinemeta:movie:id:tt0076276"

    @respx.mock
    @pytest.mark.asyncio()
    async def test_unknown_id_caches_miss(
        self, client: CinemetaClient, cache: AsyncMock
    ) -> None:
        respx.get(_META_URL).respond(status_code=404)

        assert await client.lookup("tt0076276", "movie") is None
        assert cache.set.call_args[0][1] == MISS

    @pytest.mark.asyncio()
    async def test_cached_hit_skips_network(
        self, client: CinemetaClient, cache: AsyncMock
    ) -> None:
        cache.get.return_value = {"imdb_id": "tt0076276", "runtime": "86 min"}

        result = await client.lookup("tt0076276", "movie")

        assert result is not None
        assert result.runtime == "86 min"

    @respx.mock
    @pytest.mark.asyncio()
    async def test_server_error_raises(self, client: CinemetaClient) -> None:
        respx.get(_META_URL).respond(status_code=502)
        with pytest.raises(ProviderUnavailable):
            await client.lookup("tt0076276", "movie")
