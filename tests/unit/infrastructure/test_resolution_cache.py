"""Tests for ResolutionCache (stream results over CachePort)."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from balkanod.domain.entities.stremio import SourceKind, StreamCandidate
from balkanod.infrastructure.cache.memory_adapter import MemoryCacheAdapter
from balkanod.infrastructure.persistence.resolution_cache import ResolutionCache

_CANDIDATES = [
    StreamCandidate(
        locator="https://cdn.example/a.mp4",
        quality="1080p",
        source_kind=SourceKind.DIRECT_CDN,
        provider="direct-cdn",
        group="balkan-movie:123",
        title="Direct - 1080p",
        file_index=0,
    ),
    StreamCandidate(
        locator="vid1",
        quality="YouTube",
        source_kind=SourceKind.EMBEDDED_PLAYER,
        provider="embedded-player",
        tier=0,
    ),
]


@pytest.fixture()
def store() -> MemoryCacheAdapter:
    return MemoryCacheAdapter(max_entries=16)


class TestGetPut:
    @pytest.mark.asyncio()
    async def test_put_then_get(self, store: MemoryCacheAdapter) -> None:
        cache = ResolutionCache(store, ttl_seconds=60)
        await cache.put("movie:123", _CANDIDATES)
        assert await cache.get("movie:123") == _CANDIDATES

    @pytest.mark.asyncio()
    async def test_stored_under_streams_key(self, store: MemoryCacheAdapter) -> None:
        cache = ResolutionCache(store, ttl_seconds=60)
        await cache.put("movie:123", _CANDIDATES)
        assert await store.exists("streams:movie:123")

    @pytest.mark.asyncio()
    async def test_empty_result_not_stored(self, store: MemoryCacheAdapter) -> None:
        cache = ResolutionCache(store, ttl_seconds=60)
        await cache.put("movie:123", [])
        assert len(store) == 0

    @pytest.mark.asyncio()
    async def test_disabled_with_zero_ttl(self, store: MemoryCacheAdapter) -> None:
        cache = ResolutionCache(store, ttl_seconds=0)
        assert cache.enabled is False
        await cache.put("movie:123", _CANDIDATES)
        assert await cache.get("movie:123") is None

    @pytest.mark.asyncio()
    async def test_corrupt_entry_is_a_miss(self, store: MemoryCacheAdapter) -> None:
        await store.set("streams:movie:123", "{not json")
        cache = ResolutionCache(store, ttl_seconds=60)
        assert await cache.get("movie:123") is None


class TestGetOrResolve:
    @pytest.mark.asyncio()
    async def test_hit_skips_resolver(self, store: MemoryCacheAdapter) -> None:
        cache = ResolutionCache(store, ttl_seconds=60)
        await cache.put("movie:123", _CANDIDATES)
        resolver = AsyncMock(return_value=[])

        assert await cache.get_or_resolve("movie:123", resolver) == _CANDIDATES
        resolver.assert_not_awaited()

    @pytest.mark.asyncio()
    async def test_miss_resolves_and_stores(self, store: MemoryCacheAdapter) -> None:
        cache = ResolutionCache(store, ttl_seconds=60)
        resolver = AsyncMock(return_value=_CANDIDATES)

        assert await cache.get_or_resolve("movie:123", resolver) == _CANDIDATES
        assert await cache.get("movie:123") == _CANDIDATES

    @pytest.mark.asyncio()
    async def test_concurrent_callers_share_one_flight(
        self, store: MemoryCacheAdapter
    ) -> None:
        cache = ResolutionCache(store, ttl_seconds=60)
        calls = 0

        async def resolver() -> list[StreamCandidate]:
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.02)
            return _CANDIDATES

        results = await asyncio.gather(
            *(cache.get_or_resolve("movie:123", resolver) for _ in range(5))
        )

        assert calls == 1
        assert all(r == _CANDIDATES for r in results)

    @pytest.mark.asyncio()
    async def test_resolver_error_reaches_every_caller(
        self, store: MemoryCacheAdapter
    ) -> None:
        cache = ResolutionCache(store, ttl_seconds=60)

        async def resolver() -> list[StreamCandidate]:
            await asyncio.sleep(0.01)
            raise RuntimeError("boom")

        results = await asyncio.gather(
            cache.get_or_resolve("movie:123", resolver),
            cache.get_or_resolve("movie:123", resolver),
            return_exceptions=True,
        )

        assert all(isinstance(r, RuntimeError) for r in results)

    @pytest.mark.asyncio()
    async def test_store_failure_still_returns_result(self) -> None:
        store = AsyncMock()
        store.get.return_value = None
        store.set.side_effect = ConnectionError("down")
        cache = ResolutionCache(store, ttl_seconds=60)

        result = await cache.get_or_resolve(
            "movie:123", AsyncMock(return_value=_CANDIDATES)
        )

        assert result == _CANDIDATES

    @pytest.mark.asyncio()
    async def test_next_miss_after_flight_resolves_again(
        self, store: MemoryCacheAdapter
    ) -> None:
        cache = ResolutionCache(store, ttl_seconds=60)
        resolver = AsyncMock(return_value=[])

        await cache.get_or_resolve("movie:123", resolver)
        await cache.get_or_resolve("movie:123", resolver)

        assert resolver.await_count == 2

    @pytest.mark.asyncio()
    async def test_cancelled_leader_does_not_cancel_joiners(
        self, store: MemoryCacheAdapter
    ) -> None:
        cache = ResolutionCache(store, ttl_seconds=60)
        release = asyncio.Event()
        calls = 0

        async def resolver() -> list[StreamCandidate]:
            nonlocal calls
            calls += 1
            await release.wait()
            return _CANDIDATES

        leader = asyncio.create_task(cache.get_or_resolve("movie:123", resolver))
        await asyncio.sleep(0.01)
        joiner = asyncio.create_task(cache.get_or_resolve("movie:123", resolver))
        await asyncio.sleep(0.01)

        leader.cancel()
        with pytest.raises(asyncio.CancelledError):
            await leader
        release.set()

        assert await joiner == _CANDIDATES
        assert calls == 1
        assert await cache.get("movie:123") == _CANDIDATES

    @pytest.mark.asyncio()
    async def test_flight_completes_when_only_caller_cancelled(
        self, store: MemoryCacheAdapter
    ) -> None:
        cache = ResolutionCache(store, ttl_seconds=60)
        release = asyncio.Event()

        async def resolver() -> list[StreamCandidate]:
            await release.wait()
            return _CANDIDATES

        caller = asyncio.create_task(cache.get_or_resolve("movie:123", resolver))
        await asyncio.sleep(0.01)
        caller.cancel()
        release.set()
        for _ in range(5):
            await asyncio.sleep(0)

        assert await cache.get("movie:123") == _CANDIDATES
