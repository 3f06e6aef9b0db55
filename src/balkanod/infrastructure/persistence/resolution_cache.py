"""Stream resolution cache backed by CachePort, with single-flight misses."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable

import structlog

from balkanod.domain.entities.stremio import StreamCandidate
from balkanod.domain.ports.cache import CachePort

log = structlog.get_logger(__name__)

_KEY_PREFIX = "streams:"


def _serialize(candidates: list[StreamCandidate]) -> str:
    return json.dumps([c.to_dict() for c in candidates])


def _deserialize(data: str) -> list[StreamCandidate]:
    return [StreamCandidate.from_dict(d) for d in json.loads(data)]


def _retrieve_exception(flight: asyncio.Task[list[StreamCandidate]]) -> None:
    # all callers may be gone; mark the error retrieved
    if not flight.cancelled():
        flight.exception()


class ResolutionCache:
    """Caches ranked candidate lists per content identifier.

    Concurrent misses for the same identifier share one resolution: the
    resolver runs in its own task and every caller awaits it shielded, so
    cancelling one caller (a disconnected client) never cancels the others.
    Empty results are not stored, so a title whose providers were all down
    is retried on the next request.
    """

    def __init__(self, cache: CachePort, ttl_seconds: int = 3600) -> None:
        self.cache = cache
        self.ttl = ttl_seconds
        self._inflight: dict[str, asyncio.Task[list[StreamCandidate]]] = {}

    @property
    def enabled(self) -> bool:
        return self.ttl > 0

    async def get(self, identifier: str) -> list[StreamCandidate] | None:
        if not self.enabled:
            return None

        data = await self.cache.get(f"{_KEY_PREFIX}{identifier}")
        if data is None:
            return None

        try:
            return _deserialize(data)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            log.error("resolution_cache_deserialize_error", identifier=identifier, error=str(e))
            return None

    async def put(self, identifier: str, candidates: list[StreamCandidate]) -> None:
        if not self.enabled or not candidates:
            return
        await self.cache.set(
            f"{_KEY_PREFIX}{identifier}", _serialize(candidates), ttl=self.ttl
        )
        log.debug(
            "resolution_cached",
            identifier=identifier,
            count=len(candidates),
            ttl=self.ttl,
        )

    async def get_or_resolve(
        self,
        identifier: str,
        resolver: Callable[[], Awaitable[list[StreamCandidate]]],
    ) -> list[StreamCandidate]:
        """Return the cached result or run ``resolver`` exactly once per key."""
        cached = await self.get(identifier)
        if cached is not None:
            log.info("resolution_cache_hit", identifier=identifier, count=len(cached))
            return cached

        flight = self._inflight.get(identifier)
        if flight is None:
            flight = asyncio.ensure_future(self._resolve_and_store(identifier, resolver))
            flight.add_done_callback(_retrieve_exception)
            self._inflight[identifier] = flight
        else:
            log.debug("resolution_joined_inflight", identifier=identifier)

        # a cancelled caller leaves the flight running for the others
        return await asyncio.shield(flight)

    async def _resolve_and_store(
        self,
        identifier: str,
        resolver: Callable[[], Awaitable[list[StreamCandidate]]],
    ) -> list[StreamCandidate]:
        try:
            result = await resolver()
            try:
                await self.put(identifier, result)
            except Exception:
                log.warning(
                    "resolution_cache_put_failed", identifier=identifier, exc_info=True
                )
            return result
        finally:
            self._inflight.pop(identifier, None)
