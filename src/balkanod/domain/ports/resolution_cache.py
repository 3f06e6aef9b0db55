"""Resolution cache port."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol

from balkanod.domain.entities.stremio import StreamCandidate


class ResolutionCachePort(Protocol):
    """Stores ranked candidate lists per content identifier."""

    async def get(self, identifier: str) -> list[StreamCandidate] | None:
        """Cached result, or None on miss/expiry."""
        ...

    async def put(self, identifier: str, candidates: list[StreamCandidate]) -> None:
        ...

    async def get_or_resolve(
        self,
        identifier: str,
        resolver: Callable[[], Awaitable[list[StreamCandidate]]],
    ) -> list[StreamCandidate]:
        """Return the cached result or run ``resolver`` once for all concurrent callers."""
        ...
