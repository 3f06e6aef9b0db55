"""Stream provider port: one source of playable candidates."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from balkanod.domain.entities.stremio import ProviderQuery, StreamCandidate


@runtime_checkable
class StreamProviderPort(Protocol):
    """Adapter that turns a title into stream candidates.

    ``fallback`` providers are consulted only when every regular provider
    came back empty.
    """

    @property
    def name(self) -> str:
        """Stable provider name used in logs and candidate grouping."""
        ...

    @property
    def fallback(self) -> bool:
        ...

    async def resolve(self, query: ProviderQuery) -> list[StreamCandidate]:
        """Return candidates for ``query`` (possibly empty).

        Raises:
            ProviderUnavailable: upstream refused or errored.
            ProviderTimeout: upstream did not answer in time.
            MalformedUpstreamResponse: upstream body failed validation.
        """
        ...
