"""Embedded-player fallback: hand the video id to the player's own widget."""

from __future__ import annotations

from balkanod.domain.entities.stremio import ProviderQuery, SourceKind, StreamCandidate


class EmbeddedPlayerProvider:
    """Deterministic last resort for titles with a hosted video id.

    The locator is the bare video id, rendered as ``ytId`` by the protocol
    layer. Consulted only when no other provider produced anything.
    """

    def __init__(self, group_prefix: str = "balkan") -> None:
        self._group = f"{group_prefix}-embedded"

    @property
    def name(self) -> str:
        return "embedded-player"

    @property
    def fallback(self) -> bool:
        return True

    async def resolve(self, query: ProviderQuery) -> list[StreamCandidate]:
        if not query.video_id:
            return []
        return [
            StreamCandidate(
                locator=query.video_id,
                quality="YouTube",
                source_kind=SourceKind.EMBEDDED_PLAYER,
                provider=self.name,
                group=self._group,
                title="YouTube player",
            )
        ]
