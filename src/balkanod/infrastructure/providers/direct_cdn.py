"""Direct-CDN provider: stream records shipped inside the content snapshot."""

from __future__ import annotations

from balkanod.domain.entities.stremio import ProviderQuery, SourceKind, StreamCandidate


def display_quality(label: str) -> str:
    """Player-facing label for a snapshot quality string."""
    label = (label or "").strip()
    if label.upper() == "4K":
        return "4K UHD"
    return label or "HD"


class DirectCdnProvider:
    """Turns the snapshot's pre-resolved stream records into candidates.

    No network I/O; never fails.
    """

    @property
    def name(self) -> str:
        return "direct-cdn"

    @property
    def fallback(self) -> bool:
        return False

    async def resolve(self, query: ProviderQuery) -> list[StreamCandidate]:
        candidates: list[StreamCandidate] = []
        for source in query.sources:
            if not source.url:
                continue
            quality = display_quality(source.quality)
            label = source.source or "Direct"
            candidates.append(
                StreamCandidate(
                    locator=source.url,
                    quality=quality,
                    source_kind=SourceKind.DIRECT_CDN,
                    provider=self.name,
                    group=query.group,
                    title=f"{label} - {quality}",
                    file_index=source.file_index,
                )
            )
        return candidates
