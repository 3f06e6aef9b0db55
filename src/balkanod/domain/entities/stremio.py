"""Stream resolution value objects."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from balkanod.domain.entities.catalog import ContentKind, DirectSource


class SourceKind(str, Enum):
    """Where a candidate's bytes come from."""

    DIRECT_CDN = "direct-cdn"
    PROXIED_HOST = "proxied-host"
    EMBEDDED_PLAYER = "embedded-player"


@dataclass(frozen=True)
class StreamCandidate:
    """One playable option for a title.

    ``locator`` is either a URL or, for ``EMBEDDED_PLAYER`` candidates, the
    opaque reference the player's built-in video widget understands.
    ``tier`` orders candidates of one provider by playability before quality
    (0 is best).
    """

    locator: str
    quality: str
    source_kind: SourceKind
    provider: str
    group: str = ""
    tier: int = 0
    title: str = ""
    file_index: int | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "locator": self.locator,
            "quality": self.quality,
            "source_kind": self.source_kind.value,
            "provider": self.provider,
            "group": self.group,
            "tier": self.tier,
            "title": self.title,
            "file_index": self.file_index,
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> StreamCandidate:
        file_index = data.get("file_index")
        return cls(
            locator=str(data["locator"]),
            quality=str(data.get("quality", "")),
            source_kind=SourceKind(data["source_kind"]),
            provider=str(data.get("provider", "")),
            group=str(data.get("group", "")),
            tier=int(data.get("tier", 0)),  # type: ignore[arg-type]
            title=str(data.get("title", "")),
            file_index=int(file_index) if file_index is not None else None,  # type: ignore[arg-type]
        )


@dataclass(frozen=True)
class ProviderQuery:
    """Everything an adapter may need to look for streams of one title."""

    identifier: str
    title: str
    kind: ContentKind
    year: int | None = None
    video_id: str | None = None
    archive_id: str | None = None
    sources: tuple[DirectSource, ...] = ()
    group: str = ""
    season: int | None = None
    episode: int | None = None


@dataclass(frozen=True)
class StremioStreamRequest:
    """Parsed ``/stream/{type}/{id}.json`` request."""

    identifier: str
    content_type: ContentKind

    @property
    def is_episode(self) -> bool:
        """Series stream ids end in ``:<season>:<episode>``."""
        if self.content_type != "series":
            return False
        parts = self.identifier.rsplit(":", 2)
        return len(parts) == 3 and parts[1].isdigit() and parts[2].isdigit()
