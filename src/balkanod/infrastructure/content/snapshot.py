"""Validated record types for the on-disk content snapshot.

The snapshot is produced by offline import tooling from several sources, so
field names drift between records (``streams``/``sources``, ``seasons`` or
flat ``videos``). These models accept the known spellings and convert to
domain entities.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from balkanod.domain.entities.catalog import (
    ContentItem,
    ContentKind,
    DirectSource,
    Episode,
)


def _as_tuple(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(part.strip() for part in value.split(",") if part.strip())
    return tuple(str(v) for v in value if v)


class _Record(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class SourceRecord(_Record):
    url: str
    quality: str = "HD"
    source: str = ""
    file_idx: int | None = Field(
        default=None, validation_alias=AliasChoices("file_idx", "fileIdx")
    )

    @field_validator("url")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("stream url is empty")
        return v.strip()

    def to_entity(self) -> DirectSource:
        return DirectSource(
            url=self.url,
            quality=self.quality or "HD",
            source=self.source,
            file_index=self.file_idx,
        )


class EpisodeRecord(_Record):
    episode: int = Field(validation_alias=AliasChoices("episode", "number"))
    season: int | None = None
    title: str = ""
    url: str | None = None
    quality: str = "HD"
    youtube_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("youtube_id", "youtubeId", "ytId", "id"),
    )
    thumbnail: str | None = None
    released: str | None = None
    streams: list[SourceRecord] = Field(default_factory=list)


class SeasonRecord(_Record):
    number: int = Field(validation_alias=AliasChoices("number", "season"))
    episodes: list[EpisodeRecord] = Field(default_factory=list)


class ItemRecord(_Record):
    id: str
    name: str = Field(validation_alias=AliasChoices("name", "title"))
    year: int | None = None
    genres: tuple[str, ...] = Field(
        default=(), validation_alias=AliasChoices("genres", "genre")
    )
    poster: str | None = None
    background: str | None = None
    description: str | None = None
    cast: tuple[str, ...] = ()
    director: str | None = None
    country: str | None = None
    imdb_id: str | None = Field(
        default=None, validation_alias=AliasChoices("imdb_id", "imdbId")
    )
    youtube_id: str | None = Field(
        default=None, validation_alias=AliasChoices("youtube_id", "youtubeId", "ytId")
    )
    archive_id: str | None = Field(
        default=None, validation_alias=AliasChoices("archive_id", "archiveId")
    )
    streams: list[SourceRecord] = Field(
        default_factory=list, validation_alias=AliasChoices("streams", "sources")
    )
    seasons: list[SeasonRecord] = Field(default_factory=list)
    videos: list[EpisodeRecord] = Field(default_factory=list)

    @field_validator("id")
    @classmethod
    def _strip_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("id is empty")
        return v

    @field_validator("genres", "cast", mode="before")
    @classmethod
    def _split_list(cls, v: Any) -> tuple[str, ...]:
        return _as_tuple(v)

    @field_validator("year", mode="before")
    @classmethod
    def _parse_year(cls, v: Any) -> int | None:
        # "1985", "1985-1990" and 1985 all appear in the wild
        if v in (None, ""):
            return None
        if isinstance(v, int):
            return v
        head = str(v).strip()[:4]
        return int(head) if head.isdigit() else None

    def _video_id(self) -> str | None:
        if self.youtube_id:
            return self.youtube_id
        if self.id.startswith("yt:"):
            return self.id[len("yt:") :]
        return None

    def _archive_id(self) -> str | None:
        if self.archive_id:
            return self.archive_id
        if self.id.startswith("archive:"):
            return self.id[len("archive:") :]
        return None

    def _episodes(self) -> tuple[Episode, ...]:
        flat: list[tuple[int, EpisodeRecord]] = []
        for season in self.seasons:
            flat.extend((season.number, ep) for ep in season.episodes)
        for ep in self.videos:
            flat.append((ep.season if ep.season is not None else 1, ep))

        episodes: list[Episode] = []
        for season_no, ep in flat:
            sources = [s.to_entity() for s in ep.streams]
            if ep.url:
                sources.insert(0, DirectSource(url=ep.url, quality=ep.quality))
            episodes.append(
                Episode(
                    id=f"{self.id}:{season_no}:{ep.episode}",
                    season=season_no,
                    episode=ep.episode,
                    title=ep.title or f"Episode {ep.episode}",
                    video_id=ep.youtube_id,
                    thumbnail=ep.thumbnail,
                    released=ep.released,
                    sources=tuple(sources),
                )
            )
        episodes.sort(key=lambda e: (e.season, e.episode))
        return tuple(episodes)

    def to_entity(self, kind: ContentKind) -> ContentItem:
        return ContentItem(
            id=self.id,
            name=self.name,
            kind=kind,
            year=self.year,
            genres=self.genres,
            poster=self.poster,
            background=self.background,
            description=self.description,
            cast=self.cast,
            director=self.director,
            country=self.country,
            imdb_id=self.imdb_id,
            video_id=self._video_id(),
            archive_id=self._archive_id(),
            sources=tuple(s.to_entity() for s in self.streams),
            episodes=self._episodes() if kind == "series" else (),
        )
