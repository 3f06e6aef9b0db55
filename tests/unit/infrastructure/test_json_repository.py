"""Tests for JsonContentRepository and the snapshot record models."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from balkanod.domain.entities.catalog import ContentItem
from balkanod.domain.providers.exceptions import ContentNotFoundError
from balkanod.infrastructure.content.json_repository import JsonContentRepository


class TestLookup:
    def test_get_by_id(self, repository: JsonContentRepository) -> None:
        item = repository.get("movie:123")
        assert item.name == "Ko to tamo peva"
        assert item.kind == "movie"
        assert item.sources[0].url == "https://cdn.example/a.mp4"

    def test_get_by_imdb_id(self, repository: JsonContentRepository) -> None:
        assert repository.get("tt0076276").id == "movie:123"

    def test_unknown_raises(self, repository: JsonContentRepository) -> None:
        with pytest.raises(ContentNotFoundError) as exc:
            repository.get("movie:does-not-exist")
        assert exc.value.identifier == "movie:does-not-exist"

    def test_get_episode(self, repository: JsonContentRepository) -> None:
        series, episode = repository.get_episode("bilosta:bolji-zivot:1:1")
        assert series.id == "bilosta:bolji-zivot"
        assert episode.sources[0].url == "https://cdn.example/bz/s01e01.mp4"
        assert episode.sources[0].quality == "SD"

    def test_get_episode_by_imdb_series_id(self, repository: JsonContentRepository) -> None:
        _, episode = repository.get_episode("tt0211206:1:2")
        assert episode.video_id == "vid-bz-s1e2"

    def test_unknown_episode_raises(self, repository: JsonContentRepository) -> None:
        with pytest.raises(ContentNotFoundError):
            repository.get_episode("bilosta:bolji-zivot:9:9")

    def test_list_and_count(self, repository: JsonContentRepository) -> None:
        assert repository.count("movie") == 3
        assert repository.count("series") == 1
        assert [i.id for i in repository.list_by_kind("series")] == ["bilosta:bolji-zivot"]


class TestSnapshotParsing:
    def test_year_range_takes_first_year(self, repository: JsonContentRepository) -> None:
        assert repository.get("bilosta:bolji-zivot").year == 1987

    def test_comma_separated_genres(self, repository: JsonContentRepository) -> None:
        assert repository.get("bilosta:maratonci").genres == ("Comedy", "Crime")

    def test_video_id_from_yt_prefix(self, repository: JsonContentRepository) -> None:
        assert repository.get("yt:vid-valter").video_id == "vid-valter"

    def test_archive_id_from_prefix(self) -> None:
        repo = JsonContentRepository.from_mapping(
            {"movies": [{"id": "archive:bitka-1969", "title": "Bitka"}]}
        )
        assert repo.get("archive:bitka-1969").archive_id == "bitka-1969"

    def test_episodes_sorted_with_composite_ids(
        self, repository: JsonContentRepository
    ) -> None:
        series = repository.get("bilosta:bolji-zivot")
        assert [e.id for e in series.episodes] == [
            "bilosta:bolji-zivot:1:1",
            "bilosta:bolji-zivot:1:2",
        ]

    def test_flat_videos_list(self) -> None:
        repo = JsonContentRepository.from_mapping(
            {
                "series": [
                    {
                        "id": "s:1",
                        "name": "Grlom u jagode",
                        "videos": [
                            {"season": 1, "episode": 2, "youtubeId": "y2"},
                            {"number": 1, "youtubeId": "y1"},
                        ],
                    }
                ]
            }
        )
        episodes = repo.get("s:1").episodes
        assert [(e.season, e.episode, e.video_id) for e in episodes] == [
            (1, 1, "y1"),
            (1, 2, "y2"),
        ]
        assert episodes[0].title == "Episode 1"

    def test_invalid_records_are_skipped(self) -> None:
        data: dict[str, Any] = {
            "movies": [
                {"id": "", "name": "No id"},
                {"id": "m:2"},
                {"id": "m:3", "name": "Ok", "streams": [{"url": "  "}]},
                {"id": "m:4", "name": "Fine"},
            ]
        }
        repo = JsonContentRepository.from_mapping(data)
        assert [i.id for i in repo.list_by_kind("movie")] == ["m:4"]

    def test_duplicate_ids_keep_first(self) -> None:
        repo = JsonContentRepository(
            [
                ContentItem(id="m:1", name="First", kind="movie"),
                ContentItem(id="m:1", name="Second", kind="movie"),
            ]
        )
        assert repo.get("m:1").name == "First"
        assert repo.count("movie") == 1


class TestFromFile:
    def test_loads_file(self, tmp_path: Path, snapshot: dict[str, Any]) -> None:
        path = tmp_path / "content.json"
        path.write_text(json.dumps(snapshot), encoding="utf-8")
        repo = JsonContentRepository.from_file(path)
        assert repo.count("movie") == 3

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            JsonContentRepository.from_file(tmp_path / "missing.json")

    def test_non_object_root(self, tmp_path: Path) -> None:
        path = tmp_path / "content.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(ValueError):
            JsonContentRepository.from_file(path)
