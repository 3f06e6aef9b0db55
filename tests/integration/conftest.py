"""Shared fixtures for integration tests.

These tests use real infrastructure components (DiskcacheAdapter,
ResolutionCache, JsonContentRepository, provider chain) with mocked HTTP
via respx.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Iterator
from pathlib import Path
from typing import Any

import httpx
import pytest
import pytest_asyncio
import respx

from balkanod.infrastructure.cache.diskcache_adapter import DiskcacheAdapter


@pytest.fixture()
def http_client() -> httpx.AsyncClient:
    """Real httpx.AsyncClient for use with respx mocking."""
    return httpx.AsyncClient()


@pytest_asyncio.fixture()
async def diskcache(tmp_path: Path) -> AsyncIterator[DiskcacheAdapter]:
    """Real DiskcacheAdapter backed by tmp_path (auto-cleaned)."""
    adapter = DiskcacheAdapter(
        directory=tmp_path / "cache",
        ttl_seconds=3600,
        max_concurrent=5,
    )
    async with adapter:
        yield adapter


@pytest.fixture()
def respx_mock() -> Iterator[respx.MockRouter]:
    """Explicit respx mock router for request interception."""
    with respx.mock(assert_all_called=False) as router:
        yield router


@pytest.fixture()
def content_file(tmp_path: Path, snapshot: dict[str, Any]) -> Path:
    """The shared snapshot written to disk as content.json."""
    path = tmp_path / "content.json"
    path.write_text(json.dumps(snapshot), encoding="utf-8")
    return path
