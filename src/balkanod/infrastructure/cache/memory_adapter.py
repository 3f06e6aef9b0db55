"""In-process LRU cache with per-entry expiry."""

from __future__ import annotations

import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Any

import structlog

log = structlog.get_logger(__name__)


class MemoryCacheAdapter:
    """Bounded LRU map implementing ``CachePort``.

    - Holds at most ``max_entries``; the least recently read or written
      entry is evicted first.
    - Expired entries are dropped lazily when touched.
    - ``clock`` is injectable so tests can move time forward.
    """

    def __init__(
        self,
        *,
        max_entries: int = 2048,
        ttl_seconds: int = 3600,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be > 0")
        self.max_entries = max_entries
        self.default_ttl = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float | None, Any]] = OrderedDict()

        log.info(
            "memory_cache_init",
            max_entries=max_entries,
            default_ttl=ttl_seconds,
        )

    async def __aenter__(self) -> MemoryCacheAdapter:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def _live(self, key: str) -> tuple[float | None, Any] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, _ = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._entries[key]
            return None
        return entry

    async def get(self, key: str) -> Any | None:
        entry = self._live(key)
        log.debug("cache_get", key=key, hit=entry is not None)
        if entry is None:
            return None
        self._entries.move_to_end(key)
        return entry[1]

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        expire = ttl if ttl is not None else self.default_ttl
        # ttl <= 0 means "no expiry" (same as diskcache's expire=None)
        expires_at = self._clock() + expire if expire and expire > 0 else None
        self._entries[key] = (expires_at, value)
        self._entries.move_to_end(key)

        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            log.debug("cache_evicted", key=evicted)

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    async def exists(self, key: str) -> bool:
        return self._live(key) is not None

    async def clear(self) -> None:
        self._entries.clear()
        log.warning("cache_cleared", backend="memory")
