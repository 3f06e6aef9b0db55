"""Cache port: async key/value store with per-entry expiry."""

from __future__ import annotations

from typing import Any, Protocol


class CachePort(Protocol):
    """Port for an async key/value cache with TTL support.

    Implementations:
      - MemoryCacheAdapter (bounded in-process LRU)
      - DiskcacheAdapter (SQLite-based, survives restarts)
      - RedisAdapter (shared between workers)

    Values are JSON-compatible (dicts, lists, strings, numbers). Every
    adapter is an async context manager:
        async with cache:
            await cache.set("key", value)
    """

    async def get(self, key: str) -> Any:
        """Return the stored value, or None when missing or expired."""
        ...

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        """Store a value; ``ttl`` in seconds overrides the adapter default."""
        ...

    async def delete(self, key: str) -> bool:
        """Delete key. True = deleted, False = did not exist."""
        ...

    async def exists(self, key: str) -> bool:
        ...

    async def clear(self) -> None:
        """Drop every entry."""
        ...

    async def aclose(self) -> None:
        ...

    async def __aenter__(self) -> CachePort: ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None: ...
