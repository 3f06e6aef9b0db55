"""Redis adapter via ``redis.asyncio``."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

log = structlog.get_logger(__name__)


class RedisAdapter:
    """Async Redis cache shared between addon workers.

    - Values are stored as JSON text under ``key_prefix + key``.
    - A semaphore limits parallel Redis ops.
    - Redis errors are logged and degrade to cache misses.

    Args:
        url: Redis URL (e.g. ``redis://localhost:6379/0``).
        ttl_seconds: Default TTL.
        key_prefix: Namespace for every key this adapter touches.
        max_concurrent: Max parallel Redis ops.
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        *,
        ttl_seconds: int = 3600,
        key_prefix: str = "balkanod:",
        max_concurrent: int = 50,
    ) -> None:
        self.url = url
        self.default_ttl = ttl_seconds
        self.key_prefix = key_prefix
        self._client: Redis | None = None
        self._semaphore = asyncio.Semaphore(max_concurrent)

        log.info("redis_adapter_init", url=url, default_ttl=ttl_seconds)

    async def __aenter__(self) -> RedisAdapter:
        if self._client is None:
            self._client = Redis.from_url(
                self.url, encoding="utf-8", decode_responses=True
            )
            try:
                await self._client.ping()
                log.info("redis_connected", url=self.url)
            except RedisError as e:
                log.error("redis_connection_failed", url=self.url, error=str(e))
                raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            log.info("redis_closed")

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def get(self, key: str) -> Any | None:
        if self._client is None:
            raise RuntimeError("Redis not initialized. Use 'async with cache:'")

        async with self._semaphore:
            try:
                raw = await self._client.get(self._key(key))
            except RedisError as e:
                log.error("redis_get_error", key=key, error=str(e))
                return None
        if raw is None:
            log.debug("cache_get", key=key, hit=False)
            return None
        try:
            value = json.loads(raw)
        except ValueError:
            log.warning("redis_corrupt_entry", key=key)
            return None
        log.debug("cache_get", key=key, hit=True)
        return value

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        if self._client is None:
            raise RuntimeError("Redis not initialized.")

        expire = ttl if ttl is not None else self.default_ttl
        try:
            packed = json.dumps(value)
        except (TypeError, ValueError) as e:
            log.error("redis_serialize_error", key=key, error=str(e))
            return

        async with self._semaphore:
            try:
                if expire > 0:
                    await self._client.setex(self._key(key), expire, packed)
                else:
                    await self._client.set(self._key(key), packed)
                log.debug("cache_set", key=key, ttl=expire, size_bytes=len(packed))
            except RedisError as e:
                log.error("redis_set_error", key=key, error=str(e))

    async def delete(self, key: str) -> bool:
        if self._client is None:
            return False
        async with self._semaphore:
            try:
                return await self._client.delete(self._key(key)) > 0
            except RedisError as e:
                log.error("redis_delete_error", key=key, error=str(e))
                return False

    async def exists(self, key: str) -> bool:
        if self._client is None:
            return False
        async with self._semaphore:
            try:
                return await self._client.exists(self._key(key)) > 0
            except RedisError as e:
                log.error("redis_exists_error", key=key, error=str(e))
                return False

    async def clear(self) -> None:
        """Delete every key under this adapter's prefix."""
        if self._client is None:
            return
        async with self._semaphore:
            try:
                keys = [k async for k in self._client.scan_iter(f"{self.key_prefix}*")]
                if keys:
                    await self._client.delete(*keys)
                log.warning("cache_cleared", backend="redis", keys=len(keys))
            except RedisError as e:
                log.error("redis_clear_error", error=str(e))
