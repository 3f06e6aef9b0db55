"""Cache factory: builds the configured ``CachePort`` backend."""

from __future__ import annotations

import structlog

from balkanod.domain.ports.cache import CachePort
from balkanod.infrastructure.cache.diskcache_adapter import DiskcacheAdapter
from balkanod.infrastructure.cache.memory_adapter import MemoryCacheAdapter
from balkanod.infrastructure.cache.redis_adapter import RedisAdapter
from balkanod.infrastructure.config.schema import CacheConfig

log = structlog.get_logger(__name__)


def create_cache(config: CacheConfig) -> CachePort:
    """Create the cache adapter selected by ``config.backend``.

    Raises:
        ValueError: unknown backend.
    """
    log.info("cache_factory_create", backend=config.backend, ttl=config.ttl_seconds)

    if config.backend == "memory":
        return MemoryCacheAdapter(
            max_entries=config.max_entries,
            ttl_seconds=config.ttl_seconds,
        )
    if config.backend == "diskcache":
        return DiskcacheAdapter(
            directory=config.directory,
            ttl_seconds=config.ttl_seconds,
            size_limit_bytes=config.size_limit_bytes,
            max_concurrent=config.max_concurrent,
        )
    if config.backend == "redis":
        return RedisAdapter(
            url=config.redis_url,
            ttl_seconds=config.ttl_seconds,
            key_prefix=config.key_prefix,
            max_concurrent=config.max_concurrent,
        )
    raise ValueError(
        f"Unknown cache backend: {config.backend!r}. "
        "Must be 'memory', 'diskcache' or 'redis'."
    )
