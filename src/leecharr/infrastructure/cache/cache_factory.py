"""Cache factory - builds the adapter selected by configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import structlog

from leecharr.domain.ports.cache import CachePort
from leecharr.infrastructure.cache.diskcache_adapter import DiskcacheAdapter
from leecharr.infrastructure.cache.null_adapter import NullCacheAdapter

log = structlog.get_logger(__name__)

CacheBackend = Literal["diskcache", "memory"]


def create_cache(
    backend: CacheBackend = "diskcache",
    *,
    directory: str | Path = "./.cache/leecharr",
    ttl_seconds: int = 4 * 60 * 60,
    max_concurrent: int = 10,
    disabled: bool = False,
) -> CachePort:
    """Create the cache adapter for *backend*.

    Args:
        backend: "diskcache" (SQLite) or "memory" (no-op).
        directory: Diskcache path.
        ttl_seconds: Default TTL.
        max_concurrent: Semaphore limit for parallel disk ops.
        disabled: Force the no-op adapter regardless of backend.

    Raises:
        ValueError: If `backend` is unknown.
    """
    if disabled or backend == "memory":
        log.info("cache_factory_create", backend="null", disabled=disabled)
        return NullCacheAdapter()
    if backend == "diskcache":
        log.info(
            "cache_factory_create",
            backend=backend,
            directory=str(directory),
            ttl=ttl_seconds,
            max_concurrent=max_concurrent,
        )
        return DiskcacheAdapter(
            directory=directory,
            ttl_seconds=ttl_seconds,
            max_concurrent=max_concurrent,
        )
    raise ValueError(
        f"Unknown cache backend: {backend!r}. Must be 'diskcache' or 'memory'."
    )


async def open_cache(cache: CachePort) -> CachePort:
    """Enter *cache*; fall back to the no-op adapter if the store cannot open.

    A broken cache directory must not take the service down, it only
    disables caching.
    """
    try:
        return await cache.__aenter__()
    except OSError as exc:
        log.warning("cache_unavailable", error=str(exc))
        return await NullCacheAdapter().__aenter__()
