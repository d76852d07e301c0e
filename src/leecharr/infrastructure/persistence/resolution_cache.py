"""Intermediate resolution results backed by CachePort (diskcache)."""

from __future__ import annotations

import json
import time
from typing import Any, Callable

import structlog

from leecharr.domain.entities import ContentQuery, ResolutionChainResult
from leecharr.domain.ports.cache import CachePort

log = structlog.get_logger(__name__)


def _serialize(results: list[ResolutionChainResult], expiry: float) -> str:
    return json.dumps(
        {"expiry": expiry, "data": [result.to_dict() for result in results]}
    )


def _deserialize(raw: str) -> tuple[float, list[ResolutionChainResult]]:
    payload: dict[str, Any] = json.loads(raw)
    expiry = float(payload["expiry"])
    results = [ResolutionChainResult.from_dict(item) for item in payload["data"]]
    return expiry, results


class CacheResolutionStore:
    """Stores pre-terminal chain results per provider and content.

    Entries carry their own expiry timestamp so a stale entry is treated
    as a miss even if the backend kept it around. Final download URLs
    are never written here; they expire upstream within minutes.
    """

    def __init__(
        self,
        cache: CachePort,
        ttl_seconds: int = 4 * 60 * 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.cache = cache
        self.ttl = ttl_seconds
        self._clock = clock

    def fingerprint(self, provider: str, query: ContentQuery) -> str:
        key = f"resolution:{provider}:{query.content_id}:{query.media_type}"
        if query.is_series and query.season is not None:
            key += f":s{query.season}"
        return key

    async def get(self, key: str) -> list[ResolutionChainResult] | None:
        raw = await self.cache.get(key)
        if raw is None:
            log.debug("resolution_cache_miss", key=key)
            return None

        try:
            expiry, results = _deserialize(raw)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            log.warning("resolution_cache_corrupt", key=key, error=str(e))
            await self._evict(key)
            return None

        if expiry <= self._clock():
            log.debug("resolution_cache_expired", key=key)
            await self._evict(key)
            return None

        log.debug("resolution_cache_hit", key=key, results=len(results))
        return results

    async def put(self, key: str, results: list[ResolutionChainResult]) -> None:
        expiry = self._clock() + self.ttl
        try:
            await self.cache.set(key, _serialize(results, expiry), ttl=self.ttl)
        except OSError as e:
            log.warning("resolution_cache_write_failed", key=key, error=str(e))
            return
        log.debug("resolution_cache_saved", key=key, results=len(results), ttl=self.ttl)

    async def _evict(self, key: str) -> None:
        try:
            await self.cache.delete(key)
        except OSError as e:
            log.warning("resolution_cache_evict_failed", key=key, error=str(e))
