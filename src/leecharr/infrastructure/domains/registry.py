"""Current base URLs of the aggregator sites from a remote registry."""

from __future__ import annotations

import asyncio
import time
from typing import Callable

import httpx
import structlog

from leecharr.infrastructure.common.http import safe_fetch, safe_parse_json

log = structlog.get_logger(__name__)


class RegistryDomainResolver:
    """Resolves site keys (e.g. ``"UHDMovies"``) to their current base URL.

    The aggregators hop domains frequently; a community-maintained JSON
    file maps each site to its live domain. The file is fetched at most
    once per refresh interval. A failed fetch keeps the previously known
    domains (or the built-in fallbacks) and is retried on the next call.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        registry_url: str,
        fallbacks: dict[str, str],
        refresh_interval_seconds: float = 4 * 60 * 60,
        timeout_seconds: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._http = http_client
        self._registry_url = registry_url
        self._fallbacks = dict(fallbacks)
        self._refresh_interval = refresh_interval_seconds
        self._timeout = timeout_seconds
        self._clock = clock
        self._domains: dict[str, str] = {}
        self._fetched_at: float | None = None
        self._lock = asyncio.Lock()

    def _is_fresh(self) -> bool:
        return (
            self._fetched_at is not None
            and self._clock() - self._fetched_at < self._refresh_interval
        )

    async def _refresh(self) -> None:
        async with self._lock:
            if self._is_fresh():
                return
            resp = await safe_fetch(
                self._http,
                self._registry_url,
                event="domain_registry",
                timeout=self._timeout,
            )
            data = safe_parse_json(resp, event="domain_registry") if resp else None
            if data is None:
                log.warning(
                    "domain_registry_unavailable",
                    known=sorted(self._domains) or sorted(self._fallbacks),
                )
                return

            self._domains = {
                key: value.rstrip("/")
                for key, value in data.items()
                if isinstance(value, str) and value.startswith("http")
            }
            self._fetched_at = self._clock()
            log.info("domain_registry_refreshed", sites=len(self._domains))

    async def current_base_url(self, site: str) -> str:
        if not self._is_fresh():
            await self._refresh()
        url = self._domains.get(site) or self._fallbacks.get(site)
        if url is None:
            raise KeyError(f"No domain known for site {site!r}")
        return url.rstrip("/")
