"""Stream resolution use case.

content id -> metadata title -> catalog match -> quality links
-> redirect chains (cached) -> terminal mechanisms (always fresh)
-> dedupe -> rank.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import Protocol, TypeVar

import structlog

from leecharr.domain.entities import (
    CatalogEntry,
    ContentQuery,
    LeecharrError,
    MediaInfo,
    ResolutionChainResult,
    ResolvedStream,
)
from leecharr.domain.ports.metadata import MetadataPort
from leecharr.domain.ports.resolution_cache import ResolutionCachePort
from leecharr.domain.ports.site_adapter import SiteAdapterPort

# ---------------------------------------------------------------------------
# Protocols: what this use case needs from its dependencies.
# ---------------------------------------------------------------------------


class _PipelineConfig(Protocol):
    """Configuration values consumed by ResolveStreamsUseCase."""

    max_concurrency: int
    task_timeout_seconds: float


class _StreamRanker(Protocol):
    def rank(self, streams: list[ResolvedStream]) -> list[ResolvedStream]: ...


_T = TypeVar("_T")
_R = TypeVar("_R")

log = structlog.get_logger(__name__)


def dedupe_by_file_name(streams: list[ResolvedStream]) -> list[ResolvedStream]:
    """Drop later streams declaring a file name already seen.

    Different qualities of one release often end on the same file;
    streams without a declared name are always kept.
    """
    seen: set[str] = set()
    unique: list[ResolvedStream] = []
    for stream in streams:
        if stream.file_name:
            if stream.file_name in seen:
                continue
            seen.add(stream.file_name)
        unique.append(stream)
    return unique


class ResolveStreamsUseCase:
    """Resolve a content query into ranked, validated direct streams.

    Flow per provider:
        1. Look up the intermediate chain results in the resolution cache.
        2. On a miss: metadata lookup, catalog search and match, link
           extraction, then one chain resolution per quality candidate
           (bounded concurrency). Non-empty results are cached.
        3. Run terminal resolution for every chain result, always fresh.
        4. Rank by size and resolution, then drop duplicate file names.

    Expected failures (no match, dead chains, no valid mechanism) yield
    an empty list. ``MetadataUnavailableError`` propagates.
    """

    def __init__(
        self,
        *,
        metadata: MetadataPort,
        cache: ResolutionCachePort,
        ranker: _StreamRanker,
        config: _PipelineConfig,
    ) -> None:
        self._metadata = metadata
        self._cache = cache
        self._ranker = ranker
        self._max_concurrency = config.max_concurrency
        self._task_timeout = config.task_timeout_seconds

    async def execute(
        self, site: SiteAdapterPort, query: ContentQuery
    ) -> list[ResolvedStream]:
        """Resolve *query* against a single provider."""
        if query.media_type not in site.media_types:
            log.info(
                "provider_media_type_unsupported",
                provider=site.name,
                media_type=query.media_type,
            )
            return []

        key = self._cache.fingerprint(site.name, query)
        results = await self._cache.get(key)
        if results is None:
            results = await self._discover(site, query)
            if results:
                await self._cache.put(key, results)
        else:
            log.info("resolution_cache_hit", provider=site.name, count=len(results))

        if not results:
            return []

        streams = await self._fan_out(
            results,
            lambda result: site.resolve_terminal(result, query),
            provider=site.name,
            stage="terminal",
        )
        if not streams:
            log.info(
                "terminal_none_resolved",
                provider=site.name,
                content_id=query.content_id,
                candidates=len(results),
            )
            return []

        ranked = dedupe_by_file_name(self._ranker.rank(streams))
        log.info(
            "streams_resolved",
            provider=site.name,
            content_id=query.content_id,
            count=len(ranked),
        )
        return ranked

    async def execute_all(
        self, sites: Sequence[SiteAdapterPort], query: ContentQuery
    ) -> list[ResolvedStream]:
        """Resolve *query* against every provider and merge the results.

        A provider failing with an infrastructure fault is skipped; the
        fault only propagates when every provider failed that way.
        """
        outcomes = await asyncio.gather(
            *(self.execute(site, query) for site in sites),
            return_exceptions=True,
        )

        merged: list[ResolvedStream] = []
        errors: list[LeecharrError] = []
        for site, outcome in zip(sites, outcomes):
            if isinstance(outcome, LeecharrError):
                log.warning("provider_failed", provider=site.name, error=str(outcome))
                errors.append(outcome)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                merged.extend(outcome)

        if errors and len(errors) == len(sites):
            raise errors[0]
        return dedupe_by_file_name(self._ranker.rank(merged))

    # ------------------------------------------------------------------
    # Discovery (cacheable part)
    # ------------------------------------------------------------------

    async def _discover(
        self, site: SiteAdapterPort, query: ContentQuery
    ) -> list[ResolutionChainResult]:
        media = await self._metadata.lookup(query.content_id, query.media_type)
        if media is None:
            log.info("metadata_not_found", content_id=query.content_id)
            return []

        entry = await self._find_entry(site, media, query)
        if entry is None:
            log.info(
                "catalog_no_match",
                provider=site.name,
                title=media.title,
                year=media.year,
            )
            return []

        candidates = await site.extract_links(entry, query, media)
        if not candidates:
            log.info("links_not_found", provider=site.name, url=entry.url)
            return []

        log.debug(
            "chain_resolution_start",
            provider=site.name,
            entry=entry.title,
            candidates=len(candidates),
        )
        results = await self._fan_out(
            candidates,
            lambda candidate: site.resolve_chain(candidate, query, entry.url),
            provider=site.name,
            stage="chain",
        )
        if not results:
            log.info("chain_none_resolved", provider=site.name, url=entry.url)
        return results

    @staticmethod
    async def _find_entry(
        site: SiteAdapterPort, media: MediaInfo, query: ContentQuery
    ) -> CatalogEntry | None:
        for title in site.search_titles(media):
            entries = await site.search(title)
            entry = site.match(entries, media, query)
            if entry is not None:
                log.debug("catalog_matched", provider=site.name, entry=entry.title)
                return entry
        return None

    async def _fan_out(
        self,
        items: Sequence[_T],
        fn: Callable[[_T], Awaitable[_R | None]],
        *,
        provider: str,
        stage: str,
    ) -> list[_R]:
        """Run *fn* over *items* in parallel; failed or empty tasks are dropped."""
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def _one(item: _T) -> _R | None:
            async with semaphore:
                try:
                    return await asyncio.wait_for(fn(item), timeout=self._task_timeout)
                except TimeoutError:
                    log.warning(
                        f"{stage}_task_timeout",
                        provider=provider,
                        timeout=self._task_timeout,
                    )
                    return None
                except Exception:
                    log.warning(f"{stage}_task_error", provider=provider, exc_info=True)
                    return None

        outcomes = await asyncio.gather(*(_one(item) for item in items))
        return [outcome for outcome in outcomes if outcome is not None]
