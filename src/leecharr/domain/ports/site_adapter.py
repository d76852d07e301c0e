"""Port for aggregator site adapters."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from leecharr.domain.entities import (
    CatalogEntry,
    ContentQuery,
    MediaInfo,
    MediaType,
    QualityCandidate,
    ResolutionChainResult,
    ResolvedStream,
)


@runtime_checkable
class SiteAdapterPort(Protocol):
    """Capability set every aggregator provider implements.

    All methods return empty/None for expected failures (no match,
    markup changes, dead hosts) and never raise for them.
    """

    name: str
    label: str
    media_types: frozenset[MediaType]

    def search_titles(self, media: MediaInfo) -> list[str]:
        """Titles to search for, tried in order until one yields hits."""
        ...

    async def search(self, title: str) -> list[CatalogEntry]: ...

    def match(
        self, entries: list[CatalogEntry], media: MediaInfo, query: ContentQuery
    ) -> CatalogEntry | None: ...

    async def extract_links(
        self, entry: CatalogEntry, query: ContentQuery, media: MediaInfo
    ) -> list[QualityCandidate]:
        """Quality candidates on *entry*'s landing page (deduplicated by URL)."""
        ...

    async def resolve_chain(
        self, candidate: QualityCandidate, query: ContentQuery, referer: str
    ) -> ResolutionChainResult | None: ...

    async def resolve_terminal(
        self, result: ResolutionChainResult, query: ContentQuery
    ) -> ResolvedStream | None: ...

    async def cleanup(self) -> None: ...
