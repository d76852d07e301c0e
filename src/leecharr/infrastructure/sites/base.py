"""Shared base class for the httpx-based aggregator site adapters.

Owns what every provider repeats: client lifecycle, domain lookup,
fail-soft fetching, and the assembly of redirect chain and terminal
selector from provider-specific hops. Subclasses implement search and
link extraction and list the hops their chains pass through.

This base class lives in the *infrastructure* layer because it depends
on ``httpx`` and ``structlog``. The application layer only knows
``SiteAdapterPort``; adapters structurally satisfy that Protocol.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx
import structlog

from leecharr.domain.entities import (
    CatalogEntry,
    ContentQuery,
    HopContext,
    LinkSetKind,
    MechanismKind,
    MediaInfo,
    MediaType,
    QualityCandidate,
    ResolutionChainResult,
    ResolvedStream,
)
from leecharr.domain.ports.domain_resolver import DomainResolverPort
from leecharr.domain.ports.hop_resolver import HopResolverPort
from leecharr.domain.ports.link_validator import LinkValidatorPort
from leecharr.domain.ports.mechanism import MechanismResolverPort
from leecharr.infrastructure.common.http import safe_fetch
from leecharr.infrastructure.common.parsers import (
    clean_file_name,
    clean_quality,
    extract_codecs,
    is_below_tier,
)
from leecharr.infrastructure.config.schema import DEFAULT_USER_AGENT
from leecharr.infrastructure.gateways.chain import RedirectChainResolver
from leecharr.infrastructure.gateways.sid import SidBypass
from leecharr.infrastructure.terminal.mechanisms import (
    InstantMechanism,
    ResumableMechanism,
    WorkerRelayMechanism,
)
from leecharr.infrastructure.terminal.page import TerminalPageParser
from leecharr.infrastructure.terminal.selector import (
    DEFAULT_PRIORITY,
    TerminalResolution,
    TerminalStrategySelector,
)

_HTML_ACCEPT = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"
)


class CatalogMatcher(Protocol):
    def match(
        self, entries: list[CatalogEntry], media: MediaInfo, media_type: MediaType
    ) -> CatalogEntry | None: ...


@dataclass(frozen=True)
class SiteSettings:
    """Per-adapter knobs taken from AppConfig."""

    user_agent: str = DEFAULT_USER_AGENT
    timeout_seconds: float = 30.0
    max_hops: int = 8
    min_quality_tier: int = 720
    preferred_server: str = "Server 1"
    priority: tuple[MechanismKind, ...] = field(default=DEFAULT_PRIORITY)


class HttpxSiteBase:
    """Shared base for aggregator site adapters.

    Subclasses **must** set:
    - ``name`` (provider id used in routes and cache keys)
    - ``label`` (display prefix)
    - ``domain_key`` (key in the domain registry)
    - ``matcher``

    Subclasses **must** override:
    - ``search()`` and ``extract_links()``

    Subclasses **may** override:
    - ``media_types``, ``search_titles()``
    - ``_hops()`` (intermediate hosts; the SID bypass is always added)
    - ``_mechanisms()``, ``_tech_details()``
    """

    name: str = ""
    label: str = ""
    domain_key: str = ""
    media_types: frozenset[MediaType] = frozenset({"movie", "series"})
    matcher: CatalogMatcher

    def __init__(
        self,
        *,
        domains: DomainResolverPort,
        validator: LinkValidatorPort,
        settings: SiteSettings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings or SiteSettings()
        self._domains = domains
        self._validator = validator
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=self.settings.timeout_seconds,
            follow_redirects=True,
            headers={
                "User-Agent": self.settings.user_agent,
                "Accept": _HTML_ACCEPT,
                "Accept-Language": "en-US,en;q=0.5",
            },
        )
        self._log = structlog.get_logger(self.name or __name__)

        self.chain = RedirectChainResolver(
            [
                *self._hops(),
                SidBypass(
                    user_agent=self.settings.user_agent,
                    timeout_seconds=self.settings.timeout_seconds,
                ),
            ],
            max_hops=self.settings.max_hops,
        )
        self.selector = TerminalStrategySelector(
            page_parser=TerminalPageParser(self._client),
            mechanisms=self._mechanisms(),
            validator=validator,
            chain=self.chain,
            priority=self.settings.priority,
            preferred_server=self.settings.preferred_server,
        )

    # ------------------------------------------------------------------
    # Assembly hooks
    # ------------------------------------------------------------------

    def _hops(self) -> list[HopResolverPort]:
        return []

    def _mechanisms(self) -> dict[MechanismKind, MechanismResolverPort]:
        return {
            MechanismKind.RESUMABLE: ResumableMechanism(self._client),
            MechanismKind.WORKER_RELAY: WorkerRelayMechanism(
                user_agent=self.settings.user_agent,
                timeout_seconds=self.settings.timeout_seconds,
            ),
            MechanismKind.INSTANT: InstantMechanism(self._client),
        }

    # ------------------------------------------------------------------
    # Convenience helpers
    # ------------------------------------------------------------------

    async def base_url(self) -> str:
        return await self._domains.current_base_url(self.domain_key)

    async def _fetch(
        self, url: str, *, context: str = "", **kwargs: Any
    ) -> httpx.Response | None:
        return await safe_fetch(
            self._client, url, event=self.name, context=context, **kwargs
        )

    def _keep_quality(self, quality: str) -> bool:
        return not is_below_tier(quality, self.settings.min_quality_tier)

    @staticmethod
    def _dedupe(candidates: list[QualityCandidate]) -> list[QualityCandidate]:
        seen: set[str] = set()
        unique: list[QualityCandidate] = []
        for candidate in candidates:
            if candidate.url in seen:
                continue
            seen.add(candidate.url)
            unique.append(candidate)
        return unique

    # ------------------------------------------------------------------
    # SiteAdapterPort
    # ------------------------------------------------------------------

    def search_titles(self, media: MediaInfo) -> list[str]:
        return [media.title]

    async def search(self, title: str) -> list[CatalogEntry]:
        raise NotImplementedError(f"{type(self).__name__}.search() not implemented")

    def match(
        self, entries: list[CatalogEntry], media: MediaInfo, query: ContentQuery
    ) -> CatalogEntry | None:
        return self.matcher.match(entries, media, query.media_type)

    async def extract_links(
        self, entry: CatalogEntry, query: ContentQuery, media: MediaInfo
    ) -> list[QualityCandidate]:
        raise NotImplementedError(
            f"{type(self).__name__}.extract_links() not implemented"
        )

    async def resolve_chain(
        self, candidate: QualityCandidate, query: ContentQuery, referer: str
    ) -> ResolutionChainResult | None:
        if candidate.episodes:
            return ResolutionChainResult(
                candidate=candidate,
                link_set=candidate.episodes,
                link_set_kind=LinkSetKind.EPISODES,
            )

        context = HopContext(
            query=query,
            quality=candidate.raw_quality or candidate.quality,
            referer=referer,
        )
        outcome = await self.chain.walk(candidate.url, context)
        if outcome is None:
            return None
        if outcome.link_set:
            return ResolutionChainResult(
                candidate=candidate,
                link_set=outcome.link_set,
                link_set_kind=outcome.link_set_kind,
            )
        return ResolutionChainResult(candidate=candidate, terminal_url=outcome.next_url)

    async def resolve_terminal(
        self, result: ResolutionChainResult, query: ContentQuery
    ) -> ResolvedStream | None:
        resolution = await self.selector.resolve(result, query)
        if resolution is None:
            return None
        return self._to_stream(result.candidate, resolution)

    async def cleanup(self) -> None:
        """Close the adapter's own httpx client (injected clients stay open)."""
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Presentation
    # ------------------------------------------------------------------

    def _tech_details(self, candidate: QualityCandidate) -> list[str]:
        return extract_codecs(candidate.raw_quality or candidate.quality)

    def _display_name(self, candidate: QualityCandidate) -> str:
        return f"{self.label} - {clean_quality(candidate.raw_quality or candidate.quality)}"

    def _title_line(
        self, candidate: QualityCandidate, file_name: str | None, size: str | None
    ) -> str:
        file_title = clean_file_name(file_name) or candidate.quality
        return f"{file_title}\n{size or 'Unknown'}"

    def _to_stream(
        self, candidate: QualityCandidate, resolution: TerminalResolution
    ) -> ResolvedStream:
        page = resolution.page
        size = page.size or candidate.size
        return ResolvedStream(
            display_name=self._display_name(candidate),
            title_line=self._title_line(candidate, page.file_name, size),
            url=resolution.url,
            quality=candidate.quality,
            size=size,
            provider=self.name,
            file_name=page.file_name,
            mechanism=resolution.mechanism,
            tech_details=self._tech_details(candidate),
        )
