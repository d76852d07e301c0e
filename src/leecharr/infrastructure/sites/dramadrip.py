"""DramaDrip adapter: season button blocks and cinematickit/modpro hubs."""

from __future__ import annotations

import re
from urllib.parse import quote_plus

from leecharr.domain.entities import (
    CatalogEntry,
    ContentQuery,
    LinkSetKind,
    MechanismKind,
    MediaInfo,
    QualityCandidate,
)
from leecharr.domain.ports.hop_resolver import HopResolverPort
from leecharr.domain.ports.mechanism import MechanismResolverPort
from leecharr.infrastructure.common.html_selectors import href_of, parse_html, text_of
from leecharr.infrastructure.common.parsers import mentions_season
from leecharr.infrastructure.gateways.hosts import SID_HOSTS
from leecharr.infrastructure.gateways.scrape import ScrapeHop, ScrapeRule
from leecharr.infrastructure.matching.catalog_matcher import SimilarityMatcher
from leecharr.infrastructure.terminal.mechanisms import InstantMechanism

from .base import HttpxSiteBase

INSTANT_API_URL = "https://video-seed.pro/api"
INSTANT_API_TOKEN = "video-seed.pro"

_SUPPORTED_HOSTS = ("driveseed.org", *SID_HOSTS)
_SKIP_WORDS = ("batch", "zip")
_SIZE_RE = re.compile(r"([0-9.,]+\s*[KMGT]B)", re.IGNORECASE)


class DramaDripSite(HttpxSiteBase):
    name = "dramadrip"
    label = "DramaDrip"
    domain_key = "dramadrip"
    matcher = SimilarityMatcher()

    def _hops(self) -> list[HopResolverPort]:
        return [
            ScrapeHop(
                "episode_hub",
                hosts=("cinematickit.org", "episodes.modpro.blog", "links.modpro.blog"),
                rules=(
                    ScrapeRule(
                        '.entry-content h3:-soup-contains("Episode") a',
                        link_set=LinkSetKind.EPISODES,
                        exclude=_SKIP_WORDS,
                        hosts=_SUPPORTED_HOSTS,
                    ),
                    ScrapeRule(
                        ".wp-block-button.series_btn a",
                        link_set=LinkSetKind.EPISODES,
                        exclude=_SKIP_WORDS,
                        hosts=_SUPPORTED_HOSTS,
                    ),
                    ScrapeRule(
                        ".wp-block-button.movie_btn a",
                        link_set=LinkSetKind.SERVERS,
                        hosts=_SUPPORTED_HOSTS,
                    ),
                ),
                http_client=self._client,
            )
        ]

    def _mechanisms(self) -> dict[MechanismKind, MechanismResolverPort]:
        mechanisms = super()._mechanisms()
        # Form-encoded variant of the instant API with its own endpoint.
        mechanisms[MechanismKind.INSTANT] = InstantMechanism(
            self._client,
            api_url=INSTANT_API_URL,
            token=INSTANT_API_TOKEN,
            multipart=False,
        )
        return mechanisms

    async def search(self, title: str) -> list[CatalogEntry]:
        base = await self.base_url()
        resp = await self._fetch(f"{base}/?s={quote_plus(title)}", context=title)
        if resp is None:
            return []

        entries: list[CatalogEntry] = []
        for anchor in parse_html(resp.text).select("h2.entry-title a"):
            name = text_of(anchor)
            link = href_of(anchor, base)
            if name and link:
                entries.append(CatalogEntry(title=name, url=link))
        return entries

    async def extract_links(
        self, entry: CatalogEntry, query: ContentQuery, media: MediaInfo
    ) -> list[QualityCandidate]:
        resp = await self._fetch(entry.url, context=entry.title)
        if resp is None:
            return []
        soup = parse_html(resp.text)

        season_headers = soup.select('h2.wp-block-heading:-soup-contains("Season")')
        anchors = []
        if season_headers:
            if not query.is_series:
                self._log.info("dramadrip_kind_mismatch", url=entry.url, expected="movie")
                return []
            for header in season_headers:
                header_text = text_of(header)
                if not mentions_season(header_text, query.season) or (
                    "zip" in header_text.lower()
                ):
                    continue
                buttons = header.find_next_sibling()
                if buttons is not None and "wp-block-buttons" in (buttons.get("class") or []):
                    anchors = buttons.select("a")
                break
        elif query.is_series:
            self._log.info("dramadrip_kind_mismatch", url=entry.url, expected="series")
            return []
        else:
            anchors = soup.select(".su-spoiler-content .wp-block-button a")

        candidates: list[QualityCandidate] = []
        for anchor in anchors:
            quality = text_of(anchor)
            link = href_of(anchor)
            if not link or "zip" in quality.lower():
                continue
            size = _SIZE_RE.search(quality)
            candidates.append(
                QualityCandidate(
                    quality=quality,
                    url=link,
                    size=size.group(1) if size else None,
                    raw_quality=quality,
                )
            )

        return [c for c in self._dedupe(candidates) if self._keep_quality(c.quality)]

    def _display_name(self, candidate: QualityCandidate) -> str:
        return f"{self.label} - {candidate.quality.split('(')[0].strip()}"
