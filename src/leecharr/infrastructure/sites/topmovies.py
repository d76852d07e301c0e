"""TopMovies adapter (movies only): h3 quality headers and leechpro pages."""

from __future__ import annotations

import re
from urllib.parse import quote

from leecharr.domain.entities import (
    CatalogEntry,
    ContentQuery,
    MediaInfo,
    MediaType,
    QualityCandidate,
)
from leecharr.domain.ports.hop_resolver import HopResolverPort
from leecharr.infrastructure.common.html_selectors import href_of, parse_html, text_of
from leecharr.infrastructure.common.parsers import extract_size_label
from leecharr.infrastructure.gateways.hosts import SID_HOSTS, TERMINAL_HOSTS
from leecharr.infrastructure.gateways.scrape import ScrapeHop, ScrapeRule
from leecharr.infrastructure.matching.catalog_matcher import ContainmentMatcher

from .base import HttpxSiteBase

_HEADER_QUALITY_RE = re.compile(
    r"(480p|720p|1080p|4K|2160p).*?(\[[^\]]+\])?", re.IGNORECASE
)
_DOWNLOAD_PREFIX_RE = re.compile(r"download.*?movie\s+", re.IGNORECASE)
_SHORT_QUALITY_RE = re.compile(r"\d{3,4}p|4K", re.IGNORECASE)
_RESOLUTIONS = ("480p", "720p", "1080p", "4K")

_SUPPORTED_HOSTS = (*SID_HOSTS, *TERMINAL_HOSTS)


class TopMoviesSite(HttpxSiteBase):
    name = "topmovies"
    label = "TopMovies"
    domain_key = "topMovies"
    media_types: frozenset[MediaType] = frozenset({"movie"})
    matcher = ContainmentMatcher()

    def _hops(self) -> list[HopResolverPort]:
        return [
            ScrapeHop(
                "leechpro",
                hosts=("leechpro.blog",),
                rules=(
                    ScrapeRule(".timed-content-client_show_0_5_0 a", hosts=_SUPPORTED_HOSTS),
                    ScrapeRule("a", hosts=_SUPPORTED_HOSTS),
                ),
                http_client=self._client,
            )
        ]

    async def search(self, title: str) -> list[CatalogEntry]:
        base = await self.base_url()
        resp = await self._fetch(f"{base}/search/{quote(title)}", context=title)
        if resp is None:
            return []

        entries: list[CatalogEntry] = []
        for post in parse_html(resp.text).select(".latestPost"):
            anchor = post.select_one("a")
            if anchor is None:
                continue
            name = str(anchor.get("title") or "").strip()
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

        candidates: list[QualityCandidate] = []
        seen_qualities: set[str] = set()
        for header in parse_html(resp.text).select("h3"):
            header_text = text_of(header)
            if "download" not in header_text.lower() or not any(
                r in header_text for r in _RESOLUTIONS
            ):
                continue

            block = header.find_next_sibling()
            anchor = block.select_one('a[href*="leechpro.blog"]') if block else None
            link = href_of(anchor) if anchor is not None else ""
            if not link:
                continue

            m = _HEADER_QUALITY_RE.search(header_text)
            quality = _DOWNLOAD_PREFIX_RE.sub("", m.group(0)).strip() if m else header_text
            if quality in seen_qualities:
                continue
            seen_qualities.add(quality)
            candidates.append(
                QualityCandidate(
                    quality=quality,
                    url=link,
                    size=extract_size_label(header_text),
                    raw_quality=header_text,
                )
            )

        return [c for c in self._dedupe(candidates) if self._keep_quality(c.quality)]

    def _display_name(self, candidate: QualityCandidate) -> str:
        m = _SHORT_QUALITY_RE.search(candidate.quality)
        return f"{self.label} - {m.group(0) if m else candidate.quality}"
