"""MoviesMod adapter: season blocks, modrefer redirects and episode hubs."""

from __future__ import annotations

import re
from urllib.parse import quote_plus

import httpx
import structlog

from leecharr.domain.entities import (
    CatalogEntry,
    ContentQuery,
    HopContext,
    HopOutcome,
    LinkSetKind,
    MediaInfo,
    QualityCandidate,
)
from leecharr.domain.ports.hop_resolver import HopResolverPort
from leecharr.infrastructure.common.html_selectors import (
    href_of,
    next_tags_until,
    parse_html,
    previous_tags,
    text_of,
)
from leecharr.infrastructure.common.http import safe_fetch
from leecharr.infrastructure.common.parsers import extract_size_label, mentions_season
from leecharr.infrastructure.gateways.encoded_redirect import EncodedRedirectHop
from leecharr.infrastructure.gateways.hosts import SID_HOSTS, host_matches
from leecharr.infrastructure.gateways.scrape import ScrapeHop, ScrapeRule
from leecharr.infrastructure.matching.catalog_matcher import SimilarityMatcher

from .base import HttpxSiteBase

log = structlog.get_logger(__name__)

_RESOLUTION_RE = re.compile(r"(480p|720p|1080p|2160p|4k)", re.IGNORECASE)
_SEASON_LABEL_RE = re.compile(r"season\s*(\d+)", re.IGNORECASE)
_SPECIFIC_QUALITY_RE = re.compile(r"(480p|720p|1080p|2160p|4k)[ \w-]*", re.IGNORECASE)
_SUBS_TAIL_RE = re.compile(r"(?:msubs|esubs).*|\{.*", re.IGNORECASE)

EPISODE_HUB_HOSTS = ("episodes.modpro.blog", "cinematickit.org")


def extract_resolution(text: str) -> str:
    """First resolution token of a header ("Unknown" without one)."""
    m = _RESOLUTION_RE.search(text or "")
    return m.group(1) if m else "Unknown"


class DramaDripSeasonHop:
    """Picks the episode hub matching a season and quality on a DramaDrip page.

    The quality label carried through the chain ("Season 1 1080p x264 ...")
    names both the season heading and the button text to look for.
    """

    name = "dramadrip_season"

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._http = http_client

    def supports(self, url: str) -> bool:
        return host_matches(url, ("dramadrip.com",))

    async def resolve(self, url: str, context: HopContext) -> HopOutcome | None:
        season = _SEASON_LABEL_RE.search(context.quality)
        specific = _SPECIFIC_QUALITY_RE.search(context.quality)
        if not season or not specific:
            log.info("dramadrip_season_unlabelled", quality=context.quality)
            return None

        headers = {"Referer": context.referer} if context.referer else {}
        resp = await safe_fetch(
            self._http, url, event="dramadrip_season_hop", headers=headers
        )
        if resp is None:
            return None

        season_number = int(season.group(1))
        parts = _SUBS_TAIL_RE.sub("", specific.group(0).lower()).split()
        soup = parse_html(resp.text)
        selector = ", ".join(f'a[href*="{h}"]' for h in EPISODE_HUB_HOSTS)
        for anchor in soup.select(selector):
            label = text_of(anchor).lower()
            buttons = anchor.find_parent(class_="wp-block-buttons")
            if buttons is None:
                continue
            heading = next(
                (
                    t
                    for t in previous_tags(buttons)
                    if t.name == "h2" and "wp-block-heading" in (t.get("class") or [])
                ),
                None,
            )
            if mentions_season(text_of(heading), season_number) and all(
                p in label for p in parts
            ):
                return HopOutcome(next_url=href_of(anchor, str(resp.url)))

        log.info("dramadrip_season_no_match", url=url, quality=context.quality)
        return None


class MoviesModSite(HttpxSiteBase):
    name = "moviesmod"
    label = "MoviesMod"
    domain_key = "moviesmod"
    matcher = SimilarityMatcher()

    def _hops(self) -> list[HopResolverPort]:
        return [
            DramaDripSeasonHop(self._client),
            ScrapeHop(
                "cinematickit",
                hosts=("cinematickit.org",),
                rules=(
                    ScrapeRule(
                        'a[href*="driveseed.org"]',
                        link_set=LinkSetKind.EPISODES,
                        exclude=("batch",),
                    ),
                    ScrapeRule(
                        'a[href*="modrefer.in"], a[href*="dramadrip.com"]',
                        link_set=LinkSetKind.EPISODES,
                    ),
                ),
                http_client=self._client,
            ),
            ScrapeHop(
                "modpro",
                hosts=("episodes.modpro.blog", "links.modpro.blog"),
                rules=(
                    ScrapeRule(
                        ".entry-content a",
                        link_set=LinkSetKind.EPISODES,
                        exclude=("batch",),
                        hosts=("driveseed.org", *SID_HOSTS),
                    ),
                ),
                http_client=self._client,
            ),
            EncodedRedirectHop(
                "modrefer",
                hosts=("modrefer.in",),
                http_client=self._client,
                rules=(
                    ScrapeRule(
                        ".timed-content-client_show_0_5_0 a",
                        link_set=LinkSetKind.SERVERS,
                    ),
                ),
            ),
        ]

    async def search(self, title: str) -> list[CatalogEntry]:
        base = await self.base_url()
        resp = await self._fetch(f"{base}/?s={quote_plus(title)}", context=title)
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

        content = parse_html(resp.text).select_one(".thecontent")
        if content is None:
            self._log.info("moviesmod_no_content", url=entry.url)
            return []

        candidates: list[QualityCandidate] = []
        for header in content.select('h3:-soup-contains("Season"), h4'):
            header_text = text_of(header)
            block = list(next_tags_until(header, {"h3", "h4"}))

            if header.name == "h3" and "season" in header_text.lower():
                for block_el in block:
                    for button in block_el.select(
                        "a.maxbutton-episode-links, a.maxbutton-batch-zip"
                    ):
                        button_text = text_of(button)
                        link = href_of(button)
                        if not link or "batch" in button_text.lower():
                            continue
                        label = f"{header_text} - {button_text}"
                        candidates.append(
                            QualityCandidate(
                                quality=label,
                                url=link,
                                size=extract_size_label(header_text),
                                raw_quality=label,
                            )
                        )
            elif header.name == "h4":
                anchor = next(
                    (
                        a
                        for block_el in block
                        for a in block_el.select('a[href*="modrefer.in"]')
                    ),
                    None,
                )
                if anchor is not None and href_of(anchor):
                    candidates.append(
                        QualityCandidate(
                            quality=extract_resolution(header_text),
                            url=href_of(anchor),
                            size=extract_size_label(header_text),
                            raw_quality=header_text,
                        )
                    )

        if query.is_series and query.season is not None:
            candidates = [
                c for c in candidates if mentions_season(c.quality, query.season)
            ]

        return [c for c in self._dedupe(candidates) if self._keep_quality(c.quality)]

    def _tech_details(self, candidate: QualityCandidate) -> list[str]:
        text = (candidate.raw_quality or candidate.quality).lower()
        details: list[str] = []
        if "10bit" in text:
            details.append("10-bit")
        if "hevc" in text or "x265" in text:
            details.append("HEVC")
        if "hdr" in text:
            details.append("HDR")
        return details

    def _display_name(self, candidate: QualityCandidate) -> str:
        return f"{self.label} - {extract_resolution(candidate.quality)}"

    def _title_line(
        self, candidate: QualityCandidate, file_name: str | None, size: str | None
    ) -> str:
        line = super()._title_line(candidate, file_name, size)
        details = self._tech_details(candidate)
        return f"{line} • {' • '.join(details)}" if details else line
