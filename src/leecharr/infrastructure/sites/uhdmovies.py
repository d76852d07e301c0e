"""UHDMovies adapter: grid search, SID links, collection-aware matching."""

from __future__ import annotations

import re
from urllib.parse import quote

from bs4 import Tag

from leecharr.domain.entities import (
    CatalogEntry,
    ContentQuery,
    LinkOption,
    MediaInfo,
    QualityCandidate,
)
from leecharr.infrastructure.common.html_selectors import (
    closest,
    href_of,
    parse_html,
    previous_tags,
    text_of,
)
from leecharr.infrastructure.common.parsers import (
    UNKNOWN_QUALITY,
    clean_quality,
    extract_size_label,
)
from leecharr.infrastructure.matching.catalog_matcher import StrictTitleMatcher

from .base import HttpxSiteBase

_SID_LINK = 'a[href*="tech.unblockedgames.world"]'
_SEASON_RE = re.compile(r"^SEASON\s+(\d+)", re.IGNORECASE)
_EPISODE_LABEL_RE = re.compile(r"^Episode\s+\d+", re.IGNORECASE)
_HEADER_NOISE_RE = re.compile(
    r"plot|download|screenshot|trailer|join|powered by|season", re.IGNORECASE
)
_PAREN_YEAR_RE = re.compile(r"\((\d{4})\)")
_ANY_YEAR_RE = re.compile(r"\d{4}")
_QUALITY_HINTS = ("1080p", "720p", "2160p", "4K", "HEVC", "x264", "x265")


def _is_quality_header(el: Tag) -> bool:
    if el.name in ("pre", "h3", "h4"):
        return True
    return el.name == "p" and el.find(["strong", "b"]) is not None


def _movie_quality_text(anchor: Tag) -> str:
    """Quality header of a movie link: the nearest descriptive block above it."""
    paragraph = closest(anchor, "p")
    if paragraph is not None:
        prev = next(previous_tags(paragraph), None)
        text = text_of(prev)
        if len(text) > 20 and "Download" not in text:
            return text

    parent = anchor.parent
    if isinstance(parent, Tag):
        prev = next(previous_tags(parent), None)
        text = text_of(prev)
        if len(text) > 20:
            return text

    if paragraph is not None:
        for sib in previous_tags(paragraph):
            bold = sib.select("strong, b")
            if bold:
                text = text_of(bold[-1])
                if len(text) > 20:
                    return text
                break

    if isinstance(parent, Tag):
        for i, sib in enumerate(previous_tags(parent)):
            if i >= 5:
                break
            text = text_of(sib)
            if len(text) > 30 and any(h in text for h in _QUALITY_HINTS):
                return text

    return UNKNOWN_QUALITY


def _year_conflicts(quality_text: str, context_text: str, year: int) -> bool:
    """True when the block names other years than *year* (collection pages)."""
    paren_years = [int(y) for y in _PAREN_YEAR_RE.findall(quality_text)]
    if paren_years:
        return year not in paren_years

    years = [int(y) for y in _PAREN_YEAR_RE.findall(context_text)] or [
        int(y) for y in _ANY_YEAR_RE.findall(context_text)
    ]
    plausible = [y for y in years if 1900 <= y <= 2030]
    return bool(years) and year not in plausible


class UHDMoviesSite(HttpxSiteBase):
    name = "uhdmovies"
    label = "UHDMovies"
    domain_key = "UHDMovies"
    matcher = StrictTitleMatcher()

    def search_titles(self, media: MediaInfo) -> list[str]:
        primary = re.sub(r"\s*&\s*", " and ", media.title.replace(":", ""))
        fallback = media.title.split(":")[0].strip()
        if "and the" in fallback:
            fallback = fallback.split("and the")[0].strip()
        titles = [primary]
        if fallback and fallback != primary:
            titles.append(fallback)
        return titles

    async def search(self, title: str) -> list[CatalogEntry]:
        base = await self.base_url()
        resp = await self._fetch(f"{base}/search/{quote(title)}", context=title)
        if resp is None:
            return []

        soup = parse_html(resp.text)
        entries: list[CatalogEntry] = []
        seen: set[str] = set()

        for article in soup.select("article.gridlove-post"):
            anchor = article.select_one('a[href*="/download-"]')
            if anchor is None:
                continue
            link = href_of(anchor, base)
            name = str(anchor.get("title") or "").strip() or text_of(
                article.select_one("h1.sanket")
            )
            if link and name and link not in seen:
                seen.add(link)
                entries.append(CatalogEntry(title=name, url=link))

        if not entries:
            # Older list layout.
            for anchor in soup.select('a[href*="/download-"]'):
                link = href_of(anchor, base)
                name = text_of(anchor)
                if link and name and link not in seen:
                    seen.add(link)
                    entries.append(CatalogEntry(title=name, url=link))

        self._log.debug("uhdmovies_search_results", query=title, count=len(entries))
        return entries

    async def extract_links(
        self, entry: CatalogEntry, query: ContentQuery, media: MediaInfo
    ) -> list[QualityCandidate]:
        resp = await self._fetch(entry.url, context=entry.title)
        if resp is None:
            return []
        soup = parse_html(resp.text)

        if query.is_series:
            candidates = self._season_candidates(soup, query.season)
            if not candidates:
                self._log.info(
                    "uhdmovies_season_scope_empty",
                    url=entry.url,
                    season=query.season,
                )
                candidates = self._unscoped_candidates(soup)
        else:
            candidates = self._movie_candidates(soup, media.year)

        return [c for c in self._dedupe(candidates) if self._keep_quality(c.quality)]

    # ------------------------------------------------------------------
    # Series
    # ------------------------------------------------------------------

    def _season_candidates(self, soup, season: int | None) -> list[QualityCandidate]:
        content = soup.select_one(".entry-content")
        if content is None or season is None:
            return []

        candidates: list[QualityCandidate] = []
        in_season = False
        header = ""
        for el in content.find_all(True):
            m = _SEASON_RE.match(text_of(el))
            if m:
                if int(m.group(1)) == season:
                    in_season = True
                elif in_season:
                    break
            if not in_season:
                continue

            if _is_quality_header(el):
                text = text_of(el)
                if (
                    len(text) > 5
                    and not _HEADER_NOISE_RE.search(text)
                    and el.find("a") is None
                ):
                    header = text

            if el.name == "p" and el.select_one(_SID_LINK) is not None:
                candidate = self._episode_group(el.select("a"), header)
                if candidate is not None:
                    candidates.append(candidate)
        return candidates

    def _unscoped_candidates(self, soup) -> list[QualityCandidate]:
        groups: dict[int, tuple[Tag, list[Tag]]] = {}
        for anchor in soup.select(f".entry-content {_SID_LINK}"):
            if not _EPISODE_LABEL_RE.match(text_of(anchor)):
                continue
            block = closest(anchor, "p", "div") or anchor
            groups.setdefault(id(block), (block, []))[1].append(anchor)

        candidates: list[QualityCandidate] = []
        for block, anchors in groups.values():
            header = UNKNOWN_QUALITY
            prev = next(previous_tags(block), None)
            text = text_of(prev)
            if len(text) > 5 and "download" not in text.lower():
                header = text
            candidate = self._episode_group(anchors, header)
            if candidate is not None:
                candidates.append(candidate)
        return candidates

    def _episode_group(self, anchors: list[Tag], header: str) -> QualityCandidate | None:
        episodes = tuple(
            LinkOption(label=text_of(a), url=href_of(a))
            for a in anchors
            if text_of(a) and href_of(a)
        )
        if not episodes:
            return None
        header = header or UNKNOWN_QUALITY
        return QualityCandidate(
            quality=clean_quality(header),
            url=episodes[0].url,
            size=extract_size_label(header),
            raw_quality=header,
            episodes=episodes,
        )

    # ------------------------------------------------------------------
    # Movies
    # ------------------------------------------------------------------

    def _movie_candidates(self, soup, year: int | None) -> list[QualityCandidate]:
        candidates: list[QualityCandidate] = []
        for anchor in soup.select(_SID_LINK):
            link = href_of(anchor)
            if not link:
                continue
            quality_text = _movie_quality_text(anchor)

            if year is not None and quality_text != UNKNOWN_QUALITY:
                parent_text = text_of(anchor.parent) if isinstance(anchor.parent, Tag) else ""
                context_text = f"{quality_text} {text_of(anchor)} {parent_text}"
                if _year_conflicts(quality_text, context_text, year):
                    self._log.debug(
                        "uhdmovies_year_mismatch", year=year, quality=quality_text
                    )
                    continue

            candidates.append(
                QualityCandidate(
                    quality=clean_quality(quality_text),
                    url=link,
                    size=extract_size_label(quality_text),
                    raw_quality=quality_text,
                )
            )
        return candidates
