"""Selects the catalog entry that corresponds to a reference title.

Pure transformation logic, no I/O. Three strategies exist because the
aggregators title their posts differently: some append the year and
release tags, some bundle collections, some list whole seasons.

Uses **rapidfuzz** for the similarity metric and **unidecode** to fold
accents before comparing.
"""

from __future__ import annotations

import re

import structlog
from rapidfuzz import fuzz
from unidecode import unidecode as _unidecode

from leecharr.domain.entities import CatalogEntry, MediaInfo, MediaType
from leecharr.infrastructure.common.parsers import extract_years

log = structlog.get_logger(__name__)

# "Spider-Man" and "Spiderman" squash to the same key.
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")
_PUNCT_RE = re.compile(r"[^\w\s]")
_PAREN_YEAR_RE = re.compile(r"\((\d{4})\)")
_YEAR_RANGE_RE = re.compile(r"\((\d{4})\s*-\s*(\d{4})\)")
_DV_RE = re.compile(r"\bdv\b")

_COLLECTION_KEYWORDS = ("duology", "trilogy", "quadrilogy", "collection", "saga")
_SPINOFF_KEYWORDS = ("challenge", "conversation", "story", "in conversation")


def normalize_title(text: str) -> str:
    """Lowercase, transliterate Unicode to ASCII, strip punctuation, collapse ws."""
    text = _unidecode(text.lower())
    text = _PUNCT_RE.sub(" ", text)
    return " ".join(text.split())


def _squash(text: str) -> str:
    """Lowercase alphanumerics only (no spaces)."""
    return _NON_ALNUM_RE.sub("", _unidecode(text.lower()))


def _year_within(text: str, year: int | None, tolerance: int = 1) -> bool:
    """True unless *text* carries a year that is off by more than *tolerance*."""
    if year is None:
        return True
    years = extract_years(text)
    if not years:
        return True
    return any(abs(y - year) <= tolerance for y in years)


def similarity(a: str, b: str) -> float:
    """Normalized similarity of two titles on a 0..1 scale."""
    return fuzz.ratio(normalize_title(a), normalize_title(b), processor=None) / 100.0


class SimilarityMatcher:
    """Best-similarity match with a deterministic literal fallback.

    1. Score every entry against the reference title; accept the best one
       if it exceeds *threshold* and (for movies) its year is within one.
    2. Otherwise pick the first entry containing the title as a whole
       word, which for series must also mention "season".
    """

    def __init__(self, threshold: float = 0.3) -> None:
        self.threshold = threshold

    def match(
        self,
        entries: list[CatalogEntry],
        media: MediaInfo,
        media_type: MediaType,
    ) -> CatalogEntry | None:
        if not entries:
            return None

        scored = [(similarity(media.title, e.title), e) for e in entries]
        best_score, best = max(scored, key=lambda pair: pair[0])
        log.debug(
            "catalog_best_similarity",
            reference=media.title,
            candidate=best.title,
            score=round(best_score, 3),
        )

        if best_score > self.threshold:
            if media_type != "movie" or _year_within(best.title, media.year):
                return best
            log.info(
                "catalog_year_mismatch",
                candidate=best.title,
                expected_year=media.year,
            )

        return self._literal_fallback(entries, media, media_type)

    @staticmethod
    def _literal_fallback(
        entries: list[CatalogEntry], media: MediaInfo, media_type: MediaType
    ) -> CatalogEntry | None:
        pattern = re.compile(
            rf"\b{re.escape(normalize_title(media.title))}\b", re.IGNORECASE
        )
        for entry in entries:
            normalized = normalize_title(entry.title)
            if not pattern.search(normalized):
                continue
            if media_type == "series":
                if "season" in normalized:
                    return entry
            elif _year_within(entry.title, media.year):
                return entry
        return None


class ContainmentMatcher:
    """First entry whose squashed title contains the reference title.

    A parenthesized year, when present, must be within one year.
    """

    def match(
        self,
        entries: list[CatalogEntry],
        media: MediaInfo,
        media_type: MediaType,
    ) -> CatalogEntry | None:
        for entry in entries:
            if self.accepts(entry, media):
                return entry
        return None

    @staticmethod
    def accepts(entry: CatalogEntry, media: MediaInfo) -> bool:
        if _squash(media.title) not in _squash(entry.title):
            return False
        if media.year is not None:
            m = _PAREN_YEAR_RE.search(entry.title)
            if m and abs(int(m.group(1)) - media.year) > 1:
                return False
        return True


def release_score(title: str) -> int:
    """Preference score of a release title (higher = better source)."""
    t = title.lower()
    score = 0
    if "remux" in t:
        score += 10
    if "bluray" in t or "blu-ray" in t:
        score += 8
    if "imax" in t:
        score += 6
    if "4k" in t or "2160p" in t:
        score += 5
    if "dovi" in t or "dolby vision" in t or _DV_RE.search(t):
        score += 4
    if "hdr" in t:
        score += 3
    if "1080p" in t:
        score += 2
    if "hevc" in t or "x265" in t:
        score += 1
    return score


class StrictTitleMatcher:
    """Containment match that understands collections, spin-offs and year ranges.

    Among several accepted entries the one with the best release score
    wins (remux over bluray over web, etc.).
    """

    def match(
        self,
        entries: list[CatalogEntry],
        media: MediaInfo,
        media_type: MediaType,
    ) -> CatalogEntry | None:
        accepted = [e for e in entries if self.accepts(e, media)]
        if not accepted:
            return None
        if len(accepted) == 1:
            return accepted[0]
        # max() keeps the first of equally scored entries.
        return max(accepted, key=lambda e: release_score(e.title))

    def accepts(self, entry: CatalogEntry, media: MediaInfo) -> bool:
        reference = _squash(re.sub(r"\s*&\s*", " and ", media.title))
        candidate = _squash(entry.title)

        if not self._title_matches(reference, candidate):
            return False

        original = media.title.lower()
        for keyword in _SPINOFF_KEYWORDS:
            if keyword.replace(" ", "") in candidate and keyword not in original:
                log.debug("catalog_spinoff_rejected", candidate=entry.title, keyword=keyword)
                return False

        return self._year_matches(entry.title, media.year)

    @staticmethod
    def _title_matches(reference: str, candidate: str) -> bool:
        if reference in candidate:
            return True
        main_title = reference.split("and")[0]
        is_collection = any(k in candidate for k in _COLLECTION_KEYWORDS)
        return bool(main_title) and is_collection and main_title in candidate

    @staticmethod
    def _year_matches(title: str, year: int | None) -> bool:
        if year is None:
            return True
        years = extract_years(title)
        if any(abs(y - year) <= 1 for y in years):
            return True
        m = _YEAR_RANGE_RE.search(title)
        if m and int(m.group(1)) - 1 <= year <= int(m.group(2)) + 1:
            return True
        # Any year present in the title must agree with the reference.
        return not years and m is None
