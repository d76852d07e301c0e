"""Tests for the UHDMovies site adapter."""

from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest
import respx

from leecharr.domain.entities import (
    CatalogEntry,
    ContentQuery,
    LinkOption,
    LinkSetKind,
    MediaInfo,
    QualityCandidate,
)
from leecharr.infrastructure.sites import SiteSettings, UHDMoviesSite

_BASE = "https://uhdmovies.test"
_SID = "https://tech.unblockedgames.world/?sid="
_MOVIE_ENTRY = CatalogEntry(title="Inception (2010)", url=f"{_BASE}/download-inception-2010/")
_SERIES_ENTRY = CatalogEntry(
    title="Game of Thrones (Season 1-8)", url=f"{_BASE}/download-game-of-thrones/"
)

# ---------------------------------------------------------------------------
# HTML fixtures
# ---------------------------------------------------------------------------

_GRID_HTML = """
<article class="gridlove-post">
  <a href="/download-inception-2010/" title="Download Inception (2010) 4K HDR"><img></a>
</article>
<article class="gridlove-post">
  <h1 class="sanket">Inception Collection</h1>
  <a href="https://uhdmovies.test/download-inception-collection/"><img></a>
</article>
<article class="gridlove-post"><a href="/about/">About</a></article>
"""

_LIST_HTML = """
<ul>
  <li><a href="/download-tenet-2020/">Tenet (2020) 2160p</a></li>
  <li><a href="/download-tenet-2020/">Tenet (2020) 2160p</a></li>
</ul>
"""

_MOVIE_HTML = f"""
<div class="entry-content">
  <p><strong>Inception (2010) 1080p BluRay x265 HDR [2.3GB]</strong></p>
  <p><a class="maxbutton" href="{_SID}m1"><span>Download Now</span></a></p>
  <p><strong>Inception (2010) 480p x264 [400MB]</strong></p>
  <p><a class="maxbutton" href="{_SID}m2"><span>Download Now</span></a></p>
  <p><strong>Interstellar (2014) 2160p HDR [20GB]</strong></p>
  <p><a class="maxbutton" href="{_SID}m3"><span>Download Now</span></a></p>
</div>
"""

_SEASONS_HTML = f"""
<div class="entry-content">
  <p><strong>SEASON 1</strong></p>
  <p><strong>Game of Thrones S01 1080p BluRay x265 10bit [800MB/E]</strong></p>
  <p>
    <a href="{_SID}s1e1">Episode 1</a>
    <a href="{_SID}s1e2">Episode 2</a>
    <a href="{_SID}s1e3">Episode 3</a>
  </p>
  <p><strong>SEASON 2</strong></p>
  <p><strong>Game of Thrones S02 2160p HDR [2GB/E]</strong></p>
  <p><a href="{_SID}s2e1">Episode 1</a></p>
</div>
"""

_UNSCOPED_HTML = f"""
<div class="entry-content">
  <p>Game of Thrones 720p x264 [300MB/E]</p>
  <p>
    <a href="{_SID}x1">Episode 1</a>
    <a href="{_SID}x2">Episode 2</a>
    <a href="{_SID}zip">Zip Pack</a>
  </p>
</div>
"""


def _site(domains, validator, client, **settings) -> UHDMoviesSite:
    return UHDMoviesSite(
        domains=domains,
        validator=validator,
        settings=SiteSettings(**settings),
        http_client=client,
    )


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


class TestSearchTitles:
    @pytest.mark.parametrize(
        ("title", "expected"),
        [
            ("Inception", ["Inception"]),
            ("Mission: Impossible", ["Mission Impossible", "Mission"]),
            ("Fast & Furious", ["Fast and Furious", "Fast & Furious"]),
            (
                "Harry Potter and the Goblet of Fire",
                ["Harry Potter and the Goblet of Fire", "Harry Potter"],
            ),
        ],
    )
    def test_variants(
        self, mock_domains, mock_validator, title: str, expected: list[str]
    ) -> None:
        site = _site(mock_domains, mock_validator, AsyncMock())
        assert site.search_titles(MediaInfo(title=title)) == expected


class TestSearch:
    @respx.mock
    @pytest.mark.asyncio()
    async def test_grid_layout(self, mock_domains, mock_validator) -> None:
        respx.get(f"{_BASE}/search/Inception").respond(200, html=_GRID_HTML)
        async with httpx.AsyncClient() as client:
            entries = await _site(mock_domains, mock_validator, client).search("Inception")

        assert entries == [
            CatalogEntry(
                title="Download Inception (2010) 4K HDR",
                url=f"{_BASE}/download-inception-2010/",
            ),
            CatalogEntry(
                title="Inception Collection",
                url=f"{_BASE}/download-inception-collection/",
            ),
        ]
        mock_domains.current_base_url.assert_awaited_with("UHDMovies")

    @respx.mock
    @pytest.mark.asyncio()
    async def test_list_layout_fallback(self, mock_domains, mock_validator) -> None:
        respx.get(f"{_BASE}/search/Tenet").respond(200, html=_LIST_HTML)
        async with httpx.AsyncClient() as client:
            entries = await _site(mock_domains, mock_validator, client).search("Tenet")

        assert entries == [
            CatalogEntry(title="Tenet (2020) 2160p", url=f"{_BASE}/download-tenet-2020/")
        ]


# ---------------------------------------------------------------------------
# Movies
# ---------------------------------------------------------------------------


class TestMovieLinks:
    @respx.mock
    @pytest.mark.asyncio()
    async def test_quality_blocks_and_year_filter(
        self,
        mock_domains,
        mock_validator,
        movie_query: ContentQuery,
        movie_media: MediaInfo,
    ) -> None:
        respx.get(_MOVIE_ENTRY.url).respond(200, html=_MOVIE_HTML)
        async with httpx.AsyncClient() as client:
            site = _site(mock_domains, mock_validator, client)
            candidates = await site.extract_links(_MOVIE_ENTRY, movie_query, movie_media)

        assert len(candidates) == 1
        candidate = candidates[0]
        assert candidate.url == f"{_SID}m1"
        assert candidate.quality == "1080p | HDR | BluRay"
        assert candidate.size == "2.3GB"
        assert candidate.raw_quality == "Inception (2010) 1080p BluRay x265 HDR [2.3GB]"
        assert candidate.episodes == ()

    @respx.mock
    @pytest.mark.asyncio()
    async def test_without_year_keeps_collection_entries(
        self,
        mock_domains,
        mock_validator,
        movie_query: ContentQuery,
    ) -> None:
        respx.get(_MOVIE_ENTRY.url).respond(200, html=_MOVIE_HTML)
        async with httpx.AsyncClient() as client:
            site = _site(mock_domains, mock_validator, client)
            candidates = await site.extract_links(
                _MOVIE_ENTRY, movie_query, MediaInfo(title="Inception")
            )

        assert [c.url for c in candidates] == [f"{_SID}m1", f"{_SID}m3"]


# ---------------------------------------------------------------------------
# Series
# ---------------------------------------------------------------------------


class TestSeriesLinks:
    @respx.mock
    @pytest.mark.asyncio()
    async def test_requested_season_block(
        self,
        mock_domains,
        mock_validator,
        series_query: ContentQuery,
        movie_media: MediaInfo,
    ) -> None:
        respx.get(_SERIES_ENTRY.url).respond(200, html=_SEASONS_HTML)
        async with httpx.AsyncClient() as client:
            site = _site(mock_domains, mock_validator, client)
            candidates = await site.extract_links(_SERIES_ENTRY, series_query, movie_media)

        assert len(candidates) == 1
        candidate = candidates[0]
        assert candidate.quality == "1080p | BluRay"
        assert candidate.size == "800MB"
        assert candidate.url == f"{_SID}s1e1"
        assert [e.label for e in candidate.episodes] == [
            "Episode 1",
            "Episode 2",
            "Episode 3",
        ]

    @respx.mock
    @pytest.mark.asyncio()
    async def test_later_season_block(
        self, mock_domains, mock_validator, movie_media: MediaInfo
    ) -> None:
        respx.get(_SERIES_ENTRY.url).respond(200, html=_SEASONS_HTML)
        query = ContentQuery(content_id="1399", media_type="series", season=2, episode=1)
        async with httpx.AsyncClient() as client:
            site = _site(mock_domains, mock_validator, client)
            candidates = await site.extract_links(_SERIES_ENTRY, query, movie_media)

        assert [c.quality for c in candidates] == ["4K | HDR"]
        assert candidates[0].episodes == (
            LinkOption(label="Episode 1", url=f"{_SID}s2e1"),
        )

    @respx.mock
    @pytest.mark.asyncio()
    async def test_unscoped_episode_groups(
        self,
        mock_domains,
        mock_validator,
        series_query: ContentQuery,
        movie_media: MediaInfo,
    ) -> None:
        respx.get(_SERIES_ENTRY.url).respond(200, html=_UNSCOPED_HTML)
        async with httpx.AsyncClient() as client:
            site = _site(mock_domains, mock_validator, client)
            candidates = await site.extract_links(_SERIES_ENTRY, series_query, movie_media)

        assert len(candidates) == 1
        assert candidates[0].quality == "720p"
        assert candidates[0].raw_quality == "Game of Thrones 720p x264 [300MB/E]"
        assert [e.url for e in candidates[0].episodes] == [f"{_SID}x1", f"{_SID}x2"]

    async def test_episode_candidate_skips_the_chain(
        self,
        mock_domains,
        mock_validator,
        series_query: ContentQuery,
    ) -> None:
        episodes = (
            LinkOption(label="Episode 1", url=f"{_SID}s1e1"),
            LinkOption(label="Episode 2", url=f"{_SID}s1e2"),
        )
        candidate = QualityCandidate(quality="1080p", url=episodes[0].url, episodes=episodes)
        site = _site(mock_domains, mock_validator, AsyncMock())

        result = await site.resolve_chain(candidate, series_query, _SERIES_ENTRY.url)

        assert result is not None
        assert result.link_set == episodes
        assert result.link_set_kind is LinkSetKind.EPISODES
        assert result.terminal_url is None
