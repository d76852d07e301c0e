"""Tests for the TopMovies site adapter."""

from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest
import respx

from leecharr.domain.entities import (
    CatalogEntry,
    ContentQuery,
    MechanismKind,
    MediaInfo,
    QualityCandidate,
    ResolutionChainResult,
)
from leecharr.infrastructure.sites import SiteSettings, TopMoviesSite

_BASE = "https://topmovies.test"
_ENTRY = CatalogEntry(title="Inception (2010)", url=f"{_BASE}/inception-2010/")

# ---------------------------------------------------------------------------
# HTML fixtures
# ---------------------------------------------------------------------------

_SEARCH_HTML = """
<div class="latestPost">
  <a href="/inception-2010/" title="Download Inception (2010) Dual Audio">
    <img src="/poster.jpg">
  </a>
</div>
<div class="latestPost">
  <a href="https://topmovies.test/interstellar-2014/" title="Interstellar (2014)">x</a>
</div>
<div class="latestPost"><span>no link here</span></div>
"""

_MOVIE_HTML = """
<div class="thecontent">
  <h3>Screenshots</h3>
  <p><img src="/s1.jpg"></p>
  <h3>Download Inception (2010) 1080p BluRay [2.3GB]</h3>
  <p><a href="https://leechpro.blog/l/1080">Download Links</a></p>
  <h3>Download Inception (2010) 480p [400MB]</h3>
  <p><a href="https://leechpro.blog/l/480">Download Links</a></p>
  <h3>Download Inception (2010) 720p [1GB]</h3>
  <p>Links coming soon</p>
  <h3>Download Inception (2010) 1080p x265 [1.5GB]</h3>
  <p><a href="https://leechpro.blog/l/1080-hevc">Download Links</a></p>
</div>
"""

_LEECHPRO_HTML = """
<a href="https://ads.test/offer">Sponsored</a>
<div class="timed-content-client_show_0_5_0">
  <a href="https://driveseed.org/file/xyz">Get Links</a>
</div>
"""

_DRIVESEED_HTML = """
<div class="card">
  <div class="card-header"><h5>Inception.2010.1080p.mkv [Seed]</h5></div>
  <ul>
    <li class="list-group-item">Name : Inception.2010.1080p.BluRay.x265.mkv</li>
    <li class="list-group-item">Size : 2.3 GB</li>
  </ul>
  <a href="/zfile/xyz" class="btn">Resume Cloud</a>
</div>
"""


def _site(domains, validator, client, **settings) -> TopMoviesSite:
    return TopMoviesSite(
        domains=domains,
        validator=validator,
        settings=SiteSettings(**settings),
        http_client=client,
    )


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


class TestSearch:
    @respx.mock
    @pytest.mark.asyncio()
    async def test_parses_latest_posts(self, mock_domains, mock_validator) -> None:
        route = respx.get(f"{_BASE}/search/Inception%202010").respond(
            200, html=_SEARCH_HTML
        )
        async with httpx.AsyncClient() as client:
            entries = await _site(mock_domains, mock_validator, client).search(
                "Inception 2010"
            )

        assert route.called
        assert entries == [
            CatalogEntry(
                title="Download Inception (2010) Dual Audio",
                url=f"{_BASE}/inception-2010/",
            ),
            CatalogEntry(title="Interstellar (2014)", url=f"{_BASE}/interstellar-2014/"),
        ]
        mock_domains.current_base_url.assert_awaited_with("topMovies")

    @respx.mock
    @pytest.mark.asyncio()
    async def test_search_failure_is_empty(self, mock_domains, mock_validator) -> None:
        respx.get(f"{_BASE}/search/Inception").respond(503)
        async with httpx.AsyncClient() as client:
            site = _site(mock_domains, mock_validator, client)
            assert await site.search("Inception") == []


# ---------------------------------------------------------------------------
# Link extraction
# ---------------------------------------------------------------------------


class TestExtractLinks:
    @respx.mock
    @pytest.mark.asyncio()
    async def test_quality_headers(
        self,
        mock_domains,
        mock_validator,
        movie_query: ContentQuery,
        movie_media: MediaInfo,
    ) -> None:
        respx.get(_ENTRY.url).respond(200, html=_MOVIE_HTML)
        async with httpx.AsyncClient() as client:
            site = _site(mock_domains, mock_validator, client)
            candidates = await site.extract_links(_ENTRY, movie_query, movie_media)

        assert candidates == [
            QualityCandidate(
                quality="1080p",
                url="https://leechpro.blog/l/1080",
                size="2.3GB",
                raw_quality="Download Inception (2010) 1080p BluRay [2.3GB]",
            )
        ]

    @respx.mock
    @pytest.mark.asyncio()
    async def test_lower_tier_kept_when_configured(
        self,
        mock_domains,
        mock_validator,
        movie_query: ContentQuery,
        movie_media: MediaInfo,
    ) -> None:
        respx.get(_ENTRY.url).respond(200, html=_MOVIE_HTML)
        async with httpx.AsyncClient() as client:
            site = _site(mock_domains, mock_validator, client, min_quality_tier=480)
            candidates = await site.extract_links(_ENTRY, movie_query, movie_media)

        assert [c.quality for c in candidates] == ["1080p", "480p"]

    @respx.mock
    @pytest.mark.asyncio()
    async def test_page_unreachable(
        self,
        mock_domains,
        mock_validator,
        movie_query: ContentQuery,
        movie_media: MediaInfo,
    ) -> None:
        respx.get(_ENTRY.url).mock(side_effect=httpx.ConnectError("down"))
        async with httpx.AsyncClient() as client:
            site = _site(mock_domains, mock_validator, client)
            assert await site.extract_links(_ENTRY, movie_query, movie_media) == []


# ---------------------------------------------------------------------------
# Chain and terminal
# ---------------------------------------------------------------------------


_CANDIDATE = QualityCandidate(
    quality="1080p",
    url="https://leechpro.blog/l/1080",
    size="2.3GB",
    raw_quality="Download Inception (2010) 1080p BluRay x265 [2.3GB]",
)


class TestResolve:
    @respx.mock
    @pytest.mark.asyncio()
    async def test_leechpro_hop_reaches_terminal(
        self, mock_domains, mock_validator, movie_query: ContentQuery
    ) -> None:
        hop = respx.get(_CANDIDATE.url).respond(200, html=_LEECHPRO_HTML)
        async with httpx.AsyncClient() as client:
            site = _site(mock_domains, mock_validator, client)
            result = await site.resolve_chain(_CANDIDATE, movie_query, _ENTRY.url)

        assert result is not None
        assert result.terminal_url == "https://driveseed.org/file/xyz"
        assert result.candidate is _CANDIDATE
        assert hop.calls.last.request.headers["Referer"] == _ENTRY.url

    @respx.mock
    @pytest.mark.asyncio()
    async def test_leechpro_without_supported_link(
        self, mock_domains, mock_validator, movie_query: ContentQuery
    ) -> None:
        respx.get(_CANDIDATE.url).respond(
            200, html='<a href="https://ads.test/offer">Sponsored</a>'
        )
        async with httpx.AsyncClient() as client:
            site = _site(mock_domains, mock_validator, client)
            assert await site.resolve_chain(_CANDIDATE, movie_query, _ENTRY.url) is None

    @respx.mock
    @pytest.mark.asyncio()
    async def test_resolve_terminal_builds_stream(
        self, mock_domains, mock_validator, movie_query: ContentQuery
    ) -> None:
        respx.get("https://driveseed.org/file/xyz").respond(200, html=_DRIVESEED_HTML)
        respx.get("https://driveseed.org/zfile/xyz").respond(
            200,
            html='<a class="btn btn-success" href="https://r.workers.dev/d/Inception 2010.mkv">Download</a>',
        )
        result = ResolutionChainResult(
            candidate=_CANDIDATE, terminal_url="https://driveseed.org/file/xyz"
        )
        async with httpx.AsyncClient() as client:
            site = _site(
                mock_domains, mock_validator, client, priority=(MechanismKind.RESUMABLE,)
            )
            stream = await site.resolve_terminal(result, movie_query)

        assert stream is not None
        assert stream.url == "https://r.workers.dev/d/Inception%202010.mkv"
        assert stream.display_name == "TopMovies - 1080p"
        assert stream.title_line == "Inception 2010 1080p BluRay x265\n2.3 GB"
        assert stream.size == "2.3 GB"
        assert stream.provider == "topmovies"
        assert stream.mechanism is MechanismKind.RESUMABLE
        assert stream.tech_details == ["H.265"]
        mock_validator.validate.assert_awaited_once_with(stream.url)

    @respx.mock
    @pytest.mark.asyncio()
    async def test_resolve_terminal_rejected_by_validator(
        self, mock_domains, mock_validator, movie_query: ContentQuery
    ) -> None:
        mock_validator.validate.return_value = False
        respx.get("https://driveseed.org/file/xyz").respond(200, html=_DRIVESEED_HTML)
        respx.get("https://driveseed.org/zfile/xyz").respond(
            200, html='<a class="btn btn-success" href="https://r.workers.dev/d/a.mkv">x</a>'
        )
        result = ResolutionChainResult(
            candidate=_CANDIDATE, terminal_url="https://driveseed.org/file/xyz"
        )
        async with httpx.AsyncClient() as client:
            site = _site(
                mock_domains, mock_validator, client, priority=(MechanismKind.RESUMABLE,)
            )
            assert await site.resolve_terminal(result, movie_query) is None


# ---------------------------------------------------------------------------
# Identity and lifecycle
# ---------------------------------------------------------------------------


class TestSiteIdentity:
    def test_movies_only(self, mock_domains, mock_validator) -> None:
        site = _site(mock_domains, mock_validator, AsyncMock())
        assert site.media_types == frozenset({"movie"})
        assert site.name == "topmovies"

    def test_display_name_uses_short_resolution(
        self, mock_domains, mock_validator
    ) -> None:
        site = _site(mock_domains, mock_validator, AsyncMock())
        candidate = QualityCandidate(quality="4K HDR", url="u")
        assert site._display_name(candidate) == "TopMovies - 4K"


class TestCleanup:
    async def test_closes_own_client(self, mock_domains, mock_validator) -> None:
        site = TopMoviesSite(domains=mock_domains, validator=mock_validator)
        await site.cleanup()
        assert site._client.is_closed

    async def test_injected_client_stays_open(
        self, mock_domains, mock_validator
    ) -> None:
        async with httpx.AsyncClient() as client:
            site = _site(mock_domains, mock_validator, client)
            await site.cleanup()
            assert not client.is_closed
