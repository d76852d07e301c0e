"""Tests for terminal page parsing."""

from __future__ import annotations

import httpx
import pytest
import respx

from leecharr.domain.entities import MechanismKind
from leecharr.infrastructure.terminal.page import (
    TerminalPageParser,
    parse_terminal_page,
)

_URL = "https://driveseed.org/file/abc"

_PAGE_HTML = """
<div class="card">
  <div class="card-header"><h5>Inception.2010.1080p.mkv [Seed]</h5></div>
  <ul>
    <li class="list-group-item">Name : Inception.2010.1080p.BluRay.x265.mkv</li>
    <li class="list-group-item">Size : 2.3 GB</li>
  </ul>
  <a href="/zfile/abc" class="btn">Resume Cloud</a>
  <a href="https://workerseed.dev/wfile/abc" class="btn">Resume Worker Bot</a>
  <a href="https://video-leech.pro/?url=KEY" class="btn">Instant Download</a>
</div>
"""


class TestParseTerminalPage:
    def test_metadata_and_mechanisms(self) -> None:
        page = parse_terminal_page(_PAGE_HTML, _URL)

        assert page.url == _URL
        assert page.file_name == "Inception.2010.1080p.BluRay.x265.mkv"
        assert page.size == "2.3 GB"
        assert [m.kind for m in page.mechanisms] == [
            MechanismKind.RESUMABLE,
            MechanismKind.WORKER_RELAY,
            MechanismKind.INSTANT,
        ]
        resumable = page.mechanism(MechanismKind.RESUMABLE)
        assert resumable is not None
        assert resumable.locator_url == "/zfile/abc"

    def test_header_fallback_for_file_name(self) -> None:
        html = """
        <div class="card-header"><h5>Movie.2020.720p.mkv <span>[x]</span> [Seed]</h5></div>
        <a href="/zfile/1">Cloud Resume Download</a>
        """
        page = parse_terminal_page(html, _URL)
        assert page.file_name == "Movie.2020.720p.mkv"
        assert page.size is None
        assert page.mechanisms[0].label == "Cloud Resume Download"

    def test_no_mechanisms(self) -> None:
        page = parse_terminal_page("<p>File not found</p>", _URL)
        assert page.mechanisms == ()
        assert page.file_name is None


class TestTerminalPageParser:
    @respx.mock
    @pytest.mark.asyncio()
    async def test_follows_script_redirect(self) -> None:
        first = respx.get(_URL).respond(
            200,
            html='<script>window.location.replace("/file/real");</script>',
        )
        respx.get("https://driveseed.org/file/real").respond(200, html=_PAGE_HTML)

        async with httpx.AsyncClient() as client:
            page = await TerminalPageParser(client).fetch(_URL, referer="https://a.test/")

        assert page is not None
        assert page.url == "https://driveseed.org/file/real"
        assert page.size == "2.3 GB"
        assert first.calls.last.request.headers["Referer"] == "https://a.test/"

    @respx.mock
    @pytest.mark.asyncio()
    async def test_direct_page(self) -> None:
        respx.get(_URL).respond(200, html=_PAGE_HTML)
        async with httpx.AsyncClient() as client:
            page = await TerminalPageParser(client).fetch(_URL)
        assert page is not None
        assert len(page.mechanisms) == 3

    @respx.mock
    @pytest.mark.asyncio()
    async def test_unreachable(self) -> None:
        respx.get(_URL).respond(404)
        async with httpx.AsyncClient() as client:
            assert await TerminalPageParser(client).fetch(_URL) is None
