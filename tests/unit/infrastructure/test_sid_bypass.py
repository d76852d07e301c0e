"""Tests for the form/token/cookie interstitial bypass."""

from __future__ import annotations

import httpx
import pytest
import respx

from leecharr.domain.entities import ContentQuery, HopContext
from leecharr.infrastructure.gateways.sid import SidBypass

_HOST = "https://tech.unblockedgames.world"
_ENTRY = f"{_HOST}/?sid=abc"

_LANDING_HTML = """
<form id="landing" action="/verify" method="post">
  <input type="hidden" name="_wp_http" value="first-value">
</form>
"""

_VERIFY_HTML = """
<form id="landing" action="/go" method="post">
  <input type="hidden" name="_wp_http2" value="second-value">
  <input type="hidden" name="token" value="tok-123">
</form>
"""

_SCRIPT_HTML = """
<script>
  s_343('sidcookie', 'cookie-value', 60);
  var c = document.createElement("a");
  c.setAttribute("href", "/?go=xyz");
</script>
"""

_REFRESH_HTML = """
<html><head>
<meta http-equiv="refresh" content="0;url=https://driveseed.org/file/final">
</head></html>
"""


@pytest.fixture()
def context(movie_query: ContentQuery) -> HopContext:
    return HopContext(query=movie_query)


def _bypass() -> SidBypass:
    return SidBypass(user_agent="test-agent", timeout_seconds=5)


def _mock_steps(
    *,
    landing: str = _LANDING_HTML,
    verify: str = _VERIFY_HTML,
    script: str = _SCRIPT_HTML,
    refresh: str = _REFRESH_HTML,
) -> dict[str, respx.Route]:
    return {
        "landing": respx.get(f"{_HOST}/", params={"sid": "abc"}).respond(200, html=landing),
        "verify": respx.post(f"{_HOST}/verify").respond(200, html=verify),
        "go": respx.post(f"{_HOST}/go").respond(200, html=script),
        "refresh": respx.get(f"{_HOST}/", params={"go": "xyz"}).respond(200, html=refresh),
    }


class TestSidBypass:
    @respx.mock
    @pytest.mark.asyncio()
    async def test_full_walk(self, context: HopContext) -> None:
        routes = _mock_steps()

        outcome = await _bypass().resolve(_ENTRY, context)

        assert outcome is not None
        assert outcome.next_url == "https://driveseed.org/file/final"
        assert routes["verify"].calls.last.request.content == b"_wp_http=first-value"
        verify_body = routes["go"].calls.last.request.content.decode()
        assert "_wp_http2=second-value" in verify_body
        assert "token=tok-123" in verify_body
        final = routes["refresh"].calls.last.request
        assert "sidcookie=cookie-value" in final.headers["cookie"]
        assert final.headers["user-agent"] == "test-agent"

    @respx.mock
    @pytest.mark.asyncio()
    async def test_missing_landing_form(self, context: HopContext) -> None:
        _mock_steps(landing="<p>Just a moment...</p>")
        assert await _bypass().resolve(_ENTRY, context) is None

    @respx.mock
    @pytest.mark.asyncio()
    async def test_missing_token(self, context: HopContext) -> None:
        routes = _mock_steps(
            verify='<form id="landing" action="/go"><input name="_wp_http2" value="v"></form>'
        )
        assert await _bypass().resolve(_ENTRY, context) is None
        assert not routes["go"].called

    @respx.mock
    @pytest.mark.asyncio()
    async def test_missing_script_values(self, context: HopContext) -> None:
        routes = _mock_steps(script="<script>nothing here</script>")
        assert await _bypass().resolve(_ENTRY, context) is None
        assert not routes["refresh"].called

    @respx.mock
    @pytest.mark.asyncio()
    async def test_missing_meta_refresh(self, context: HopContext) -> None:
        _mock_steps(refresh="<html></html>")
        assert await _bypass().resolve(_ENTRY, context) is None

    @respx.mock
    @pytest.mark.asyncio()
    async def test_http_error(self, context: HopContext) -> None:
        respx.get(f"{_HOST}/", params={"sid": "abc"}).respond(502)
        assert await _bypass().resolve(_ENTRY, context) is None

    async def test_uses_injected_session(self, context: HopContext) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(500))
        bypass = SidBypass(
            user_agent="ua",
            session_factory=lambda: httpx.AsyncClient(transport=transport),
        )
        assert await bypass.resolve(_ENTRY, context) is None

    def test_supports_interstitial_hosts_only(self) -> None:
        bypass = _bypass()
        assert bypass.supports(_ENTRY)
        assert bypass.supports("https://tech.creativeexpressionsblog.com/?sid=1")
        assert not bypass.supports("https://driveseed.org/file/x")
