"""Tests for RangeProbeValidator."""

from __future__ import annotations

import httpx
import pytest
import respx

from leecharr.infrastructure.validation.url_validator import RangeProbeValidator

_URL = "https://cdn.workers.dev/file.mkv"


class TestRangeProbeValidator:
    @respx.mock
    @pytest.mark.asyncio()
    async def test_partial_content_is_valid(self) -> None:
        route = respx.head(_URL).respond(206)
        async with httpx.AsyncClient() as client:
            assert await RangeProbeValidator(client).validate(_URL) is True
        assert route.calls.last.request.headers["Range"] == "bytes=0-1"

    @respx.mock
    @pytest.mark.asyncio()
    async def test_ok_is_valid(self) -> None:
        respx.head(_URL).respond(200)
        async with httpx.AsyncClient() as client:
            assert await RangeProbeValidator(client).validate(_URL) is True

    @respx.mock
    @pytest.mark.asyncio()
    async def test_not_found_is_invalid(self) -> None:
        respx.head(_URL).respond(404)
        async with httpx.AsyncClient() as client:
            assert await RangeProbeValidator(client).validate(_URL) is False

    @respx.mock
    @pytest.mark.asyncio()
    async def test_timeout_is_invalid(self) -> None:
        respx.head(_URL).mock(side_effect=httpx.ReadTimeout("slow"))
        async with httpx.AsyncClient() as client:
            assert await RangeProbeValidator(client).validate(_URL) is False

    @respx.mock
    @pytest.mark.asyncio()
    async def test_connection_error_is_invalid(self) -> None:
        respx.head(_URL).mock(side_effect=httpx.ConnectError("refused"))
        async with httpx.AsyncClient() as client:
            assert await RangeProbeValidator(client).validate(_URL) is False

    async def test_non_http_url_is_invalid(self) -> None:
        async with httpx.AsyncClient() as client:
            assert await RangeProbeValidator(client).validate("magnet:?xt=1") is False
