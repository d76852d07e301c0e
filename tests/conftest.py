"""Shared test fixtures for Leecharr test suite."""

from __future__ import annotations

import time
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from leecharr.domain.entities import (
    ContentQuery,
    DownloadMechanism,
    LinkOption,
    LinkSetKind,
    MechanismKind,
    MediaInfo,
    QualityCandidate,
    ResolutionChainResult,
    ResolvedStream,
    TerminalPage,
)

# ---------------------------------------------------------------------------
# Domain entity fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def movie_query() -> ContentQuery:
    return ContentQuery(content_id="27205", media_type="movie")


@pytest.fixture()
def series_query() -> ContentQuery:
    return ContentQuery(content_id="1399", media_type="series", season=1, episode=3)


@pytest.fixture()
def movie_media() -> MediaInfo:
    return MediaInfo(title="Inception", year=2010)


@pytest.fixture()
def candidate() -> QualityCandidate:
    return QualityCandidate(
        quality="1080p | HDR",
        url="https://tech.unblockedgames.world/?sid=abc",
        size="2.3GB",
        raw_quality="Inception (2010) 1080p BluRay HDR x265 10bit [2.3GB]",
    )


@pytest.fixture()
def terminal_result(candidate: QualityCandidate) -> ResolutionChainResult:
    return ResolutionChainResult(
        candidate=candidate, terminal_url="https://driveseed.org/file/abc"
    )


@pytest.fixture()
def episode_result(candidate: QualityCandidate) -> ResolutionChainResult:
    return ResolutionChainResult(
        candidate=candidate,
        link_set=(
            LinkOption(label="Episode 1", url="https://driveseed.org/file/e1"),
            LinkOption(label="Episode 2", url="https://driveseed.org/file/e2"),
            LinkOption(label="Episode 3", url="https://driveseed.org/file/e3"),
        ),
        link_set_kind=LinkSetKind.EPISODES,
    )


@pytest.fixture()
def terminal_page() -> TerminalPage:
    return TerminalPage(
        url="https://driveseed.org/file/abc",
        file_name="Inception.2010.1080p.BluRay.x265.mkv",
        size="2.3 GB",
        mechanisms=(
            DownloadMechanism(
                kind=MechanismKind.RESUMABLE,
                label="Resume Cloud",
                locator_url="/zfile/abc",
            ),
            DownloadMechanism(
                kind=MechanismKind.INSTANT,
                label="Instant Download",
                locator_url="https://video-leech.pro/?url=KEY123",
            ),
        ),
    )


def make_stream(
    *,
    url: str = "https://cdn.workers.dev/file.mkv",
    quality: str = "1080p",
    size: str | None = "2 GB",
    file_name: str | None = "file.mkv",
    provider: str = "uhdmovies",
) -> ResolvedStream:
    return ResolvedStream(
        display_name=f"{provider} - {quality}",
        title_line=f"{file_name}\n{size}",
        url=url,
        quality=quality,
        size=size,
        provider=provider,
        file_name=file_name,
        mechanism=MechanismKind.RESUMABLE,
    )


# ---------------------------------------------------------------------------
# Mock port fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_cache() -> AsyncMock:
    """Mock CachePort."""
    cache = AsyncMock()
    cache.get = AsyncMock(return_value=None)
    cache.set = AsyncMock()
    cache.delete = AsyncMock(return_value=True)
    cache.clear = AsyncMock()
    cache.aclose = AsyncMock()
    return cache


class InMemoryCache:
    """Dict-backed CachePort honouring TTLs, for round-trips through real stores."""

    def __init__(self) -> None:
        self.data: dict[str, tuple[Any, float | None]] = {}

    async def __aenter__(self) -> InMemoryCache:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        return None

    async def get(self, key: str) -> Any:
        item = self.data.get(key)
        if item is None:
            return None
        value, expires = item
        if expires is not None and expires <= time.time():
            del self.data[key]
            return None
        return value

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        self.data[key] = (value, time.time() + ttl if ttl else None)

    async def delete(self, key: str) -> bool:
        return self.data.pop(key, None) is not None

    async def clear(self) -> None:
        self.data.clear()


@pytest.fixture()
def memory_cache() -> InMemoryCache:
    return InMemoryCache()


@pytest.fixture()
def mock_validator() -> AsyncMock:
    """Mock LinkValidatorPort that accepts every URL."""
    validator = AsyncMock()
    validator.validate = AsyncMock(return_value=True)
    return validator


@pytest.fixture()
def mock_domains() -> AsyncMock:
    """Mock DomainResolverPort with one fixed base URL per site key."""
    domains = AsyncMock()

    async def _base(site: str) -> str:
        return f"https://{site.lower()}.test"

    domains.current_base_url = AsyncMock(side_effect=_base)
    return domains


@pytest.fixture()
def mock_metadata(movie_media: MediaInfo) -> AsyncMock:
    metadata = AsyncMock()
    metadata.lookup = AsyncMock(return_value=movie_media)
    return metadata


def make_site(
    name: str = "uhdmovies",
    *,
    media_types: frozenset[str] = frozenset({"movie", "series"}),
) -> MagicMock:
    """Fake SiteAdapterPort: sync identity and matching, async I/O methods."""
    site = MagicMock()
    site.name = name
    site.media_types = media_types
    site.search_titles.side_effect = lambda media: [media.title]
    site.search = AsyncMock(return_value=[])
    site.match.return_value = None
    site.extract_links = AsyncMock(return_value=[])
    site.resolve_chain = AsyncMock(return_value=None)
    site.resolve_terminal = AsyncMock(return_value=None)
    site.cleanup = AsyncMock()
    return site


@pytest.fixture(name="make_stream")
def make_stream_fixture():
    """Factory for ResolvedStream instances."""
    return make_stream


@pytest.fixture(name="make_site")
def make_site_fixture():
    """Factory for fake site adapters."""
    return make_site
