"""TMDB API client - async httpx implementation with caching."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from leecharr.domain.entities import MediaInfo, MediaType, MetadataUnavailableError
from leecharr.domain.ports.cache import CachePort

log = structlog.get_logger(__name__)

_BASE_URL = "https://api.themoviedb.org/3"

_TTL_DETAILS = 86_400  # 24 hours


class HttpxTmdbClient:
    """Async TMDB client using httpx + CachePort.

    Implements ``MetadataPort``. A missing title is not an error (returns
    None); an unreachable service or a rejected key is, since no provider
    can match anything without a reference title.
    """

    def __init__(
        self,
        *,
        api_key: str | None,
        http_client: httpx.AsyncClient,
        cache: CachePort,
        ttl_seconds: int = _TTL_DETAILS,
    ) -> None:
        self._api_key = api_key
        self._http = http_client
        self._cache = cache
        self._ttl = ttl_seconds

    async def _get(self, path: str) -> dict[str, Any] | None:
        """GET request with error handling. Returns parsed JSON or None on 404."""
        url = f"{_BASE_URL}{path}"
        try:
            resp = await self._http.get(url, params={"api_key": self._api_key})
            if resp.status_code == 401:
                log.error("tmdb_api_key_invalid", status=401)
                raise MetadataUnavailableError("TMDB rejected the API key")
            if resp.status_code == 404:
                log.debug("tmdb_resource_not_found", path=path)
                return None
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as exc:
            log.warning("tmdb_http_error", path=path, status=exc.response.status_code)
            raise MetadataUnavailableError(
                f"TMDB answered {exc.response.status_code} for {path}"
            ) from exc
        except httpx.HTTPError as exc:
            log.warning("tmdb_network_error", path=path, exc_info=True)
            raise MetadataUnavailableError(f"TMDB unreachable: {exc}") from exc
        except ValueError as exc:
            log.warning("tmdb_invalid_json", path=path)
            raise MetadataUnavailableError("TMDB returned invalid JSON") from exc

    @staticmethod
    def _to_media_info(data: dict[str, Any], media_type: MediaType) -> MediaInfo | None:
        if media_type == "movie":
            title = data.get("title") or data.get("original_title")
            date = data.get("release_date") or ""
        else:
            title = data.get("name") or data.get("original_name")
            date = data.get("first_air_date") or ""
        if not title:
            return None
        year = int(date[:4]) if date[:4].isdigit() else None
        return MediaInfo(title=title, year=year)

    async def lookup(self, content_id: str, media_type: MediaType) -> MediaInfo | None:
        """Resolve a TMDB id to its reference title and (first air) year."""
        if not self._api_key:
            raise MetadataUnavailableError("TMDB API key is not configured")

        kind = "movie" if media_type == "movie" else "tv"
        cache_key = f"tmdb:{kind}:{content_id}"
        cached = await self._cache.get(cache_key)
        if cached is not None:
            return MediaInfo(title=cached["title"], year=cached.get("year"))

        data = await self._get(f"/{kind}/{content_id}")
        if data is None:
            return None

        info = self._to_media_info(data, media_type)
        if info is None:
            return None

        await self._cache.set(
            cache_key, {"title": info.title, "year": info.year}, ttl=self._ttl
        )
        log.debug("tmdb_lookup", content_id=content_id, title=info.title, year=info.year)
        return info
