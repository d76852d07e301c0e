"""Fail-soft HTTP helpers shared by sites, hops and mechanisms.

Scrape steps treat every network fault as "this path is dead": they log
and return ``None`` so the caller can try the next candidate.
"""

from __future__ import annotations

import json
from typing import Any

import httpx
import structlog

log = structlog.get_logger(__name__)


async def safe_fetch(
    client: httpx.AsyncClient,
    url: str,
    *,
    method: str = "GET",
    event: str = "fetch",
    context: str = "",
    **kwargs: Any,
) -> httpx.Response | None:
    """Request *url* with structured error logging.

    Non-2xx answers count as failures. Returns ``None`` instead of raising.
    """
    try:
        resp = await client.request(method, url, **kwargs)
        resp.raise_for_status()
        return resp
    except httpx.TimeoutException:
        log.warning(f"{event}_timeout", url=url, context=context)
    except httpx.HTTPStatusError as exc:
        log.warning(
            f"{event}_http_error",
            url=url,
            status=exc.response.status_code,
            context=context,
        )
    except httpx.HTTPError as exc:
        log.warning(f"{event}_fetch_error", url=url, error=str(exc), context=context)
    return None


def safe_parse_json(
    response: httpx.Response, *, event: str = "fetch", context: str = ""
) -> dict[str, Any] | None:
    """Parse a JSON object body; ``None`` for invalid JSON or non-objects."""
    try:
        data = response.json()
    except (json.JSONDecodeError, ValueError):
        log.warning(f"{event}_invalid_json", url=str(response.url), context=context)
        return None
    if not isinstance(data, dict):
        log.warning(f"{event}_unexpected_json", url=str(response.url), context=context)
        return None
    return data
