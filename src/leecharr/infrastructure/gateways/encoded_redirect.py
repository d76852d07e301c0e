"""Encoded-redirect hop: the target travels base64-encoded in a query parameter."""

from __future__ import annotations

import base64
import binascii
from typing import Sequence
from urllib.parse import parse_qs, urlsplit

import httpx
import structlog

from leecharr.domain.entities import HopContext, HopOutcome

from .hosts import host_matches
from .scrape import ScrapeHop, ScrapeRule

log = structlog.get_logger(__name__)


def decode_target(url: str, param: str = "url") -> str | None:
    """Decode the base64 target carried in *url*'s *param* query value."""
    values = parse_qs(urlsplit(url).query).get(param)
    if not values:
        return None
    # parse_qs turns an unescaped "+" into a space; url-safe variants use -_.
    encoded = values[0].strip().replace(" ", "+").replace("-", "+").replace("_", "/")
    encoded += "=" * (-len(encoded) % 4)
    try:
        decoded = base64.b64decode(encoded, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    return decoded if decoded.startswith(("http://", "https://")) else None


class EncodedRedirectHop:
    """Decodes the target and, when *rules* are given, scrapes it directly.

    Without rules the decoded URL itself is the next hop.
    """

    def __init__(
        self,
        name: str,
        *,
        hosts: Sequence[str],
        http_client: httpx.AsyncClient,
        param: str = "url",
        rules: Sequence[ScrapeRule] = (),
    ) -> None:
        self._name = name
        self._hosts = tuple(hosts)
        self._param = param
        self._target_scraper = (
            ScrapeHop(name, hosts=(), rules=rules, http_client=http_client)
            if rules
            else None
        )

    @property
    def name(self) -> str:
        return self._name

    def supports(self, url: str) -> bool:
        return host_matches(url, self._hosts)

    async def resolve(self, url: str, context: HopContext) -> HopOutcome | None:
        target = decode_target(url, self._param)
        if target is None:
            log.info("encoded_redirect_undecodable", hop=self._name, url=url)
            return None
        if self._target_scraper is None:
            return HopOutcome(next_url=target)
        return await self._target_scraper.resolve(target, context)
