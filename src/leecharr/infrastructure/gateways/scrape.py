"""Simple-scrape hop: fetch a page and pick the next link by selector."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import httpx
import structlog

from leecharr.domain.entities import HopContext, HopOutcome, LinkOption, LinkSetKind
from leecharr.infrastructure.common.html_selectors import href_of, parse_html, text_of
from leecharr.infrastructure.common.http import safe_fetch

from .hosts import host_matches

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ScrapeRule:
    """One way of finding the next hop on a page.

    Rules are tried in order; the first that yields anything wins.
    With ``link_set`` set, every matching anchor becomes a named entry
    instead of only the first one being followed.
    """

    selector: str
    link_set: LinkSetKind | None = None
    # Anchors whose text contains any of these (case-insensitive) are skipped.
    exclude: tuple[str, ...] = ()
    # When set, only hrefs pointing at these hosts are accepted.
    hosts: tuple[str, ...] = ()


class ScrapeHop:
    """Fetch-and-select hop for intermediate pages of known layout."""

    def __init__(
        self,
        name: str,
        *,
        hosts: Sequence[str],
        rules: Sequence[ScrapeRule],
        http_client: httpx.AsyncClient,
    ) -> None:
        self._name = name
        self._hosts = tuple(hosts)
        self._rules = tuple(rules)
        self._http = http_client

    @property
    def name(self) -> str:
        return self._name

    def supports(self, url: str) -> bool:
        return host_matches(url, self._hosts)

    async def resolve(self, url: str, context: HopContext) -> HopOutcome | None:
        headers = {"Referer": context.referer} if context.referer else {}
        resp = await safe_fetch(
            self._http, url, event=f"{self._name}_hop", headers=headers
        )
        if resp is None:
            return None

        soup = parse_html(resp.text)
        base_url = str(resp.url)
        for rule in self._rules:
            options = self._collect(soup, rule, base_url)
            if not options:
                continue
            if rule.link_set is not None:
                log.debug(
                    "hop_link_set",
                    hop=self._name,
                    kind=rule.link_set.value,
                    entries=len(options),
                )
                return HopOutcome(link_set=tuple(options), link_set_kind=rule.link_set)
            return HopOutcome(next_url=options[0].url)

        log.info("hop_no_link", hop=self._name, url=url)
        return None

    @staticmethod
    def _collect(soup, rule: ScrapeRule, base_url: str) -> list[LinkOption]:
        options: list[LinkOption] = []
        seen: set[str] = set()
        for anchor in soup.select(rule.selector):
            href = href_of(anchor, base_url)
            if not href or href in seen:
                continue
            label = text_of(anchor)
            lowered = label.lower()
            if any(word in lowered for word in rule.exclude):
                continue
            if rule.hosts and not host_matches(href, rule.hosts):
                continue
            if rule.link_set is not None and not label:
                continue
            seen.add(href)
            options.append(LinkOption(label=label, url=href))
        return options
