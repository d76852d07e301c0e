"""Terminal file-host page: declared file metadata plus download buttons."""

from __future__ import annotations

import re
from urllib.parse import urljoin

import httpx
import structlog
from bs4 import BeautifulSoup

from leecharr.domain.entities import DownloadMechanism, MechanismKind, TerminalPage
from leecharr.infrastructure.common.html_selectors import (
    own_text,
    parse_html,
    text_of,
)
from leecharr.infrastructure.common.http import safe_fetch
from leecharr.infrastructure.gateways.hosts import origin_of

log = structlog.get_logger(__name__)

_JS_REDIRECT_RE = re.compile(r'window\.location\.replace\("([^"]+)"\)')
_SIZE_RE = re.compile(r"Size\s*:\s*([0-9.,]+\s*[KMGT]B)", re.IGNORECASE)
_NAME_RE = re.compile(r"Name\s*:\s*(.+)", re.IGNORECASE)
_BRACKETS_RE = re.compile(r"\[[^\]]*\]")

# Button labels per mechanism, matched as substrings of the anchor text.
MECHANISM_LABELS: dict[MechanismKind, tuple[str, ...]] = {
    MechanismKind.RESUMABLE: ("Resume Cloud", "Cloud Resume Download"),
    MechanismKind.WORKER_RELAY: ("Resume Worker Bot",),
    MechanismKind.INSTANT: ("Instant Download",),
}


def parse_terminal_page(html: str, url: str) -> TerminalPage:
    """Extract file name, size and mechanisms from a terminal page."""
    soup = parse_html(html)
    file_name, size = _file_info(soup)
    return TerminalPage(
        url=url,
        file_name=file_name,
        size=size,
        mechanisms=tuple(_mechanisms(soup)),
    )


def _file_info(soup: BeautifulSoup) -> tuple[str | None, str | None]:
    file_name: str | None = None
    size: str | None = None
    for item in soup.select("li.list-group-item"):
        text = text_of(item)
        if size is None and (m := _SIZE_RE.search(text)):
            size = m.group(1).strip()
        elif file_name is None and (m := _NAME_RE.search(text)):
            file_name = m.group(1).strip()

    if file_name is None:
        header = soup.select_one("div.card-header h5")
        if header is not None:
            file_name = _BRACKETS_RE.sub("", own_text(header)).strip() or None
    return file_name, size


def _mechanisms(soup: BeautifulSoup) -> list[DownloadMechanism]:
    found: list[DownloadMechanism] = []
    anchors = soup.select("a[href]")
    for kind, labels in MECHANISM_LABELS.items():
        for anchor in anchors:
            text = text_of(anchor)
            label = next((lbl for lbl in labels if lbl in text), None)
            if label is not None:
                found.append(
                    DownloadMechanism(
                        kind=kind, label=label, locator_url=str(anchor["href"])
                    )
                )
                break
    return found


class TerminalPageParser:
    """Fetches a terminal page, following its one-shot script redirect."""

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._http = http_client

    async def fetch(self, url: str, referer: str | None = None) -> TerminalPage | None:
        headers = {"Referer": referer} if referer else {}
        resp = await safe_fetch(self._http, url, event="terminal_page", headers=headers)
        if resp is None:
            return None

        redirect = _JS_REDIRECT_RE.search(resp.text)
        if redirect:
            next_url = urljoin(origin_of(str(resp.url)), redirect.group(1))
            resp = await safe_fetch(
                self._http,
                next_url,
                event="terminal_page",
                headers={"Referer": url},
            )
            if resp is None:
                return None

        page = parse_terminal_page(resp.text, str(resp.url))
        log.debug(
            "terminal_page_parsed",
            url=page.url,
            file_name=page.file_name,
            size=page.size,
            mechanisms=[m.kind.value for m in page.mechanisms],
        )
        return page
