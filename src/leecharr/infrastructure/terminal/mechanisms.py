"""Download mechanisms offered on terminal pages.

Each resolver turns a button's locator into a direct file URL, or
returns ``None``. None of them validates the URL; that is the
selector's job.
"""

from __future__ import annotations

import re
from typing import Callable
from urllib.parse import parse_qs, urljoin, urlsplit

import httpx
import structlog

from leecharr.domain.entities import DownloadMechanism, MechanismKind, TerminalPage
from leecharr.infrastructure.common.html_selectors import extract_attr, parse_html
from leecharr.infrastructure.common.http import safe_fetch, safe_parse_json
from leecharr.infrastructure.common.parsers import encode_last_segment_spaces
from leecharr.infrastructure.gateways.hosts import TERMINAL_HOSTS, host_matches

log = structlog.get_logger(__name__)


def _direct(url: str) -> str:
    if "workers.dev" in url:
        return encode_last_segment_spaces(url)
    return url


class ResumableMechanism:
    """Resume-cloud button: a direct link, or one more page holding it."""

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._http = http_client

    @property
    def kind(self) -> MechanismKind:
        return MechanismKind.RESUMABLE

    async def resolve(
        self, mechanism: DownloadMechanism, page: TerminalPage
    ) -> str | None:
        href = mechanism.locator_url
        is_absolute = href.startswith(("http://", "https://"))
        if "workers.dev" in href or (is_absolute and not host_matches(href, TERMINAL_HOSTS)):
            return _direct(href)

        resume_url = urljoin(page.url, href)
        resp = await safe_fetch(
            self._http, resume_url, event="resume_cloud", headers={"Referer": page.url}
        )
        if resp is None:
            return None

        soup = parse_html(resp.text)
        link = extract_attr(
            soup,
            'a.btn-success[href*="workers.dev"]',
            "href",
            'a[href*="driveleech.net/d/"]',
            'a[href*="driveseed.org/d/"]',
            'a:-soup-contains("Cloud Resume Download")',
        )
        if not link:
            log.info("resume_cloud_no_link", url=resume_url)
            return None
        return _direct(urljoin(str(resp.url), link))


class InstantMechanism:
    """Instant-download button: trades the locator key for a file URL.

    The key travels in the locator's ``url`` query parameter and is
    posted to the host's ``/api`` endpoint unless *api_url* pins one.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        api_url: str | None = None,
        token: str | None = None,
        multipart: bool = True,
    ) -> None:
        self._http = http_client
        self._api_url = api_url
        self._token = token
        self._multipart = multipart

    @property
    def kind(self) -> MechanismKind:
        return MechanismKind.INSTANT

    async def resolve(
        self, mechanism: DownloadMechanism, page: TerminalPage
    ) -> str | None:
        locator = urljoin(page.url, mechanism.locator_url)
        parts = urlsplit(locator)
        keys = parse_qs(parts.query).get("url")
        if not keys:
            log.info("instant_no_keys", url=locator)
            return None

        api_url = self._api_url or f"{parts.scheme}://{parts.netloc}/api"
        token = self._token or parts.hostname or ""
        payload: dict[str, object]
        if self._multipart:
            payload = {"files": {"keys": (None, keys[0])}}
        else:
            payload = {"data": {"keys": keys[0]}}

        resp = await safe_fetch(
            self._http,
            api_url,
            method="POST",
            event="instant_download",
            headers={"x-token": token},
            **payload,
        )
        if resp is None:
            return None
        data = safe_parse_json(resp, event="instant_download")
        url = data.get("url") if data else None
        if not isinstance(url, str) or not url:
            log.info("instant_no_url", api_url=api_url)
            return None
        return _direct(url)


_TOKEN_RE = re.compile(r"formData\.append\('token', '([^']+)'\)")
_ID_RE = re.compile(r"fetch\('/download\?id=([^']+)',")


class WorkerRelayMechanism:
    """Worker-bot button: token and id from inline script, then a relay POST.

    The page sets cookies the relay checks, so the exchange runs on its
    own session.
    """

    def __init__(
        self,
        *,
        user_agent: str,
        api_base: str = "https://workerseed.dev",
        timeout_seconds: float = 30.0,
        session_factory: Callable[[], httpx.AsyncClient] | None = None,
    ) -> None:
        self._user_agent = user_agent
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout_seconds
        self._session_factory = session_factory or self._new_session

    @property
    def kind(self) -> MechanismKind:
        return MechanismKind.WORKER_RELAY

    def _new_session(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._timeout,
            follow_redirects=True,
            headers={"User-Agent": self._user_agent},
        )

    async def resolve(
        self, mechanism: DownloadMechanism, page: TerminalPage
    ) -> str | None:
        page_url = urljoin(page.url, mechanism.locator_url)
        async with self._session_factory() as session:
            resp = await safe_fetch(session, page_url, event="worker_relay")
            if resp is None:
                return None

            token, file_id = self._script_values(resp.text)
            if token is None or file_id is None:
                log.info("worker_relay_script_values_missing", url=page_url)
                return None

            api_resp = await safe_fetch(
                session,
                f"{self._api_base}/download?id={file_id}",
                method="POST",
                event="worker_relay",
                files={"token": (None, token)},
                headers={"Referer": page_url, "x-requested-with": "XMLHttpRequest"},
            )
        if api_resp is None:
            return None
        data = safe_parse_json(api_resp, event="worker_relay")
        url = data.get("url") if data else None
        return url if isinstance(url, str) and url else None

    @staticmethod
    def _script_values(html: str) -> tuple[str | None, str | None]:
        soup = parse_html(html)
        for script in soup.select('script[type="text/javascript"]'):
            text = script.string or script.get_text()
            if "formData.append('token'" not in text:
                continue
            token = _TOKEN_RE.search(text)
            file_id = _ID_RE.search(text)
            return (
                token.group(1) if token else None,
                file_id.group(1) if file_id else None,
            )
        return None, None
