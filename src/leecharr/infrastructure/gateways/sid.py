"""Form/token/cookie interstitial ("SID") bypass.

The interstitial hosts gate their redirect behind two chained landing
forms and a cookie that is only ever set from inline script:

1. GET the entry URL, read the landing form (hidden ``_wp_http``, action).
2. POST ``_wp_http`` to the action.
3. Read the verification form (action, ``_wp_http2``, ``token``).
4. POST the verification fields.
5. Pull the cookie pair and the next path out of the script text.
6. Send the cookie with a GET of that path; a meta refresh names the target.

Every step needs the same visitor session, so each walk gets its own
cookie-carrying client. Any missing field ends the walk with no result.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Sequence
from urllib.parse import urljoin

import httpx
import structlog

from leecharr.domain.entities import HopContext, HopOutcome
from leecharr.infrastructure.common.html_selectors import parse_html

from .hosts import SID_HOSTS, host_matches, host_of, origin_of

log = structlog.get_logger(__name__)

_ACCEPT = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,"
    "image/avif,image/webp,*/*;q=0.8"
)


@dataclass(frozen=True)
class SidSelectors:
    """Host-specific markup and script patterns of the interstitial."""

    form: str = "#landing"
    first_field: str = "_wp_http"
    second_field: str = "_wp_http2"
    token_field: str = "token"
    cookie_pattern: re.Pattern[str] = re.compile(r"s_343\('([^']+)',\s*'([^']+)'")
    path_pattern: re.Pattern[str] = re.compile(
        r"c\.setAttribute\(\"href\",\s*\"([^\"]+)\"\)"
    )
    refresh_pattern: re.Pattern[str] = re.compile(r"url=(.*)", re.IGNORECASE)


class _StepFailed(Exception):
    def __init__(self, step: int, reason: str) -> None:
        super().__init__(f"step {step}: {reason}")
        self.step = step
        self.reason = reason


class SidBypass:
    """Hop resolver for the interstitial hosts."""

    def __init__(
        self,
        *,
        user_agent: str,
        timeout_seconds: float = 30.0,
        hosts: Sequence[str] = SID_HOSTS,
        selectors: SidSelectors | None = None,
        session_factory: Callable[[], httpx.AsyncClient] | None = None,
    ) -> None:
        self._hosts = tuple(hosts)
        self._selectors = selectors or SidSelectors()
        self._user_agent = user_agent
        self._timeout = timeout_seconds
        self._session_factory = session_factory or self._new_session

    @property
    def name(self) -> str:
        return "sid"

    def supports(self, url: str) -> bool:
        return host_matches(url, self._hosts)

    def _new_session(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._timeout,
            follow_redirects=True,
            headers={
                "User-Agent": self._user_agent,
                "Accept": _ACCEPT,
                "Accept-Language": "en-US,en;q=0.5",
            },
        )

    async def resolve(self, url: str, context: HopContext) -> HopOutcome | None:
        async with self._session_factory() as session:
            try:
                target = await self._walk(session, url)
            except _StepFailed as exc:
                log.info("sid_step_failed", url=url, step=exc.step, reason=exc.reason)
                return None
            except httpx.HTTPError as exc:
                log.warning("sid_http_error", url=url, error=str(exc))
                return None
        log.debug("sid_resolved", url=url, target=target)
        return HopOutcome(next_url=target)

    def _form(self, html: str, step: int) -> tuple[str, dict[str, str]]:
        soup = parse_html(html)
        form = soup.select_one(self._selectors.form)
        if form is None or not form.get("action"):
            raise _StepFailed(step, "form missing")
        fields = {
            str(inp.get("name")): str(inp.get("value") or "")
            for inp in form.select("input[name]")
        }
        return str(form["action"]), fields

    async def _walk(self, session: httpx.AsyncClient, url: str) -> str:
        sel = self._selectors
        origin = origin_of(url)

        # 1-2: landing form
        resp = await session.get(url)
        resp.raise_for_status()
        action, fields = self._form(resp.text, 1)
        if not fields.get(sel.first_field):
            raise _StepFailed(1, f"{sel.first_field} missing")
        resp = await session.post(
            urljoin(str(resp.url), action),
            data={sel.first_field: fields[sel.first_field]},
            headers={"Referer": url},
        )
        resp.raise_for_status()

        # 3-4: verification form
        action, fields = self._form(resp.text, 3)
        second = fields.get(sel.second_field)
        token = fields.get(sel.token_field)
        if not second or not token:
            raise _StepFailed(3, "verification fields missing")
        resp = await session.post(
            urljoin(str(resp.url), action),
            data={sel.second_field: second, sel.token_field: token},
            headers={"Referer": str(resp.url)},
        )
        resp.raise_for_status()

        # 5: cookie and path from inline script
        cookie = sel.cookie_pattern.search(resp.text)
        path = sel.path_pattern.search(resp.text)
        if cookie is None or path is None:
            raise _StepFailed(5, "script values missing")
        session.cookies.set(
            cookie.group(1).strip(), cookie.group(2).strip(), domain=host_of(url)
        )
        next_url = urljoin(origin, path.group(1).strip())

        # 6: meta refresh
        resp = await session.get(next_url, headers={"Referer": str(resp.url)})
        resp.raise_for_status()
        meta = parse_html(resp.text).select_one('meta[http-equiv="refresh" i]')
        content = str(meta.get("content") or "") if meta is not None else ""
        m = sel.refresh_pattern.search(content)
        if m is None:
            raise _StepFailed(6, "meta refresh missing")
        return m.group(1).strip().strip("'\"")
