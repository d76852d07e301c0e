"""Terminal strategy selection: pick a link, try mechanisms, keep the first live URL."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Mapping, Sequence

import structlog

from leecharr.domain.entities import (
    ContentQuery,
    HopContext,
    LinkOption,
    LinkSetKind,
    MechanismKind,
    ResolutionChainResult,
    TerminalPage,
)
from leecharr.domain.ports.link_validator import LinkValidatorPort
from leecharr.domain.ports.mechanism import MechanismResolverPort
from leecharr.infrastructure.gateways.chain import RedirectChainResolver

from .page import TerminalPageParser

log = structlog.get_logger(__name__)

DEFAULT_PRIORITY: tuple[MechanismKind, ...] = (
    MechanismKind.RESUMABLE,
    MechanismKind.WORKER_RELAY,
    MechanismKind.INSTANT,
)

# A link set may point at another link set once (e.g. episode -> servers).
_MAX_LINK_SET_DEPTH = 2


@dataclass(frozen=True)
class TerminalResolution:
    """A validated direct URL and the page it was obtained from."""

    url: str
    page: TerminalPage
    mechanism: MechanismKind


def episode_pattern(episode: int) -> re.Pattern[str]:
    return re.compile(rf"\b(?:episode|ep|e)\s*0*{episode}(?!\d)", re.IGNORECASE)


def select_option(
    options: Sequence[LinkOption],
    kind: LinkSetKind | None,
    episode: int | None,
    preferred_server: str = "Server 1",
) -> LinkOption | None:
    """Choose the entry of a link set to follow.

    Episode lists are matched by episode number and yield nothing when
    the requested episode is absent. Server lists (and episode lists
    without a requested episode) prefer *preferred_server* and fall back
    to the first entry.
    """
    if not options:
        return None
    if kind is LinkSetKind.EPISODES and episode is not None:
        pattern = episode_pattern(episode)
        return next((o for o in options if pattern.search(o.label)), None)
    wanted = preferred_server.lower()
    return next((o for o in options if wanted in o.label.lower()), options[0])


class TerminalStrategySelector:
    """Runs the always-fresh tail of the pipeline for one chain result."""

    def __init__(
        self,
        *,
        page_parser: TerminalPageParser,
        mechanisms: Mapping[MechanismKind, MechanismResolverPort],
        validator: LinkValidatorPort,
        chain: RedirectChainResolver,
        priority: Sequence[MechanismKind] = DEFAULT_PRIORITY,
        preferred_server: str = "Server 1",
    ) -> None:
        self._pages = page_parser
        self._mechanisms = dict(mechanisms)
        self._validator = validator
        self._chain = chain
        self._priority = tuple(priority)
        self._preferred_server = preferred_server

    async def resolve(
        self, result: ResolutionChainResult, query: ContentQuery
    ) -> TerminalResolution | None:
        terminal_url = await self._terminal_url(result, query)
        if terminal_url is None:
            return None

        page = await self._pages.fetch(terminal_url)
        if page is None:
            return None
        if not page.mechanisms:
            log.info("terminal_no_mechanisms", url=terminal_url)
            return None
        return await self.try_mechanisms(page)

    async def try_mechanisms(self, page: TerminalPage) -> TerminalResolution | None:
        """Attempt mechanisms in priority order; first validated URL wins."""
        for kind in self._priority:
            mechanism = page.mechanism(kind)
            resolver = self._mechanisms.get(kind)
            if mechanism is None or resolver is None:
                continue

            url = await resolver.resolve(mechanism, page)
            if not url:
                log.info("mechanism_no_url", mechanism=kind.value, page=page.url)
                continue
            if not await self._validator.validate(url):
                log.info("mechanism_url_invalid", mechanism=kind.value, page=page.url)
                continue

            log.debug("mechanism_resolved", mechanism=kind.value, page=page.url)
            return TerminalResolution(url=url, page=page, mechanism=kind)

        log.info(
            "terminal_all_mechanisms_failed",
            page=page.url,
            offered=[m.kind.value for m in page.mechanisms],
        )
        return None

    async def _terminal_url(
        self, result: ResolutionChainResult, query: ContentQuery
    ) -> str | None:
        if result.terminal_url is not None:
            return result.terminal_url

        options: Sequence[LinkOption] = result.link_set
        kind = result.link_set_kind
        context = HopContext(query=query, quality=result.candidate.quality)

        for _ in range(_MAX_LINK_SET_DEPTH):
            option = select_option(options, kind, query.episode, self._preferred_server)
            if option is None:
                log.info(
                    "link_set_no_selection",
                    quality=result.candidate.quality,
                    kind=kind.value if kind else None,
                    episode=query.episode,
                )
                return None

            outcome = await self._chain.walk(option.url, context)
            if outcome is None:
                return None
            if outcome.next_url is not None and not outcome.link_set:
                return outcome.next_url
            options, kind = outcome.link_set, outcome.link_set_kind

        log.info("link_set_too_deep", quality=result.candidate.quality)
        return None
