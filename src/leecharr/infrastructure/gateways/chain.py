"""Iterative redirect-chain walker."""

from __future__ import annotations

from dataclasses import replace
from typing import Sequence

import structlog

from leecharr.domain.entities import HopContext, HopOutcome
from leecharr.domain.ports.hop_resolver import HopResolverPort

from .hosts import is_terminal

log = structlog.get_logger(__name__)


class RedirectChainResolver:
    """Walks hop to hop until a terminal host or a named link set is reached.

    Returns ``HopOutcome(next_url=<terminal url>)`` for a terminal arrival,
    the link-set outcome of the hop that produced one, or ``None`` when
    the chain dies (unsupported host, dead hop, cycle, hop limit).
    """

    def __init__(self, hops: Sequence[HopResolverPort], *, max_hops: int = 8) -> None:
        self._hops = tuple(hops)
        self._max_hops = max_hops

    def _hop_for(self, url: str) -> HopResolverPort | None:
        for hop in self._hops:
            if hop.supports(url):
                return hop
        return None

    async def walk(self, url: str, context: HopContext) -> HopOutcome | None:
        current = url
        referer = context.referer
        seen: set[str] = set()

        for _ in range(self._max_hops):
            if is_terminal(current):
                return HopOutcome(next_url=current)
            if current in seen:
                log.info("chain_cycle", url=current)
                return None
            seen.add(current)

            hop = self._hop_for(current)
            if hop is None:
                log.info("chain_unsupported_host", url=current)
                return None

            outcome = await hop.resolve(current, replace(context, referer=referer))
            if outcome is None:
                log.info("chain_dead", hop=hop.name, url=current)
                return None
            if outcome.link_set:
                return outcome
            if not outcome.next_url:
                log.info("chain_dead", hop=hop.name, url=current)
                return None
            referer, current = current, outcome.next_url

        if is_terminal(current):
            return HopOutcome(next_url=current)
        log.info("chain_hop_limit", url=url, max_hops=self._max_hops)
        return None
