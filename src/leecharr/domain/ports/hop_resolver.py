"""Port for a single redirect-chain hop."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from leecharr.domain.entities import HopContext, HopOutcome


@runtime_checkable
class HopResolverPort(Protocol):
    """Resolves one intermediate host to its next hop.

    Selected by the chain resolver from the URL's host.
    """

    @property
    def name(self) -> str: ...

    def supports(self, url: str) -> bool:
        """True if this hop handles *url*'s host."""
        ...

    async def resolve(self, url: str, context: HopContext) -> HopOutcome | None:
        """Return the next hop, or None when the chain is dead here."""
        ...
