"""Port for logical site name -> current base URL."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class DomainResolverPort(Protocol):
    async def current_base_url(self, site: str) -> str:
        """Return the site's current base URL (no trailing slash).

        Never raises; falls back to a configured default.
        """
        ...
