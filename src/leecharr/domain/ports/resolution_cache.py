"""Port for the intermediate resolution cache."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from leecharr.domain.entities import ContentQuery, ResolutionChainResult


@runtime_checkable
class ResolutionCachePort(Protocol):
    """Stores chain results per (provider, content id, media type, season).

    Only pre-terminal results are stored; final download URLs never are.
    """

    def fingerprint(self, provider: str, query: ContentQuery) -> str:
        """Deterministic cache key. Episode number is not part of it."""
        ...

    async def get(self, key: str) -> list[ResolutionChainResult] | None:
        """Return stored results, or None on miss/expiry."""
        ...

    async def put(self, key: str, results: list[ResolutionChainResult]) -> None:
        """Overwrite the entry with a fresh expiry."""
        ...
