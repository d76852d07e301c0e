"""No-op cache used when caching is disabled or the store is unavailable."""

from __future__ import annotations

from typing import Any


class NullCacheAdapter:
    """Every read misses, every write is dropped."""

    async def __aenter__(self) -> NullCacheAdapter:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        return None

    async def get(self, key: str) -> Any:
        return None

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        return None

    async def delete(self, key: str) -> bool:
        return False

    async def clear(self) -> None:
        return None
