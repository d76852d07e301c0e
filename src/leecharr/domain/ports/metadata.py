"""Port for the metadata service (content id -> title/year)."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from leecharr.domain.entities import MediaInfo, MediaType


@runtime_checkable
class MetadataPort(Protocol):
    async def lookup(self, content_id: str, media_type: MediaType) -> MediaInfo | None:
        """Resolve a content id to its reference title and year.

        Returns ``None`` when the id is unknown. Raises
        ``MetadataUnavailableError`` when the service cannot be reached.
        """
        ...
