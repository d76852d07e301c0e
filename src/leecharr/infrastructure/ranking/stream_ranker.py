"""Orders resolved streams: biggest file first, then best resolution."""

from __future__ import annotations

from leecharr.domain.entities import ResolutionTier, ResolvedStream
from leecharr.infrastructure.common.parsers import parse_size_mb, quality_tier


def rank_key(
    stream: ResolvedStream, min_tier: int = ResolutionTier.HD_720P
) -> tuple[float, int]:
    """(size in MB, tier); tiers under *min_tier* count as zero like unknown ones."""
    tier = int(quality_tier(stream.quality))
    return parse_size_mb(stream.size), tier if tier >= min_tier else 0


class StreamRanker:
    """Stable total order by (size in MB, resolution tier), both descending."""

    def __init__(self, min_tier: int = ResolutionTier.HD_720P) -> None:
        self.min_tier = min_tier

    def rank(self, streams: list[ResolvedStream]) -> list[ResolvedStream]:
        return sorted(
            streams, key=lambda s: rank_key(s, self.min_tier), reverse=True
        )
