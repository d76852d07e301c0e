"""Domain entities for the link-resolution pipeline.

Pure value objects without framework dependencies or I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Literal

MediaType = Literal["movie", "series"]


class ResolutionTier(IntEnum):
    """Vertical resolution tier (higher value = better quality)."""

    UNKNOWN = 0
    SD_480P = 480
    HD_720P = 720
    HD_1080P = 1080
    UHD_2160P = 2160


class MechanismKind(str, Enum):
    """Download mechanisms offered by a terminal host."""

    RESUMABLE = "resumable"
    WORKER_RELAY = "worker_relay"
    INSTANT = "instant"


class LinkSetKind(str, Enum):
    """What a named link set enumerates."""

    EPISODES = "episodes"
    SERVERS = "servers"


@dataclass(frozen=True)
class ContentQuery:
    """Immutable pipeline input.

    ``content_id`` is the metadata-service id (TMDB). Season and episode
    are only meaningful for ``media_type == "series"``.
    """

    content_id: str
    media_type: MediaType
    season: int | None = None
    episode: int | None = None

    @property
    def is_series(self) -> bool:
        return self.media_type == "series"


@dataclass(frozen=True)
class MediaInfo:
    """Reference title and year resolved from the metadata service."""

    title: str
    year: int | None = None


@dataclass(frozen=True)
class CatalogEntry:
    """A single search hit on an aggregator site."""

    title: str
    url: str


@dataclass(frozen=True)
class LinkOption:
    """A named entry of an episode or server list."""

    label: str
    url: str


@dataclass(frozen=True)
class QualityCandidate:
    """One quality/episode link found on a landing page."""

    quality: str  # free text, e.g. "1080p | HDR"
    url: str  # next hop
    size: str | None = None
    raw_quality: str = ""  # unshortened header text
    # In-page episode list; when set, no hop is walked before selection.
    episodes: tuple[LinkOption, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "quality": self.quality,
            "url": self.url,
            "size": self.size,
            "raw_quality": self.raw_quality,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QualityCandidate:
        return cls(
            quality=data["quality"],
            url=data["url"],
            size=data.get("size"),
            raw_quality=data.get("raw_quality", ""),
        )


@dataclass(frozen=True)
class ResolutionChainResult:
    """Intermediate (cacheable) output of walking a redirect chain.

    Exactly one of ``terminal_url`` and ``link_set`` is populated. A link
    set needs one more selection step (by episode number or preferred
    server) before the terminal host is reached.
    """

    candidate: QualityCandidate
    terminal_url: str | None = None
    link_set: tuple[LinkOption, ...] = ()
    link_set_kind: LinkSetKind | None = None

    def __post_init__(self) -> None:
        if (self.terminal_url is None) == (not self.link_set):
            raise ValueError(
                "ResolutionChainResult needs either terminal_url or link_set"
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "candidate": self.candidate.to_dict(),
            "terminal_url": self.terminal_url,
            "link_set": [{"label": o.label, "url": o.url} for o in self.link_set],
            "link_set_kind": self.link_set_kind.value if self.link_set_kind else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ResolutionChainResult:
        kind = data.get("link_set_kind")
        return cls(
            candidate=QualityCandidate.from_dict(data["candidate"]),
            terminal_url=data.get("terminal_url"),
            link_set=tuple(
                LinkOption(label=o["label"], url=o["url"])
                for o in data.get("link_set") or []
            ),
            link_set_kind=LinkSetKind(kind) if kind else None,
        )


@dataclass(frozen=True)
class DownloadMechanism:
    """One download strategy offered on a terminal page."""

    kind: MechanismKind
    label: str  # literal button text, e.g. "Resume Cloud"
    locator_url: str  # href as found on the page (may be relative)


@dataclass(frozen=True)
class TerminalPage:
    """Parsed terminal host page: declared metadata plus mechanisms."""

    url: str
    file_name: str | None = None
    size: str | None = None
    mechanisms: tuple[DownloadMechanism, ...] = ()

    def mechanism(self, kind: MechanismKind) -> DownloadMechanism | None:
        for mechanism in self.mechanisms:
            if mechanism.kind is kind:
                return mechanism
        return None


@dataclass(frozen=True)
class ResolvedStream:
    """Final, validated stream returned to callers."""

    display_name: str  # e.g. "UHDMovies - 1080p | HDR"
    title_line: str  # "<file name>\n<size>"
    url: str
    quality: str
    size: str | None = None
    provider: str = ""
    file_name: str | None = None
    mechanism: MechanismKind | None = None
    tech_details: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.display_name,
            "title": self.title_line,
            "url": self.url,
            "quality": self.quality,
            "size": self.size,
            "provider": self.provider,
            "fileName": self.file_name,
            "mechanism": self.mechanism.value if self.mechanism else None,
            "techDetails": list(self.tech_details),
        }


@dataclass(frozen=True)
class HopContext:
    """Per-chain information a hop may need besides the URL itself."""

    query: ContentQuery
    quality: str = ""
    referer: str | None = None


@dataclass(frozen=True)
class HopOutcome:
    """Result of one hop: a single next URL or a named link set."""

    next_url: str | None = None
    link_set: tuple[LinkOption, ...] = ()
    link_set_kind: LinkSetKind | None = None
