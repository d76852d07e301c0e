from .errors import (
    ConfigurationError,
    LeecharrError,
    MetadataUnavailableError,
    UnknownProviderError,
)
from .media import (
    CatalogEntry,
    ContentQuery,
    DownloadMechanism,
    HopContext,
    HopOutcome,
    LinkOption,
    LinkSetKind,
    MechanismKind,
    MediaInfo,
    MediaType,
    QualityCandidate,
    ResolutionChainResult,
    ResolutionTier,
    ResolvedStream,
    TerminalPage,
)

__all__ = [
    "CatalogEntry",
    "ConfigurationError",
    "ContentQuery",
    "DownloadMechanism",
    "HopContext",
    "HopOutcome",
    "LeecharrError",
    "LinkOption",
    "LinkSetKind",
    "MechanismKind",
    "MediaInfo",
    "MediaType",
    "MetadataUnavailableError",
    "QualityCandidate",
    "ResolutionChainResult",
    "ResolutionTier",
    "ResolvedStream",
    "TerminalPage",
    "UnknownProviderError",
]
