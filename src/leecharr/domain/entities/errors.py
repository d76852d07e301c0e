"""Domain errors.

Expected outcomes (no match, no links, dead chain) are never raised;
they surface as empty results. Only infrastructure faults use these.
"""

from __future__ import annotations


class LeecharrError(Exception):
    """Base error for leecharr domain/usecases."""


class MetadataUnavailableError(LeecharrError):
    """Metadata service unreachable or rejected our credentials."""


class UnknownProviderError(LeecharrError):
    pass


class ConfigurationError(LeecharrError):
    pass
