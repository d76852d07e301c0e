"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from leecharr.infrastructure.config import AppConfig

if TYPE_CHECKING:
    from leecharr.application.use_cases.resolve_streams import ResolveStreamsUseCase
    from leecharr.domain.ports import (
        CachePort,
        DomainResolverPort,
        LinkValidatorPort,
        MetadataPort,
        ResolutionCachePort,
        SiteAdapterPort,
    )


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    cache: CachePort
    http_client: httpx.AsyncClient

    # Domain Ports
    domains: DomainResolverPort
    validator: LinkValidatorPort
    metadata: MetadataPort
    resolution_cache: ResolutionCachePort

    # Site adapters keyed by provider name (enabled providers only)
    sites: dict[str, SiteAdapterPort]

    # Application Services
    resolve_streams_uc: ResolveStreamsUseCase
