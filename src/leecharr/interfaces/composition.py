"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from leecharr.application.use_cases.resolve_streams import ResolveStreamsUseCase
from leecharr.domain.ports import DomainResolverPort, LinkValidatorPort, SiteAdapterPort
from leecharr.infrastructure.cache.cache_factory import create_cache, open_cache
from leecharr.infrastructure.config.schema import AppConfig
from leecharr.infrastructure.domains.registry import RegistryDomainResolver
from leecharr.infrastructure.persistence.resolution_cache import CacheResolutionStore
from leecharr.infrastructure.ranking.stream_ranker import StreamRanker
from leecharr.infrastructure.sites import SITE_CLASSES, SiteSettings
from leecharr.infrastructure.tmdb.client import HttpxTmdbClient
from leecharr.infrastructure.validation.url_validator import RangeProbeValidator
from leecharr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def build_sites(
    config: AppConfig,
    *,
    domains: DomainResolverPort,
    validator: LinkValidatorPort,
) -> dict[str, SiteAdapterPort]:
    """Instantiate the enabled site adapters with their pipeline settings."""
    pipeline = config.pipeline
    sites: dict[str, SiteAdapterPort] = {}
    for name in pipeline.enabled_providers:
        settings = SiteSettings(
            user_agent=config.http_user_agent,
            timeout_seconds=config.http_timeout_seconds,
            max_hops=pipeline.max_hops,
            min_quality_tier=pipeline.min_quality_tier,
            preferred_server=pipeline.preferred_server,
            priority=pipeline.priority_for(name),
        )
        sites[name] = SITE_CLASSES[name](
            domains=domains,
            validator=validator,
            settings=settings,
        )
    return sites


async def startup(state: AppState, config: AppConfig) -> None:
    """Create every resource the pipeline needs and store it on *state*."""
    state.config = config

    # 1) Cache (falls back to no-op when the directory is unusable)
    state.cache = await open_cache(
        create_cache(
            config.cache.backend,
            directory=config.cache.directory,
            ttl_seconds=config.cache.ttl_seconds,
            max_concurrent=config.cache.max_concurrent,
            disabled=config.cache.disabled,
        )
    )
    log.info("cache_initialized", backend=type(state.cache).__name__)

    # 2) Shared HTTP client (metadata, domain registry, validation)
    state.http_client = httpx.AsyncClient(
        timeout=config.http_timeout_seconds,
        follow_redirects=config.http_follow_redirects,
        headers={"User-Agent": config.http_user_agent},
    )
    log.info(
        "http_client_initialized",
        timeout=config.http_timeout_seconds,
        follow_redirects=config.http_follow_redirects,
    )

    # 3) Domain registry
    state.domains = RegistryDomainResolver(
        state.http_client,
        registry_url=config.domains.registry_url,
        fallbacks=config.domains.fallbacks,
        refresh_interval_seconds=config.domains.refresh_interval_seconds,
        timeout_seconds=config.domains.timeout_seconds,
    )

    # 4) Validator, metadata, resolution cache
    state.validator = RangeProbeValidator(
        state.http_client,
        timeout_seconds=config.pipeline.validation_timeout_seconds,
    )
    state.metadata = HttpxTmdbClient(
        api_key=config.tmdb_api_key,
        http_client=state.http_client,
        cache=state.cache,
        ttl_seconds=config.tmdb_cache_ttl_seconds,
    )
    if not config.tmdb_api_key:
        log.warning("tmdb_api_key_missing")
    state.resolution_cache = CacheResolutionStore(
        state.cache, ttl_seconds=config.cache.ttl_seconds
    )

    # 5) Site adapters
    state.sites = build_sites(config, domains=state.domains, validator=state.validator)
    log.info("sites_initialized", providers=sorted(state.sites))

    # 6) Use case
    state.resolve_streams_uc = ResolveStreamsUseCase(
        metadata=state.metadata,
        cache=state.resolution_cache,
        ranker=StreamRanker(min_tier=config.pipeline.min_quality_tier),
        config=config.pipeline,
    )

    log.info("app_startup_complete")


async def shutdown(state: AppState) -> None:
    for name, site in state.sites.items():
        await site.cleanup()
        log.debug("site_cleaned_up", provider=name)

    await state.http_client.aclose()
    log.info("http_client_closed")

    await state.cache.aclose()
    log.info("cache_closed")

    log.info("app_shutdown_complete")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    FastAPI lifespan: initializes and cleans up all resources.

    Config is expected to be set on app.state.config by create_app().
    """
    state = cast(AppState, app.state)
    await startup(state, state.config)
    try:
        yield
    finally:
        await shutdown(state)
