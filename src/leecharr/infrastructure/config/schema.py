"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from leecharr.domain.entities import MechanismKind

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/137.0.0.0 Safari/537.36"
)

_ALL_PROVIDERS = ["uhdmovies", "moviesmod", "topmovies", "dramadrip"]


def _normalize_path(value: Any) -> Path:
    """
    Normalize a path-like value without causing filesystem side-effects.

    This function MUST NOT create directories or files.
    """
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


def _default_priorities() -> dict[str, list[MechanismKind]]:
    resumable_first = [MechanismKind.RESUMABLE, MechanismKind.INSTANT]
    full = [
        MechanismKind.RESUMABLE,
        MechanismKind.WORKER_RELAY,
        MechanismKind.INSTANT,
    ]
    return {
        "uhdmovies": list(resumable_first),
        "topmovies": list(resumable_first),
        "moviesmod": list(full),
        "dramadrip": list(full),
    }


class CacheConfig(BaseSettings):
    """Result cache configuration.

    Env vars: CACHE_BACKEND, CACHE_DIR, CACHE_TTL_SECONDS, DISABLE_CACHE.
    """

    backend: Literal["diskcache", "memory"] = Field(
        default="diskcache",
        description="'diskcache' (SQLite on disk) or 'memory' (disabled/no-op)",
    )
    directory: Path = Field(
        default=Path("./.cache/leecharr"),
        validation_alias=AliasChoices("directory", "dir", "cache_dir"),
        description="Diskcache SQLite directory",
    )
    ttl_seconds: int = Field(
        default=4 * 60 * 60,
        description="TTL of intermediate resolution results (seconds)",
    )
    max_concurrent: int = Field(
        default=10,
        description="Max parallel cache ops (semaphore limit)",
    )
    disabled: bool = Field(
        default=False,
        validation_alias=AliasChoices("disabled", "disable_cache"),
        description="Skip the result cache entirely",
    )

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        case_sensitive=False,
        populate_by_name=True,
    )

    @field_validator("directory", mode="before")
    @classmethod
    def _validate_directory(cls, v: Any) -> Path:
        return _normalize_path(v)

    @field_validator("ttl_seconds")
    @classmethod
    def _validate_ttl(cls, v: int) -> int:
        if v < 0:
            raise ValueError("ttl_seconds must be >= 0")
        return v


class PipelineConfig(BaseModel):
    """Knobs of the resolution pipeline (YAML section: pipeline.*)."""

    enabled_providers: list[str] = Field(
        default_factory=lambda: list(_ALL_PROVIDERS),
        description="Providers served by the API and the all-provider fan-out.",
    )
    max_concurrency: int = Field(
        default=8,
        description="Max parallel chain/terminal resolutions per request.",
    )
    task_timeout_seconds: float = Field(
        default=90.0,
        description="Upper bound for a single chain or terminal resolution.",
    )
    validation_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout of the byte-range liveness probe.",
    )
    min_quality_tier: int = Field(
        default=720,
        description="Candidates labelled below this resolution are dropped.",
    )
    preferred_server: str = Field(
        default="Server 1",
        description="Server label preferred when a chain ends in a server list.",
    )
    max_hops: int = Field(
        default=8,
        description="Safety bound on redirect chain length.",
    )
    mechanism_priority: dict[str, list[MechanismKind]] = Field(
        default_factory=_default_priorities,
        description="Per-provider order in which download mechanisms are tried.",
    )

    @field_validator("max_concurrency", "max_hops")
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @field_validator("enabled_providers")
    @classmethod
    def _validate_providers(cls, v: list[str]) -> list[str]:
        unknown = sorted(set(v) - set(_ALL_PROVIDERS))
        if unknown:
            raise ValueError(f"unknown providers: {', '.join(unknown)}")
        return v

    def priority_for(self, provider: str) -> tuple[MechanismKind, ...]:
        default = (
            MechanismKind.RESUMABLE,
            MechanismKind.WORKER_RELAY,
            MechanismKind.INSTANT,
        )
        return tuple(self.mechanism_priority.get(provider, default))


class DomainsConfig(BaseModel):
    """Remote domain registry (YAML section: domains.*)."""

    registry_url: str = Field(
        default=(
            "https://raw.githubusercontent.com/phisher98/TVVVV/"
            "refs/heads/main/domains.json"
        ),
    )
    refresh_interval_seconds: int = Field(default=4 * 60 * 60)
    timeout_seconds: float = Field(default=10.0)
    fallbacks: dict[str, str] = Field(
        default_factory=lambda: {
            "UHDMovies": "https://uhdmovies.email",
            "moviesmod": "https://moviesmod.chat",
            "topMovies": "https://topmovies.rodeo",
            "dramadrip": "https://dramadrip.com",
        },
        description="Registry key -> base URL used until/unless the registry answers.",
    )


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/logging/cache/pipeline/domains/tmdb).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    app_name: str = Field(default="leecharr", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # HTTP (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=30.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="Per-request HTTP timeout in seconds.",
    )
    http_follow_redirects: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "http_follow_redirects",
            AliasPath("http", "follow_redirects"),
        ),
        description="Whether HTTP clients follow redirects.",
    )
    http_user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent for outgoing HTTP requests.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    # TMDB (YAML section: tmdb.*)
    tmdb_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "tmdb_api_key",
            AliasPath("tmdb", "api_key"),
        ),
        description="TMDB API key for title/year lookup.",
    )
    tmdb_cache_ttl_seconds: int = Field(
        default=86_400,
        validation_alias=AliasChoices(
            "tmdb_cache_ttl_seconds",
            AliasPath("tmdb", "cache_ttl_seconds"),
        ),
    )

    cache: CacheConfig = Field(default_factory=CacheConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    domains: DomainsConfig = Field(default_factory=DomainsConfig)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "follow_redirects": self.http_follow_redirects,
                "user_agent": self.http_user_agent,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "tmdb": {"cache_ttl_seconds": self.tmdb_cache_ttl_seconds},
            "cache": {
                "backend": self.cache.backend,
                "dir": str(self.cache.directory),
                "ttl_seconds": self.cache.ttl_seconds,
                "disabled": self.cache.disabled,
            },
            "pipeline": self.pipeline.model_dump(mode="json"),
            "domains": self.domains.model_dump(),
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read LEECHARR_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - LEECHARR_HTTP_TIMEOUT_SECONDS
    - LEECHARR_LOG_LEVEL
    - LEECHARR_MAX_CONCURRENCY
    - TMDB_API_KEY (unprefixed, as commonly deployed)
    """

    model_config = SettingsConfigDict(
        env_prefix="LEECHARR_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_follow_redirects: Optional[bool] = None
    http_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    tmdb_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("leecharr_tmdb_api_key", "tmdb_api_key"),
    )

    max_concurrency: Optional[int] = None
    task_timeout_seconds: Optional[float] = None
    min_quality_tier: Optional[int] = None

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
