"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

from .schema import DEFAULT_USER_AGENT

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "leecharr",
    "environment": "dev",
    "http": {
        "timeout_seconds": 30.0,
        "follow_redirects": True,
        "user_agent": DEFAULT_USER_AGENT,
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "tmdb": {
        "cache_ttl_seconds": 86_400,
    },
    "pipeline": {
        "max_concurrency": 8,
        "task_timeout_seconds": 90.0,
        "validation_timeout_seconds": 10.0,
        "min_quality_tier": 720,
        "preferred_server": "Server 1",
        "max_hops": 8,
    },
    "domains": {
        "refresh_interval_seconds": 4 * 60 * 60,
        "timeout_seconds": 10.0,
    },
}
