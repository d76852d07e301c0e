from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog
import uvicorn

from leecharr.domain.entities import ContentQuery, LeecharrError
from leecharr.infrastructure.config import AppConfig, load_config
from leecharr.infrastructure.logging.setup import configure_logging
from leecharr.interfaces.app import create_app
from leecharr.interfaces.app_state import AppState
from leecharr.interfaces.composition import shutdown, startup

log = structlog.get_logger(__name__)


def _add_config_args(parser: argparse.ArgumentParser) -> None:
    # Config wiring flags (no business logic)
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file.",
    )
    parser.add_argument(
        "--dotenv",
        default=None,
        help="Path to .env file.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level.",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["json", "console"],
        help="Override log format.",
    )


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="leecharr")

    # Server options
    parser.add_argument(
        "--host",
        default=None,
        help="Bind host (overrides HOST env).",
    )
    parser.add_argument(
        "--port",
        default=None,
        type=int,
        help="Bind port (overrides PORT env).",
    )
    _add_config_args(parser)

    subparsers = parser.add_subparsers(dest="command")
    resolve = subparsers.add_parser(
        "resolve", help="Resolve one content id and print the streams as JSON."
    )
    resolve.add_argument("content_id", help="TMDB id of the movie or show.")
    resolve.add_argument(
        "--type",
        dest="content_type",
        default="movie",
        choices=["movie", "tv", "series"],
    )
    resolve.add_argument("--season", type=int, default=None)
    resolve.add_argument("--episode", type=int, default=None)
    resolve.add_argument(
        "--provider",
        default=None,
        help="Single provider to query (default: all enabled providers).",
    )

    return parser.parse_args(list(argv) if argv is not None else None)


def _load(args: argparse.Namespace) -> AppConfig:
    config_path = Path(args.config) if args.config else None
    dotenv_path = Path(args.dotenv) if args.dotenv else None

    cli_overrides: dict[str, Any] = {}
    if args.log_level:
        cli_overrides["log_level"] = args.log_level
    if args.log_format:
        cli_overrides["log_format"] = args.log_format

    return load_config(
        config_path=config_path,
        dotenv_path=dotenv_path,
        cli_overrides=cli_overrides,
    )


async def _resolve(config: AppConfig, args: argparse.Namespace) -> list[dict[str, Any]]:
    is_movie = args.content_type == "movie"
    query = ContentQuery(
        content_id=args.content_id,
        media_type="movie" if is_movie else "series",
        season=None if is_movie else args.season,
        episode=None if is_movie else args.episode,
    )

    state = AppState()
    await startup(state, config)
    try:
        if args.provider:
            site = state.sites.get(args.provider)
            if site is None:
                raise SystemExit(f"unknown provider: {args.provider}")
            streams = await state.resolve_streams_uc.execute(site, query)
        else:
            streams = await state.resolve_streams_uc.execute_all(
                list(state.sites.values()), query
            )
    finally:
        await shutdown(state)
    return [s.to_dict() for s in streams]


def start(argv: Iterable[str] | None = None) -> int:
    """
    Process entrypoint.

    Loads config exactly once, then either serves the API or runs a
    single resolution.
    """

    if argv is None:
        argv = sys.argv[1:]

    args = _parse_args(argv)
    config = _load(args)
    log_config = configure_logging(config)

    if args.command == "resolve":
        try:
            streams = asyncio.run(_resolve(config, args))
        except LeecharrError as exc:
            log.error("resolve_failed", error=str(exc))
            return 1
        print(json.dumps(streams, indent=2, ensure_ascii=False))
        return 0

    host = args.host or os.getenv("HOST", "0.0.0.0")
    port = int(args.port or os.getenv("PORT", "7000"))

    uvicorn.run(
        create_app(config),
        host=host,
        port=port,
        log_config=log_config,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(start())
