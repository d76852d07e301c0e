"""structlog + stdlib logging for the API server and the CLI.

Every record, structlog-originated or foreign (uvicorn, httpx), is rendered
by one ``ProcessorFormatter`` and emitted from a background queue listener:
DEBUG..WARNING on stdout, ERROR and above on stderr.
"""

from __future__ import annotations

import atexit
import copy
import logging
import logging.config
import queue
import re
import sys
from datetime import datetime, timezone
from logging.handlers import QueueHandler, QueueListener
from typing import Any

import structlog

from leecharr.infrastructure.config.schema import AppConfig

log = structlog.get_logger(__name__)

# Loggers pinned to WARNING when the configured level is lower.
# Scraper traffic makes their request lines noise.
_QUIET_LOGGERS = ("httpx", "httpcore")

# httpx errors and tracebacks embed the full request URL, TMDB key included.
_SECRET_PARAM_RE = re.compile(r"(\b(?:api_key|token)=)[^&\s'\"]+", re.IGNORECASE)
_REDACTED = r"\1***"

UVICORN_LOGGERS: dict[str, dict[str, Any]] = {
    "uvicorn": {"handlers": ["default"], "propagate": False},
    "uvicorn.error": {},
    "uvicorn.access": {"handlers": ["access"], "propagate": False},
}


def _drop_color_message(_: Any, __: Any, event_dict: dict[str, Any]) -> dict[str, Any]:
    # uvicorn duplicates the message as "color_message".
    event_dict.pop("color_message", None)
    return event_dict


def _stamp_foreign_record(
    _: Any, __: Any, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Use the LogRecord's creation time, not the time the listener formats it."""
    record = event_dict.get("_record")
    if isinstance(record, logging.LogRecord):
        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        event_dict["timestamp"] = dt.isoformat().replace("+00:00", "Z")
    return event_dict


def redact_secrets(_: Any, __: Any, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Mask credential query parameters in every string value."""
    for key, value in event_dict.items():
        if isinstance(value, str) and "=" in value:
            event_dict[key] = _SECRET_PARAM_RE.sub(_REDACTED, value)
    return event_dict


def _formatter_kwargs(config: AppConfig) -> dict[str, Any]:
    renderer: structlog.typing.Processor
    if config.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()
    return {
        "foreign_pre_chain": [
            _drop_color_message,
            structlog.contextvars.merge_contextvars,
            _stamp_foreign_record,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
        ],
        "processors": [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            redact_secrets,
            renderer,
        ],
    }


def _level_for(name: str, level: str) -> str:
    if name in _QUIET_LOGGERS and logging.getLevelName(level) < logging.WARNING:
        return "WARNING"
    return level


def build_logging_config(config: AppConfig) -> dict[str, Any]:
    """
    Build the dictConfig handed to ``uvicorn.run``.

    uvicorn's own loggers and the quiet HTTP client loggers get explicit
    levels; everything else inherits from the root logger.
    """
    level = config.log_level
    loggers: dict[str, dict[str, Any]] = {
        name: {**copy.deepcopy(base), "level": level}
        for name, base in UVICORN_LOGGERS.items()
    }
    for name in _QUIET_LOGGERS:
        loggers[name] = {"level": _level_for(name, level)}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structlog": {
                "()": structlog.stdlib.ProcessorFormatter,
                **_formatter_kwargs(config),
            },
        },
        "handlers": {
            "default": {
                "formatter": "structlog",
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
            },
            "access": {
                "formatter": "structlog",
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": loggers,
        "root": {"handlers": ["default"], "level": level},
    }


class _LevelRangeFilter(logging.Filter):
    def __init__(
        self, min_level: int = logging.NOTSET, max_level: int = logging.CRITICAL
    ) -> None:
        super().__init__()
        self._min_level = min_level
        self._max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return self._min_level <= record.levelno <= self._max_level


class _StructlogPreservingQueueHandler(QueueHandler):
    """QueueHandler that keeps structlog event dicts intact."""

    def prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        # QueueHandler.prepare() would stringify record.msg, which breaks
        # ProcessorFormatter for structlog-originated records.
        return copy.copy(record)


class _QueueSink:
    """Owns the background listener that performs the actual stream I/O."""

    def __init__(self) -> None:
        self._listener: QueueListener | None = None

    def start(self, config: AppConfig) -> None:
        self.stop()

        formatter = structlog.stdlib.ProcessorFormatter(**_formatter_kwargs(config))
        stdout_handler = logging.StreamHandler(stream=sys.stdout)
        stdout_handler.setFormatter(formatter)
        stdout_handler.addFilter(_LevelRangeFilter(max_level=logging.WARNING))
        stderr_handler = logging.StreamHandler(stream=sys.stderr)
        stderr_handler.setFormatter(formatter)
        stderr_handler.addFilter(_LevelRangeFilter(min_level=logging.ERROR))

        q: queue.Queue[logging.LogRecord] = queue.Queue()
        root = logging.getLogger()
        root.handlers.clear()
        root.addHandler(_StructlogPreservingQueueHandler(q))
        root.setLevel(config.log_level)

        for name in list(logging.root.manager.loggerDict.keys()):
            logger = logging.getLogger(name)
            logger.handlers.clear()
            logger.propagate = True
            logger.setLevel(_level_for(name, config.log_level))

        self._listener = QueueListener(
            q, stdout_handler, stderr_handler, respect_handler_level=True
        )
        self._listener.start()

    def stop(self) -> None:
        if self._listener is not None:
            try:
                self._listener.stop()
            finally:
                self._listener = None


_SINK = _QueueSink()
atexit.register(_SINK.stop)


def configure_logging(config: AppConfig) -> dict[str, Any]:
    """
    Configure structlog + stdlib logging.

    Returns the dictConfig for uvicorn; emission itself goes through the
    queue sink so the event loop never blocks on stream writes.
    """
    structlog.configure(
        processors=[
            _drop_color_message,
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    cfg = build_logging_config(config)
    logging.config.dictConfig(cfg)
    _SINK.start(config)

    log.info(
        "logging_configured", log_format=config.log_format, log_level=config.log_level
    )
    return cfg
