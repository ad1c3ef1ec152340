"""
structlog setup for the CLI.

Logs go to stderr so that ``--output json`` keeps stdout parseable.
"""

import logging
import sys
from typing import Any

import structlog

RENDERERS = ("json", "console")


def _renderer(log_format: str) -> Any:
    if log_format == "console":
        return structlog.dev.ConsoleRenderer(colors=False)
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    raise ValueError(f"Unknown log format {log_format!r}; expected one of {', '.join(RENDERERS)}")


def configure_logging(level: int | str = logging.INFO, log_format: str = "json") -> None:
    """Configure structlog/standard logging bridge."""

    renderer = _renderer(log_format)
    timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            timestamper,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=level, format="%(message)s", stream=sys.stderr, force=True)


def bind_context(**kwargs: Any) -> structlog.stdlib.BoundLogger:
    """Bind mesh and namespace (or other) fields onto the logger for one assembly."""

    logger = structlog.get_logger()
    return logger.bind(**kwargs)
