from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Any, Iterator, Optional, cast

import structlog
from structlog.stdlib import BoundLogger
from structlog.types import Processor

try:
    from arcview import __version__ as ARCVIEW_VERSION
except ImportError:
    ARCVIEW_VERSION = "unknown"

LIBRARY_LOGGER = "arcview"


def _resolve_level(level: Optional[str | int]) -> int:
    if level is None:
        level = os.getenv("ARCVIEW_LOG_LEVEL", "WARNING")
    if isinstance(level, int):
        return level
    numeric = logging.getLevelName(level.strip().upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Invalid log level: {level}")
    return numeric


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def configure_logging(
    level: Optional[str | int] = None,
    json_output: Optional[bool] = None,
) -> logging.Logger:
    """
    Route arcview's structlog events to a handler on the ``arcview`` logger.

    Only the library's logger namespace is touched; the root logger and other
    handlers are left alone.

    Args:
        level: Log level name or number (default: ARCVIEW_LOG_LEVEL or WARNING)
        json_output: JSON lines instead of console rendering
            (default: ARCVIEW_LOG_JSON or True)

    Returns:
        The configured ``arcview`` stdlib logger
    """
    numeric_level = _resolve_level(level)
    if json_output is None:
        json_output = _env_flag("ARCVIEW_LOG_JSON", True)

    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    structlog.configure(
        processors=[
            *pre_chain,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )
    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain)
    )

    library_logger = logging.getLogger(LIBRARY_LOGGER)
    for existing in list(library_logger.handlers):
        library_logger.removeHandler(existing)
    library_logger.addHandler(handler)
    library_logger.setLevel(numeric_level)
    library_logger.propagate = False
    return library_logger


def get_logger(name: str) -> BoundLogger:
    """Structlog logger bound to the emitting component and library version."""
    return cast(
        BoundLogger,
        structlog.get_logger(name).bind(
            component=name.rsplit(".", 1)[-1],
            library_version=ARCVIEW_VERSION,
        ),
    )


@contextmanager
def log_context(**kwargs: Any) -> Iterator[None]:
    """Bind context (e.g. source, format) to every event logged inside the block."""
    with structlog.contextvars.bound_contextvars(**kwargs):
        yield


__all__ = ["configure_logging", "get_logger", "log_context", "LIBRARY_LOGGER"]
