"""structlog configuration used by the CLI."""

from __future__ import annotations

import logging
import sys

import structlog


def configure_logging(level: str = "WARNING", structured: bool = False) -> None:
    """
    Configure structlog output.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR)
        structured: Render JSON lines instead of the console format
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if structured:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        # Resolve sys.stderr per logger so redirected streams are honoured.
        logger_factory=lambda *args: structlog.PrintLogger(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
