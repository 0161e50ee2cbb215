"""
Logging setup shared by the CLI and the web application.

Log lines go to stderr so the conversion CLI can keep stdout for its JSON
output.
"""

import logging
import os
import sys
from typing import Optional, TextIO

import structlog

DEFAULT_LOG_LEVEL = os.environ.get("OMNIA_LOG_LEVEL", "INFO")


def configure_logging(level: Optional[str] = None, stream: Optional[TextIO] = None) -> None:
    """Configure structlog with a level filter and a console renderer."""
    if stream is None:
        stream = sys.stderr
    level_name = (level or DEFAULT_LOG_LEVEL).upper()
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=False,
    )
