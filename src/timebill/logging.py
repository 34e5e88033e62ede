"""Structured logging setup shared by the CLI and the services."""

import logging
import os
import sys
from typing import Optional

import structlog

DEFAULT_LEVEL = "WARNING"


def setup_logging(level: Optional[str] = None) -> None:
    """Configure structlog on top of stdlib logging.

    The level comes from the argument, then TIMEBILL_LOG_LEVEL, then WARNING.
    Log lines go to stderr so command output stays clean.
    """
    level_name = (level or os.getenv("TIMEBILL_LOG_LEVEL", DEFAULT_LEVEL)).upper()
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level_name, logging.WARNING),
        force=True,
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.dict_tracebacks,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
