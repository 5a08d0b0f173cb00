"""Structured logging for sit using structlog.

Log records go to stderr so that command output on stdout stays clean.
The level and renderer are controlled by ``SIT_LOG_LEVEL`` and
``SIT_LOG_FORMAT`` (``pretty`` or ``json``).
"""

import logging
import os
import sys
from typing import Optional

import structlog
from structlog.types import FilteringBoundLogger

_configured = False


def configure_logging(level: Optional[str] = None) -> None:
    """Configure structlog and route stdlib logging through it.

    Safe to call more than once; later calls only adjust the level.
    """
    global _configured

    level_name = (level or os.getenv("SIT_LOG_LEVEL", "WARNING")).upper()
    log_level = getattr(logging, level_name, logging.WARNING)

    root = logging.getLogger("sit")
    root.setLevel(log_level)
    if _configured:
        return

    log_format = os.getenv("SIT_LOG_FORMAT", "pretty").lower()
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=[
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
            ],
        )
    )
    root.addHandler(handler)
    root.propagate = False

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str) -> FilteringBoundLogger:
    """Get a structlog logger namespaced under ``sit``."""
    return structlog.get_logger(f"sit.{name}")


# Configure on module import
configure_logging()
