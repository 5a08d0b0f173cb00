"""Utilities for sit."""

from sit.utils.logger import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
