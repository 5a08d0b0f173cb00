"""Exceptions shared across sit.

``SitError`` is the fatal tier: it aborts the current command and is
reported once, at the CLI boundary. Recoverable per-item failures are never
raised out of the core; they are collected on the result objects instead.
"""

from typing import Optional


class SitError(Exception):
    """Fatal error carrying a message and optional context."""

    def __init__(self, message: str, context: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} ({self.context})"
        return self.message


class RepositoryNotFoundError(SitError):
    """Raised when no .sit directory is found."""


class RepositoryLockedError(SitError):
    """Raised when another process holds the repository lock."""


class ObjectNotFoundError(SitError):
    """Raised when an object cannot be found in the object store."""


class ObjectCorruptedError(SitError):
    """Raised when an object's digest doesn't match its content."""


class IndexFormatError(SitError):
    """Raised when the index file cannot be understood."""
