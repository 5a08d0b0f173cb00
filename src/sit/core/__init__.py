"""Core engine layer for sit.

This module provides the orchestration logic for version control operations:
staging, committing and amending, checkout, reset and garbage collection.
"""

from sit.core.checkout import CheckoutEngine, CheckoutResult
from sit.core.gc import GarbageCollector, GCResult
from sit.core.history import CommitEngine, CommitResult, rewrite_history
from sit.core.index import CommitIndex, Index, IndexView
from sit.core.refs import Refs
from sit.core.repository import Repository
from sit.core.reset import ResetEngine, ResetReport
from sit.core.staging import AddResult, StagingManager

__all__ = [
    "Repository",
    "Refs",
    "Index",
    "IndexView",
    "CommitIndex",
    "StagingManager",
    "AddResult",
    "CommitEngine",
    "CommitResult",
    "rewrite_history",
    "CheckoutEngine",
    "CheckoutResult",
    "ResetEngine",
    "ResetReport",
    "GarbageCollector",
    "GCResult",
]
