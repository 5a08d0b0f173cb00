"""Storage layer for sit.

This module provides the content-addressable object store, commit and tree
records, and the key/value configuration database.
"""

from sit.storage.config_db import NOT_FOUND, ConfigDB, ConfigError
from sit.storage.object_store import ObjectStore, hash_bytes
from sit.storage.records import (
    Commit,
    commit_id,
    read_commit,
    read_tree,
    write_commit,
    write_tree,
)

__all__ = [
    "ObjectStore",
    "hash_bytes",
    "Commit",
    "commit_id",
    "read_commit",
    "read_tree",
    "write_commit",
    "write_tree",
    "ConfigDB",
    "ConfigError",
    "NOT_FOUND",
]
