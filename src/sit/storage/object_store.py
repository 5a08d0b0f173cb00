"""Content-addressable object storage for sit.

This module implements a Git-like object store using SHA-256 hashing for
content addressing. Objects live in .sit/objects/ and carry no type tag:
the same store holds raw file blobs and serialized commit and tree records,
and meaning is assigned entirely by the reader.
"""

import hashlib
import os
import string
import tempfile
from pathlib import Path
from typing import List, Set

from sit.constants import (
    EMPTY_REF,
    HASH_ALGORITHM,
    HASH_LENGTH,
    OBJECTS_DIR,
    SHORT_ID_MIN,
)
from sit.errors import ObjectCorruptedError, ObjectNotFoundError, SitError
from sit.utils.logger import get_logger

logger = get_logger("storage.object_store")


def hash_bytes(content: bytes) -> str:
    """Compute the object id of ``content`` without storing it.

    Args:
        content: Binary data to hash

    Returns:
        Hex string of hash (64 characters for SHA-256)
    """
    hasher = hashlib.new(HASH_ALGORITHM)
    hasher.update(content)
    return hasher.hexdigest()


def is_object_id(value: str) -> bool:
    """Check whether ``value`` is a well-formed full object id."""
    if not isinstance(value, str) or len(value) != HASH_LENGTH:
        return False
    return all(c in string.hexdigits for c in value)


class ObjectStore:
    """Content-addressable storage for objects.

    Stores byte sequences identified by their SHA-256 hash. Writes are
    idempotent and atomic; objects are never modified once written.

    Storage layout:
        .sit/objects/<id[:2]>/<id[2:]>

    Attributes:
        sit_dir: Path to the .sit directory
        objects_dir: Path to the objects directory

    Example:
        >>> store = ObjectStore(Path(".sit"))
        >>> object_id = store.write_object(b"hello")
        >>> assert store.read_object(object_id) == b"hello"
    """

    def __init__(self, sit_dir: Path) -> None:
        """Initialize the object store.

        Args:
            sit_dir: Path to .sit directory

        Raises:
            ValueError: If sit_dir doesn't exist
        """
        self.sit_dir = Path(sit_dir)
        self.objects_dir = self.sit_dir / OBJECTS_DIR

        if not self.sit_dir.exists():
            raise ValueError(f"sit directory not found: {sit_dir}")

    def write_object(self, content: bytes) -> str:
        """Write an object to the store.

        If an object with the same id already exists, returns the id without
        writing. Uses atomic write (tmp file + rename) to prevent corruption.

        Args:
            content: Binary content to store

        Returns:
            SHA-256 hash of the content (64 hex characters)

        Raises:
            OSError: If write fails (permissions, disk full, etc.)
        """
        object_id = hash_bytes(content)

        if self.object_exists(object_id):
            return object_id

        object_path = self.object_path(object_id)
        object_path.parent.mkdir(parents=True, exist_ok=True)

        tmp_fd, tmp_path = tempfile.mkstemp(
            dir=object_path.parent,
            prefix=".tmp_",
            suffix=".obj",
        )
        try:
            with os.fdopen(tmp_fd, "wb") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, object_path)
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

        logger.debug("Object written", object_id=object_id, size=len(content))
        return object_id

    def read_object(self, object_id: str, verify_hash: bool = True) -> bytes:
        """Read an object from the store.

        Args:
            object_id: SHA-256 hash of the object (64 hex characters)
            verify_hash: Whether to recompute and verify hash (default: True)

        Returns:
            Binary content of the object

        Raises:
            ObjectNotFoundError: If the object doesn't exist
            ObjectCorruptedError: If hash verification fails
        """
        if not self.object_exists(object_id):
            raise ObjectNotFoundError(f"Object not found: {object_id}")

        with open(self.object_path(object_id), "rb") as f:
            content = f.read()

        if verify_hash:
            actual_id = hash_bytes(content)
            if actual_id != object_id:
                raise ObjectCorruptedError(
                    f"Object corrupted: expected {object_id}, got {actual_id}"
                )

        return content

    def object_exists(self, object_id: str) -> bool:
        """Check if an object exists in the store.

        The EMPTY_REF sentinel never exists.
        """
        if object_id == EMPTY_REF or not is_object_id(object_id):
            return False
        return self.object_path(object_id).is_file()

    def list_objects(self) -> Set[str]:
        """Return the id of every object physically present."""
        found: Set[str] = set()
        if not self.objects_dir.exists():
            return found

        for shard in self.objects_dir.iterdir():
            if not shard.is_dir() or len(shard.name) != 2:
                continue
            for item in shard.iterdir():
                if item.name.startswith(".tmp_"):
                    continue
                candidate = shard.name + item.name
                if is_object_id(candidate):
                    found.add(candidate)
        return found

    def remove_object(self, object_id: str) -> bool:
        """Delete an object. Best effort; only garbage collection calls this.

        Returns:
            True if a file was removed
        """
        object_path = self.object_path(object_id)
        try:
            object_path.unlink()
        except FileNotFoundError:
            return False

        # Drop the shard directory once it is empty
        try:
            object_path.parent.rmdir()
        except OSError:
            pass
        return True

    def resolve_prefix(self, prefix: str) -> str:
        """Complete a short hex prefix to a full object id.

        Args:
            prefix: At least SHORT_ID_MIN hex characters, or a full id

        Returns:
            The unique full object id starting with ``prefix``

        Raises:
            SitError: If nothing or more than one object matches
        """
        prefix = prefix.strip().lower()
        if len(prefix) == HASH_LENGTH:
            if not self.object_exists(prefix):
                raise SitError(f"Commit {prefix} doesn't exist.")
            return prefix

        if len(prefix) < SHORT_ID_MIN:
            raise SitError(
                f"Object id too short: {prefix!r}",
                f"use at least {SHORT_ID_MIN} characters",
            )
        if not all(c in string.hexdigits for c in prefix):
            raise SitError(f"Invalid object id: {prefix!r}")

        shard = self.objects_dir / prefix[:2]
        matches: List[str] = []
        if shard.is_dir():
            for item in shard.iterdir():
                if item.name.startswith(prefix[2:]) and not item.name.startswith(".tmp_"):
                    matches.append(prefix[:2] + item.name)

        if not matches:
            raise SitError(f"Commit {prefix} doesn't exist.")
        if len(matches) > 1:
            raise SitError(
                f"Object id {prefix} is ambiguous",
                ", ".join(sorted(m[:12] for m in matches)),
            )
        return matches[0]

    def object_path(self, object_id: str) -> Path:
        """Get the filesystem path for an object.

        Uses Git-like sharding: objects/<id[:2]>/<id[2:]>
        """
        return self.objects_dir / object_id[:2] / object_id[2:]
