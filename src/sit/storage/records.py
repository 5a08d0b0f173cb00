"""Commit and tree records serialized as objects.

Records are stored in the same ObjectStore as file blobs. Both are written
as canonical JSON (sorted keys, no whitespace) so that identical content
always yields the identical object id.
"""

import json
from typing import Any, Dict, Mapping

from sit.errors import SitError
from sit.storage.object_store import ObjectStore, hash_bytes


class Commit:
    """An immutable-by-convention commit record.

    The id is not part of the record; it is the digest of the serialized
    record, so changing any field (including ``parent``) changes the id.

    Attributes:
        tree: Object id of the tree (index snapshot)
        parent: Object id of the parent commit, or EMPTY_REF for the root
        author: "name <email> timestamp"
        committer: "name <email> timestamp"
        message: Commit message
    """

    FIELDS = ("tree", "parent", "author", "committer", "message")

    def __init__(
        self,
        tree: str,
        parent: str,
        author: str,
        committer: str,
        message: str,
    ):
        self.tree = tree
        self.parent = parent
        self.author = author
        self.committer = committer
        self.message = message

    def with_parent(self, parent: str) -> "Commit":
        """Return a copy of this record pointing at a different parent."""
        return Commit(self.tree, parent, self.author, self.committer, self.message)

    def to_dict(self) -> Dict[str, str]:
        return {field: getattr(self, field) for field in self.FIELDS}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Commit":
        missing = [field for field in cls.FIELDS if field not in data]
        if missing:
            raise SitError("Malformed commit record", f"missing {', '.join(missing)}")
        return cls(**{field: str(data[field]) for field in cls.FIELDS})

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Commit):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"Commit(tree={self.tree[:8]}, parent={self.parent[:8]}, message={self.message!r})"


def _canonical(obj: Any) -> bytes:
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")


def serialize_commit(commit: Commit) -> bytes:
    return _canonical(commit.to_dict())


def serialize_tree(entries: Mapping[str, str]) -> bytes:
    return _canonical({"entries": dict(entries)})


def commit_id(commit: Commit) -> str:
    """Compute a commit's id without touching the object store."""
    return hash_bytes(serialize_commit(commit))


def write_commit(store: ObjectStore, commit: Commit) -> str:
    """Serialize and store a commit, returning its id."""
    return store.write_object(serialize_commit(commit))


def read_commit(store: ObjectStore, object_id: str) -> Commit:
    """Load a commit record.

    Raises:
        ObjectNotFoundError: If no such object exists
        SitError: If the object is not a commit record
    """
    data = store.read_object(object_id)
    try:
        parsed = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise SitError(f"Object {object_id} is not a commit", str(e)) from e
    if not isinstance(parsed, dict):
        raise SitError(f"Object {object_id} is not a commit")
    return Commit.from_dict(parsed)


def write_tree(store: ObjectStore, entries: Mapping[str, str]) -> str:
    """Serialize and store an index snapshot, returning its id."""
    return store.write_object(serialize_tree(entries))


def read_tree(store: ObjectStore, object_id: str) -> Dict[str, str]:
    """Load an index snapshot as an ordered path -> object id mapping."""
    data = store.read_object(object_id)
    try:
        parsed = json.loads(data.decode("utf-8"))
        entries = parsed["entries"]
    except (UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError) as e:
        raise SitError(f"Object {object_id} is not a tree", str(e)) from e
    return {path: entries[path] for path in sorted(entries)}
