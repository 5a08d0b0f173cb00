"""Staging index and read-only historical views.

``IndexView`` is the query contract shared by the mutable staging ``Index``
and the read-only ``CommitIndex`` reconstructed from a commit's tree. Only
``Index`` exposes mutation.

Index file format (JSON):
{
    "version": 1,
    "entries": {
        "relative/path/to/file": "<object id>",
        ...
    }
}
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterator, Mapping, Optional

from sit.constants import EMPTY_REF, INDEX_VERSION
from sit.errors import IndexFormatError, SitError
from sit.storage.object_store import ObjectStore
from sit.storage.records import read_commit, read_tree


def normalize_prefix(prefix: str) -> str:
    """Turn a user path scope into the form stored in the index."""
    prefix = prefix.replace("\\", "/").strip("/")
    return "" if prefix == "." else prefix


class IndexView:
    """Read-only path -> object id mapping."""

    def __init__(self, entries: Optional[Mapping[str, str]] = None) -> None:
        self._entries: Dict[str, str] = dict(entries or {})

    def get(self, path: str) -> str:
        """Object id staged for ``path``.

        Raises:
            SitError: If the path is not present
        """
        try:
            return self._entries[path]
        except KeyError:
            raise SitError(f"{path} is not in the index") from None

    def contains(self, path: str) -> bool:
        return path in self._entries

    def snapshot(self) -> Dict[str, str]:
        """Copy of all entries, ordered by path."""
        return {path: self._entries[path] for path in sorted(self._entries)}

    def list_under(self, prefix: str) -> Dict[str, str]:
        """Entries at or below ``prefix``.

        ``prefix`` matches either one path exactly or a directory whose
        nested paths are all returned. An empty prefix returns everything.
        """
        prefix = normalize_prefix(prefix)
        if not prefix:
            return self.snapshot()

        directory = prefix + "/"
        return {
            path: object_id
            for path, object_id in self.snapshot().items()
            if path == prefix or path.startswith(directory)
        }

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._entries))

    def __len__(self) -> int:
        return len(self._entries)


class Index(IndexView):
    """The mutable staging area, persisted to ``.sit/index``.

    Loaded once per command, mutated in memory and saved explicitly.

    Attributes:
        index_path: Path to the index file
    """

    def __init__(self, index_path: Path) -> None:
        super().__init__()
        self.index_path = Path(index_path)

    def insert(self, path: str, object_id: str) -> None:
        """Stage ``object_id`` at ``path``, replacing any previous entry."""
        self._entries[path] = object_id

    def remove(self, path: str) -> bool:
        """Unstage ``path``. Returns False if it wasn't staged."""
        return self._entries.pop(path, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def load(self) -> "Index":
        """Replace in-memory entries with the persisted ones.

        Raises:
            IndexFormatError: If the file is corrupted or of an unknown version
        """
        self._entries.clear()
        if not self.index_path.exists():
            return self

        try:
            with open(self.index_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise IndexFormatError(f"Corrupted index file: {e}") from e

        if not isinstance(data, dict) or data.get("version") != INDEX_VERSION:
            version = data.get("version") if isinstance(data, dict) else None
            raise IndexFormatError(f"Unsupported index version: {version}")

        self._entries.update(data.get("entries", {}))
        return self

    def save(self) -> None:
        """Persist all entries atomically."""
        index = {"version": INDEX_VERSION, "entries": self.snapshot()}

        fd, tmp_path = tempfile.mkstemp(
            dir=self.index_path.parent,
            prefix=".tmp_index_",
            suffix=".json",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(index, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.index_path)
        except Exception:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise


class CommitIndex(IndexView):
    """Index-shaped view of a commit's tree. Never persisted.

    The EMPTY_REF sentinel yields an empty view.
    """

    def __init__(self, store: ObjectStore, commit_id: str) -> None:
        self.commit_id = commit_id
        if commit_id == EMPTY_REF:
            super().__init__()
        else:
            commit = read_commit(store, commit_id)
            super().__init__(read_tree(store, commit.tree))
