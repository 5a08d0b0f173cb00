"""Unified diffs between two resolved snapshots.

A snapshot is a path -> object id mapping. The base defaults to the index
and the target defaults to the working tree, whose files are hashed on the
fly and never written to the object store.
"""

import difflib
from typing import Dict, List, Mapping, Optional, TextIO, Tuple

from sit.core.index import CommitIndex
from sit.core.repository import Repository
from sit.storage.object_store import hash_bytes

DEV_NULL = "/dev/null"


class Snapshot:
    """Path -> object id mapping plus a way to read each object's bytes."""

    def __init__(self, label: str, entries: Mapping[str, str]) -> None:
        self.label = label
        self.entries: Dict[str, str] = dict(entries)
        self._contents: Dict[str, bytes] = {}

    def remember(self, object_id: str, content: bytes) -> None:
        self._contents[object_id] = content

    def read(self, repo: Repository, object_id: str) -> bytes:
        if object_id in self._contents:
            return self._contents[object_id]
        return repo.store.read_object(object_id)


class DiffEngine:
    """Resolve revisions into snapshots and render their differences."""

    def __init__(self, repo: Repository) -> None:
        self.repo = repo

    def index_snapshot(self) -> Snapshot:
        return Snapshot("index", self.repo.index.snapshot())

    def commit_snapshot(self, revision: str) -> Snapshot:
        commit_id = self.repo.resolve_commit(revision)
        return Snapshot(commit_id[:7], CommitIndex(self.repo.store, commit_id).snapshot())

    def working_snapshot(self, paths: List[str]) -> Snapshot:
        """Hash the working copies of ``paths``; missing files are left out."""
        snapshot = Snapshot("working tree", {})
        for rel_path in sorted(set(paths)):
            working = self.repo.working_path(rel_path)
            if not working.is_file():
                continue
            content = working.read_bytes()
            object_id = hash_bytes(content)
            snapshot.entries[rel_path] = object_id
            snapshot.remember(object_id, content)
        return snapshot

    def resolve(self, base: str = "", target: str = "") -> Tuple[Snapshot, Snapshot]:
        """Snapshots for ``sit diff [base] [target]``."""
        base_snapshot = self.commit_snapshot(base) if base else self.index_snapshot()
        if target:
            target_snapshot = self.commit_snapshot(target)
        else:
            tracked = list(base_snapshot.entries) + list(self.repo.index.snapshot())
            target_snapshot = self.working_snapshot(tracked)
        return base_snapshot, target_snapshot

    def diff(self, out: TextIO, base: str = "", target: str = "") -> int:
        old, new = self.resolve(base, target)
        return self.render(out, old, new)

    def render(self, out: TextIO, old: Snapshot, new: Snapshot) -> int:
        """Write a unified diff of every changed path.

        Returns:
            Number of paths that differ
        """
        changed = 0
        for path in sorted(set(old.entries) | set(new.entries)):
            old_id = old.entries.get(path)
            new_id = new.entries.get(path)
            if old_id == new_id:
                continue
            changed += 1

            old_bytes = old.read(self.repo, old_id) if old_id else b""
            new_bytes = new.read(self.repo, new_id) if new_id else b""
            from_file = f"a/{path}" if old_id else DEV_NULL
            to_file = f"b/{path}" if new_id else DEV_NULL

            out.write(f"diff --sit a/{path} b/{path}\n")
            old_text = _as_text(old_bytes)
            new_text = _as_text(new_bytes)
            if old_text is None or new_text is None:
                out.write(f"Binary files {from_file} and {to_file} differ\n")
                continue

            lines = difflib.unified_diff(
                old_text.splitlines(keepends=True),
                new_text.splitlines(keepends=True),
                fromfile=from_file,
                tofile=to_file,
            )
            for line in lines:
                out.write(line)
                if not line.endswith("\n"):
                    out.write("\n\\ No newline at end of file\n")
        return changed


def _as_text(content: bytes) -> Optional[str]:
    if b"\0" in content:
        return None
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError:
        return None
