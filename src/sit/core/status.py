"""Working-area status: HEAD vs index vs working tree."""

from pathlib import Path
from typing import Dict, List, Optional

from sit.core.index import CommitIndex
from sit.core.repository import Repository
from sit.storage.object_store import hash_bytes


def file_digest(path: Path) -> Optional[str]:
    """Object id the file would get if added, or None if it can't be read."""
    try:
        return hash_bytes(path.read_bytes())
    except OSError:
        return None


class Status:
    """Differences between HEAD's tree, the index and the working tree.

    Attributes:
        head: Commit id HEAD points at
        staged: path -> "new" | "modified" | "deleted" (index vs HEAD)
        unstaged: path -> "modified" | "deleted" (working tree vs index)
        untracked: Working tree files the index doesn't know
    """

    def __init__(self, head: str) -> None:
        self.head = head
        self.staged: Dict[str, str] = {}
        self.unstaged: Dict[str, str] = {}
        self.untracked: List[str] = []

    @property
    def is_clean(self) -> bool:
        """True when nothing is staged relative to HEAD."""
        return not self.staged


def compute_status(repo: Repository, include_untracked: bool = True) -> Status:
    head = repo.head()
    status = Status(head)
    committed = CommitIndex(repo.store, head).snapshot()
    staged = repo.index.snapshot()

    for path in sorted(set(committed) | set(staged)):
        if path not in committed:
            status.staged[path] = "new"
        elif path not in staged:
            status.staged[path] = "deleted"
        elif committed[path] != staged[path]:
            status.staged[path] = "modified"

    for path, object_id in staged.items():
        working = repo.working_path(path)
        if not working.is_file():
            status.unstaged[path] = "deleted"
        elif file_digest(working) != object_id:
            status.unstaged[path] = "modified"

    if include_untracked:
        status.untracked = [
            path for path in repo.iter_working_files() if path not in staged
        ]
    return status


def is_clean(repo: Repository) -> bool:
    return compute_status(repo, include_untracked=False).is_clean
