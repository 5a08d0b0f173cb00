"""Mark-and-sweep garbage collection over the object store.

Roots are the commit chains of master and HEAD plus the blobs named by the
staging index. Everything else (for example commits superseded by an amend)
is deleted. Must run under the repository lock.
"""

from typing import List, Set

from sit.constants import EMPTY_REF
from sit.core.history import iter_history
from sit.core.repository import Repository
from sit.storage.records import read_tree
from sit.utils.logger import get_logger

logger = get_logger("core.gc")


class GCResult:
    """Outcome of a collection.

    Attributes:
        removed: Ids deleted, sorted
        kept: Number of reachable objects left in place
    """

    def __init__(self, removed: List[str], kept: int) -> None:
        self.removed = removed
        self.kept = kept


class GarbageCollector:
    """Delete objects unreachable from the refs and the index."""

    def __init__(self, repo: Repository) -> None:
        self.repo = repo

    def referenced(self) -> Set[str]:
        """Every object id reachable from master, HEAD and the index."""
        repo = self.repo
        reachable: Set[str] = set(repo.index.snapshot().values())

        for tip in (repo.master(), repo.head()):
            if tip == EMPTY_REF or tip in reachable:
                continue
            for commit_id, commit in iter_history(repo, tip):
                if commit_id in reachable:
                    # The rest of this chain was already walked
                    break
                reachable.add(commit_id)
                reachable.add(commit.tree)
                reachable.update(read_tree(repo.store, commit.tree).values())
        return reachable

    def collect(self) -> GCResult:
        existing = self.repo.store.list_objects()
        referenced = self.referenced()

        removed = []
        for object_id in sorted(existing - referenced):
            if self.repo.store.remove_object(object_id):
                removed.append(object_id)

        logger.info("Garbage collected", removed=len(removed), kept=len(existing) - len(removed))
        return GCResult(removed, len(existing) - len(removed))
