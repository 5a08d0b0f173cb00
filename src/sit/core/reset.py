"""Reconcile a target commit, the index and the working tree.

For every path in scope the target snapshot wins: paths only in the target
are staged, paths only in the index are unstaged, and paths whose index or
working copy differ from the target are overwritten. A hard reset applies
the same decision to the working tree.
"""

from typing import List, Optional

from sit.core.checkout import CheckoutEngine
from sit.core.index import CommitIndex, normalize_prefix
from sit.core.repository import Repository
from sit.core.status import file_digest
from sit.utils.logger import get_logger

logger = get_logger("core.reset")

STAGE = "stage"
UNSTAGE = "unstage"
OVERWRITE = "overwrite"

SYMBOLS = {
    STAGE: ">>> index",
    UNSTAGE: "<<< index",
    OVERWRITE: "=",
}


class ResetEntry:
    """One reconciled path.

    Attributes:
        path: Repository-relative path
        action: STAGE, UNSTAGE or OVERWRITE
        object_id: Id now staged for the path (None after UNSTAGE)
    """

    def __init__(self, path: str, action: str, object_id: Optional[str] = None) -> None:
        self.path = path
        self.action = action
        self.object_id = object_id

    @property
    def symbol(self) -> str:
        return SYMBOLS[self.action]

    def __repr__(self) -> str:
        return f"ResetEntry({self.path!r}, {self.action!r})"


class ResetReport:
    """Outcome of a reset.

    Attributes:
        commit_id: Resolved target commit
        entries: Touched paths, in path order
        untracked: Scope paths present in neither target nor index
        errors: Working tree updates that failed during a hard reset
    """

    def __init__(self, commit_id: str) -> None:
        self.commit_id = commit_id
        self.entries: List[ResetEntry] = []
        self.untracked: List[str] = []
        self.errors: List[str] = []

    def lines(self) -> List[str]:
        """Human readable report, one line per touched path."""
        out = []
        for entry in self.entries:
            if entry.action == OVERWRITE:
                out.append(f'  "{entry.path}" = {entry.object_id}')
            else:
                out.append(f'  "{entry.path}" {entry.symbol}')
        return out


class ResetEngine:
    """Move the index (and optionally the working tree) to a commit."""

    def __init__(self, repo: Repository) -> None:
        self.repo = repo

    def reset(self, commit: str = "", path: str = "", hard: bool = False) -> ResetReport:
        """Reset the scope ``path`` (everything when empty) to ``commit``.

        Args:
            commit: Revision; ``master``, ``HEAD`` or empty (HEAD) are aliases
            path: Repository-relative file or directory scope
            hard: Also rewrite or delete working tree files

        Returns:
            ResetReport

        Raises:
            SitError: If the commit can't be resolved
        """
        repo = self.repo
        commit_id = repo.resolve_commit(commit)
        scope = normalize_prefix(path)

        target = CommitIndex(repo.store, commit_id)
        index = repo.index
        in_target = target.list_under(scope)
        in_index = index.list_under(scope)

        report = ResetReport(commit_id)
        checkout = CheckoutEngine(repo)

        every_path = sorted(set(in_target) | set(in_index))
        if not every_path:
            report.untracked.append(scope or ".")
            return report

        for rel_path in every_path:
            if rel_path in in_target and rel_path not in in_index:
                index.insert(rel_path, in_target[rel_path])
                report.entries.append(ResetEntry(rel_path, STAGE, in_target[rel_path]))
                if hard:
                    self._restore(checkout, target, rel_path, report)

            elif rel_path in in_index and rel_path not in in_target:
                index.remove(rel_path)
                report.entries.append(ResetEntry(rel_path, UNSTAGE))
                if hard:
                    self._delete(rel_path, report)

            else:
                target_id = in_target[rel_path]
                index_id = in_index[rel_path]
                working_id = file_digest(repo.working_path(rel_path))
                if working_id == index_id == target_id:
                    continue
                index.remove(rel_path)
                index.insert(rel_path, target_id)
                report.entries.append(ResetEntry(rel_path, OVERWRITE, target_id))
                if hard:
                    self._restore(checkout, target, rel_path, report)

        index.save()
        logger.info(
            "Reset",
            commit_id=commit_id,
            scope=scope,
            hard=hard,
            touched=len(report.entries),
        )
        return report

    def _restore(
        self,
        checkout: CheckoutEngine,
        target: CommitIndex,
        rel_path: str,
        report: ResetReport,
    ) -> None:
        result = checkout.checkout_path(target, rel_path, target.commit_id)
        if not result.ok:
            report.errors.append(result.error)

    def _delete(self, rel_path: str, report: ResetReport) -> None:
        working = self.repo.working_path(rel_path)
        try:
            if working.is_file():
                working.unlink()
        except OSError as e:
            logger.warning("Failed to delete file", path=rel_path, error=str(e))
            report.errors.append(f"{rel_path}: {e}")
