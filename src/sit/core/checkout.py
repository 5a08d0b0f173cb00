"""Materialize a snapshot into the working tree.

A whole-repository checkout replaces the index with the commit's tree and
moves HEAD. A path-scoped checkout only rewrites working tree files from
the chosen snapshot (a commit, or the index itself when no commit is given).
"""

from typing import List, Optional

from sit.core.index import CommitIndex, IndexView, normalize_prefix
from sit.core.repository import Repository
from sit.core.status import is_clean
from sit.errors import SitError
from sit.utils.logger import get_logger

logger = get_logger("core.checkout")


class CheckoutResult:
    """Outcome of a checkout.

    Attributes:
        commit_id: Resolved commit id ("" when the index was the source)
        written: Working tree paths that were written
        error: Reason the checkout did nothing, or None on success
    """

    def __init__(
        self,
        commit_id: str = "",
        written: Optional[List[str]] = None,
        error: Optional[str] = None,
    ) -> None:
        self.commit_id = commit_id
        self.written = written or []
        self.error = error

    @property
    def ok(self) -> bool:
        return self.error is None


class CheckoutEngine:
    """Copy blobs from a snapshot into the working tree."""

    def __init__(self, repo: Repository) -> None:
        self.repo = repo

    def checkout(self, commit: str = "", path: str = "") -> CheckoutResult:
        """Check out a whole commit, or one path from a commit or the index.

        Args:
            commit: Revision (id, short id, ``master``, ``HEAD``); empty means
                the index, which is only valid together with ``path``
            path: Repository-relative file or directory; empty for the whole
                repository

        Returns:
            CheckoutResult; ``error`` is set for a missing commit, a dirty
            index or a path that isn't in the snapshot

        Raises:
            SitError: For a whole-repository checkout without a commit
        """
        commit = (commit or "").strip()
        if not commit and not path:
            raise SitError("A commit is required to check out the whole repository.")

        if commit:
            try:
                commit_id = self.repo.resolve_commit(commit)
            except SitError as e:
                return CheckoutResult(error=e.message)
            if not self.repo.store.object_exists(commit_id):
                return CheckoutResult(commit_id, error=f"Commit {commit_id} doesn't exist.")
            source: IndexView = CommitIndex(self.repo.store, commit_id)
        else:
            commit_id = ""
            source = IndexView(self.repo.index.snapshot())

        if not path:
            return self._checkout_commit(commit_id, source)
        return self.checkout_path(source, path, commit_id)

    def _checkout_commit(self, commit_id: str, source: IndexView) -> CheckoutResult:
        if not is_clean(self.repo):
            return CheckoutResult(
                commit_id,
                error="You have something staged. Commit or reset before checkout.",
            )

        index = self.repo.index
        index.clear()
        written = []
        for rel_path, object_id in source.snapshot().items():
            self._materialize(rel_path, object_id)
            index.insert(rel_path, object_id)
            written.append(rel_path)
        index.save()
        self.repo.set_head(commit_id)

        logger.info("Checked out commit", commit_id=commit_id, files=len(written))
        return CheckoutResult(commit_id, written)

    def checkout_path(self, source: IndexView, path: str, commit_id: str = "") -> CheckoutResult:
        """Write the snapshot's version of ``path`` into the working tree.

        A trailing slash forces directory interpretation. The index is not
        touched.
        """
        is_directory = path.endswith("/")
        rel_path = normalize_prefix(path)

        if not is_directory and source.contains(rel_path):
            self._materialize(rel_path, source.get(rel_path))
            return CheckoutResult(commit_id, [rel_path])

        matches = source.list_under(rel_path)
        if not matches:
            return CheckoutResult(
                commit_id, error=f"{rel_path or path} doesn't exist in file list"
            )

        for item_path, object_id in matches.items():
            self._materialize(item_path, object_id)
        return CheckoutResult(commit_id, list(matches))

    def _materialize(self, rel_path: str, object_id: str) -> None:
        content = self.repo.store.read_object(object_id)
        target = self.repo.working_path(rel_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        if target.is_dir():
            raise SitError(f"Cannot check out {rel_path}: a directory is in the way")
        target.write_bytes(content)
