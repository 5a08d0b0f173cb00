"""Commit creation, amend and history traversal.

Commit ids are derived from commit content, so amending a commit changes
its id and, through the ``parent`` links, the id of every newer commit.
``rewrite_history`` computes that cascade without touching the disk;
``CommitEngine`` persists its result.
"""

from datetime import datetime
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

from sit.constants import EMPTY_REF, USER_EMAIL_KEY, USER_NAME_KEY
from sit.core.repository import Repository
from sit.errors import SitError
from sit.storage.config_db import NOT_FOUND
from sit.storage.records import Commit, commit_id, read_commit, write_commit, write_tree
from sit.utils.logger import get_logger

logger = get_logger("core.history")


def clean_commit_message(text: str) -> str:
    """Strip comment lines and squeeze blank lines out of an edited message.

    Lines are trimmed and lines starting with ``#`` are dropped. Leading and
    trailing blank lines disappear and each run of blank lines in between
    becomes a single separator. Every kept line ends with a newline.
    """
    out: List[str] = []
    for line in text.splitlines():
        line = line.strip()
        if line.startswith("#"):
            continue
        if line or (out and out[-1]):
            out.append(line)
    while out and not out[-1]:
        out.pop()
    return "".join(line + "\n" for line in out)


def author_string(name: str, email: str, timestamp: str) -> str:
    return f"{name} <{email}> {timestamp}"


def iter_history(repo: Repository, start: str) -> Iterator[Tuple[str, Commit]]:
    """Yield ``(id, commit)`` from ``start`` back to the root commit."""
    current = start
    while current != EMPTY_REF:
        commit = read_commit(repo.store, current)
        yield current, commit
        current = commit.parent


def collect_newer(
    repo: Repository, tip: str, old_id: str
) -> List[Tuple[str, Commit]]:
    """Commits strictly newer than ``old_id`` on the chain ending at ``tip``.

    Returned newest first.

    Raises:
        SitError: If ``old_id`` is not an ancestor of (or equal to) ``tip``
    """
    newer: List[Tuple[str, Commit]] = []
    for current, commit in iter_history(repo, tip):
        if current == old_id:
            return newer
        newer.append((current, commit))
    raise SitError(f"Commit {old_id} is not in the history of master")


def rewrite_history(
    newer: Sequence[Commit], new_id: str
) -> Tuple[List[Tuple[str, Commit]], str]:
    """Relink a chain of commits onto a replacement ancestor.

    Args:
        newer: Commits that descended from the replaced commit, newest first
        new_id: Id of the commit that replaces their old ancestor

    Returns:
        ``(rewritten, tip)``: the relinked commits with their new ids,
        oldest first, and the id of the newest one (``new_id`` if ``newer``
        is empty)
    """
    rewritten: List[Tuple[str, Commit]] = []
    last = new_id
    for commit in reversed(newer):
        relinked = commit.with_parent(last)
        last = commit_id(relinked)
        rewritten.append((last, relinked))
    return rewritten, last


class CommitResult:
    """Outcome of a commit.

    Attributes:
        commit_id: Id of the commit built from the index
        tip: New master tip (differs from commit_id after an amend that
            rewrote newer commits)
        commit: The commit record
        rewritten: ``(old_id, new_id)`` pairs for commits relinked by amend
    """

    def __init__(
        self,
        commit_id: str,
        tip: str,
        commit: Commit,
        rewritten: Optional[List[Tuple[str, str]]] = None,
    ) -> None:
        self.commit_id = commit_id
        self.tip = tip
        self.commit = commit
        self.rewritten = rewritten or []

    @property
    def is_root(self) -> bool:
        return self.commit.parent == EMPTY_REF


class CommitEngine:
    """Build commits from the staging index and move the refs.

    Attributes:
        repo: Repository context
        clock: Returns the timestamp string used for author/committer
    """

    def __init__(self, repo: Repository, clock: Optional[Callable[[], str]] = None) -> None:
        self.repo = repo
        self.clock = clock or (
            lambda: datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S %z")
        )

    def commit(self, message: Optional[str] = None, amend: bool = False) -> CommitResult:
        """Record the index as a new commit, or replace HEAD's commit.

        Args:
            message: Commit message; read from COMMIT_MSG when empty
            amend: Replace the content of HEAD's commit, keeping its parent,
                and relink every newer commit on master

        Returns:
            CommitResult

        Raises:
            SitError: On any failed precondition (detached HEAD on a plain
                commit, empty message, missing identity configuration)
        """
        repo = self.repo
        head = repo.head()
        master = repo.master()

        if head != master and not amend:
            raise SitError("HEAD is not up-to-date with master. Cannot commit.")
        if amend and head == EMPTY_REF:
            raise SitError("Nothing to amend: there are no commits yet.")

        message = message or self.read_message()
        if not message.strip():
            raise SitError("Commit message is empty.")

        name = self._require_config(USER_NAME_KEY)
        email = self._require_config(USER_EMAIL_KEY)
        signature = author_string(name, email, self.clock())

        newer: List[Tuple[str, Commit]] = []
        if amend:
            # Fail before writing anything if HEAD is not on master's chain
            newer = collect_newer(repo, master, head)
            parent = read_commit(repo.store, head).parent
        else:
            parent = master

        tree = write_tree(repo.store, repo.index.snapshot())
        commit = Commit(
            tree=tree,
            parent=parent,
            author=signature,
            committer=signature,
            message=message,
        )
        new_id = write_commit(repo.store, commit)

        if not amend:
            repo.set_master(new_id)
            repo.set_head(new_id)
            logger.info("Committed", commit_id=new_id, parent=parent)
            return CommitResult(new_id, new_id, commit)

        tip, rewritten = self._amend(head, new_id, newer)
        repo.set_master(tip)
        repo.set_head(tip)
        return CommitResult(new_id, tip, commit, rewritten)

    def read_message(self) -> str:
        """Message taken from COMMIT_MSG with comments and extra blanks removed."""
        path = self.repo.commit_msg_path
        if not path.is_file():
            raise SitError("Commit message not found.", str(path))
        return clean_commit_message(path.read_text(encoding="utf-8"))

    def _amend(
        self, old_id: str, new_id: str, newer: List[Tuple[str, Commit]]
    ) -> Tuple[str, List[Tuple[str, str]]]:
        rewritten, tip = rewrite_history([commit for _, commit in newer], new_id)

        pairs = []
        for (old, _), (_, commit) in zip(reversed(newer), rewritten):
            pairs.append((old, write_commit(self.repo.store, commit)))

        logger.info(
            "Amended commit",
            replaced=old_id,
            commit_id=new_id,
            rewritten=len(pairs),
            tip=tip,
        )
        return tip, pairs

    def _require_config(self, key: str) -> str:
        value = self.repo.config.get(key)
        if value is NOT_FOUND:
            raise SitError(f"Config `{key}` not found.", f"config: {key}")
        return value
