"""Unit tests for working-area status."""

from sit.core.repository import Repository
from sit.core.staging import StagingManager
from sit.core.status import compute_status, file_digest, is_clean
from sit.storage.object_store import hash_bytes


class TestStatus:
    """Test HEAD vs index vs working tree comparison."""

    def test_fresh_repository(self, repo: Repository) -> None:
        status = compute_status(repo)
        assert status.staged == {}
        assert status.unstaged == {}
        assert status.untracked == []
        assert status.is_clean

    def test_untracked_and_new(self, repo: Repository, write_file) -> None:
        write_file("staged.txt", "s")
        write_file("loose.txt", "l")
        StagingManager(repo).add(["staged.txt"], cwd=repo.root)

        status = compute_status(repo)

        assert status.staged == {"staged.txt": "new"}
        assert status.untracked == ["loose.txt"]
        assert not is_clean(repo)

    def test_clean_after_commit(self, repo: Repository, snapshot) -> None:
        snapshot("one\n", {"a.txt": "a"})
        assert is_clean(repo)

    def test_modified_and_deleted(self, repo: Repository, snapshot) -> None:
        snapshot("one\n", {"a.txt": "a", "b.txt": "b", "c.txt": "c"})
        (repo.root / "a.txt").write_text("changed")
        (repo.root / "b.txt").unlink()
        StagingManager(repo).remove(["c.txt"], cwd=repo.root)

        status = compute_status(repo)

        assert status.unstaged == {"a.txt": "modified", "b.txt": "deleted"}
        assert status.staged == {"c.txt": "deleted"}
        assert status.untracked == ["c.txt"]

    def test_staged_modification(self, repo: Repository, snapshot) -> None:
        snapshot("one\n", {"a.txt": "a"})
        (repo.root / "a.txt").write_text("b")
        StagingManager(repo).add(["a.txt"], cwd=repo.root)

        assert compute_status(repo).staged == {"a.txt": "modified"}

    def test_file_digest(self, repo: Repository, write_file) -> None:
        path = write_file("x.txt", "x")
        assert file_digest(path) == hash_bytes(b"x")
        assert file_digest(repo.root / "missing") is None
