"""Unit tests for StagingManager."""

import os
from pathlib import Path

import pytest

from sit.core.repository import Repository
from sit.core.staging import StagingManager
from sit.errors import SitError
from sit.storage.object_store import hash_bytes


@pytest.fixture
def staging(repo: Repository) -> StagingManager:
    return StagingManager(repo)


class TestAdd:
    """Test adding files to the staging area."""

    def test_add_single_file(self, staging: StagingManager, repo: Repository, write_file) -> None:
        write_file("test.txt", "Hello, world!")

        result = staging.add(["test.txt"], cwd=repo.root)

        assert result.added == ["test.txt"]
        assert not result.has_errors
        assert repo.index.get("test.txt") == hash_bytes(b"Hello, world!")
        assert repo.store.read_object(repo.index.get("test.txt")) == b"Hello, world!"

    def test_add_persists_index(self, staging: StagingManager, repo: Repository, write_file) -> None:
        write_file("a.txt", "a")
        staging.add(["a.txt"], cwd=repo.root)

        with Repository(repo.root) as reopened:
            assert "a.txt" in reopened.index

    def test_add_directory_recursively(self, staging: StagingManager, repo: Repository, write_file) -> None:
        write_file("src/main.py", "print('hi')\n")
        write_file("src/pkg/util.py", "X = 1\n")
        write_file("README", "readme\n")

        result = staging.add(["src"], cwd=repo.root)

        assert result.added == ["src/main.py", "src/pkg/util.py"]
        assert "README" not in repo.index

    def test_add_whole_tree_skips_sit_dir(self, staging: StagingManager, repo: Repository, write_file) -> None:
        write_file("a.txt", "a")

        staging.add(["."], cwd=repo.root)

        assert list(repo.index) == ["a.txt"]

    def test_add_relative_to_cwd(self, staging: StagingManager, repo: Repository, write_file) -> None:
        write_file("sub/f.txt", "f")

        staging.add(["f.txt"], cwd=repo.root / "sub")

        assert "sub/f.txt" in repo.index

    def test_add_modified_file_updates(self, staging: StagingManager, repo: Repository, write_file) -> None:
        path = write_file("f.txt", "v1")
        staging.add(["f.txt"], cwd=repo.root)
        path.write_text("v2")

        result = staging.add(["f.txt"], cwd=repo.root)

        assert result.updated == ["f.txt"]
        assert repo.index.get("f.txt") == hash_bytes(b"v2")

    def test_add_missing_file_is_recorded(self, staging: StagingManager, repo: Repository, write_file) -> None:
        write_file("ok.txt", "ok")

        result = staging.add(["missing.txt", "ok.txt"], cwd=repo.root)

        assert result.added == ["ok.txt"]
        assert result.errors == ["missing.txt: file not found"]

    def test_add_outside_repository(self, staging: StagingManager, tmp_path: Path) -> None:
        outside = tmp_path / "outside.txt"
        outside.write_text("x")
        with pytest.raises(SitError, match="outside repository"):
            staging.add([outside])

    @pytest.mark.skipif(os.name == "nt" or os.geteuid() == 0, reason="needs POSIX permissions")
    def test_unreadable_file_skipped(self, staging: StagingManager, repo: Repository, write_file) -> None:
        locked = write_file("locked.txt", "secret")
        write_file("open.txt", "fine")
        locked.chmod(0)
        try:
            result = staging.add(["."], cwd=repo.root)
        finally:
            locked.chmod(0o644)

        assert result.added == ["open.txt"]
        assert len(result.errors) == 1
        assert result.errors[0].startswith("locked.txt:")


class TestSizeLimits:
    """Test the size guard that runs before any write."""

    def test_oversized_file_aborts_batch(self, repo: Repository, write_file) -> None:
        write_file("small.txt", "tiny")
        write_file("big.bin", "x" * 4096)
        staging = StagingManager(repo, max_file_size=1024, warn_file_size=512)

        with pytest.raises(SitError, match="larger than") as excinfo:
            staging.add(["."], cwd=repo.root)

        assert excinfo.value.context == "big.bin"
        assert len(repo.index) == 0
        assert repo.store.list_objects() == set()

    def test_large_file_warns(self, repo: Repository, write_file) -> None:
        write_file("medium.bin", "x" * 800)
        staging = StagingManager(repo, max_file_size=1024, warn_file_size=512)

        result = staging.add(["medium.bin"], cwd=repo.root)

        assert result.added == ["medium.bin"]
        assert len(result.warnings) == 1

    def test_default_limit(self, staging: StagingManager, repo: Repository) -> None:
        huge = repo.root / "huge.bin"
        with open(huge, "wb") as f:
            f.truncate(250 * 1024 * 1024)

        with pytest.raises(SitError, match="larger than 200MB"):
            staging.add(["huge.bin"], cwd=repo.root)
        assert "huge.bin" not in repo.index


class TestRemove:
    """Test unstaging."""

    def test_remove_file(self, staging: StagingManager, repo: Repository, write_file) -> None:
        write_file("f.txt", "f")
        staging.add(["f.txt"], cwd=repo.root)

        stats = staging.remove(["f.txt"], cwd=repo.root)

        assert stats["removed"] == ["f.txt"]
        assert "f.txt" not in repo.index
        assert (repo.root / "f.txt").exists()

    def test_remove_directory(self, staging: StagingManager, repo: Repository, write_file) -> None:
        write_file("d/a.txt", "a")
        write_file("d/e/b.txt", "b")
        write_file("keep.txt", "k")
        staging.add(["."], cwd=repo.root)

        stats = staging.remove(["d"], cwd=repo.root)

        assert sorted(stats["removed"]) == ["d/a.txt", "d/e/b.txt"]
        assert list(repo.index) == ["keep.txt"]

    def test_remove_not_staged(self, staging: StagingManager, repo: Repository) -> None:
        stats = staging.remove(["ghost.txt"], cwd=repo.root)
        assert stats == {"removed": [], "not_staged": ["ghost.txt"]}
