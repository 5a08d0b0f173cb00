"""Unit tests for GarbageCollector."""

from sit.core.checkout import CheckoutEngine
from sit.core.gc import GarbageCollector
from sit.core.history import iter_history
from sit.core.repository import Repository
from sit.core.reset import ResetEngine
from sit.core.staging import StagingManager
from sit.storage.records import read_tree


class TestGarbageCollector:
    """Test reachability and sweeping."""

    def test_empty_repository(self, repo: Repository) -> None:
        result = GarbageCollector(repo).collect()
        assert result.removed == []
        assert result.kept == 0

    def test_keeps_reachable_objects(self, repo: Repository, snapshot) -> None:
        snapshot("one\n", {"a.txt": "a"})
        snapshot("two\n", {"a.txt": "b"})
        before = repo.store.list_objects()

        result = GarbageCollector(repo).collect()

        assert result.removed == []
        assert repo.store.list_objects() == before

    def test_removes_orphans(self, repo: Repository, snapshot) -> None:
        snapshot("one\n", {"a.txt": "a"})
        orphan = repo.store.write_object(b"nobody points here")

        result = GarbageCollector(repo).collect()

        assert result.removed == [orphan]
        assert not repo.store.object_exists(orphan)

    def test_removes_amended_commits(self, repo: Repository, snapshot, engine) -> None:
        c1 = snapshot("one\n", {"f.txt": "1"})
        c2 = snapshot("two\n", {"f.txt": "2"})
        repo.set_head(c1.commit_id)
        engine.commit("one, amended\n", amend=True)

        removed = set(GarbageCollector(repo).collect().removed)

        assert c1.commit_id in removed
        assert c2.commit_id in removed
        for commit_id, commit in iter_history(repo, repo.master()):
            assert repo.store.object_exists(commit_id)
            for blob in read_tree(repo.store, commit.tree).values():
                assert repo.store.object_exists(blob)

    def test_keeps_staged_blobs(self, repo: Repository, snapshot, write_file) -> None:
        snapshot("one\n", {"a.txt": "a"})
        write_file("b.txt", "staged only")
        StagingManager(repo).add(["b.txt"], cwd=repo.root)

        GarbageCollector(repo).collect()

        assert repo.store.object_exists(repo.index.get("b.txt"))

    def test_keeps_detached_head_chain(self, repo: Repository, snapshot, engine) -> None:
        c1 = snapshot("one\n", {"a.txt": "1"})
        c2 = snapshot("two\n", {"a.txt": "2"})
        assert CheckoutEngine(repo).checkout(c1.commit_id).ok
        old_blob = repo.index.get("a.txt")

        # Amend the root away, then look at the superseded tip again
        (repo.root / "a.txt").write_text("1, fixed")
        StagingManager(repo).add(["a.txt"], cwd=repo.root)
        engine.commit("one, fixed\n", amend=True)
        ResetEngine(repo).reset("HEAD", hard=True)
        assert CheckoutEngine(repo).checkout(c2.commit_id).ok
        assert old_blob not in repo.index.snapshot().values()

        result = GarbageCollector(repo).collect()

        assert repo.head() == c2.commit_id
        for kept in (c2.commit_id, c1.commit_id, c1.commit.tree, old_blob):
            assert kept not in result.removed
            assert repo.store.object_exists(kept)
        assert repo.store.object_exists(repo.master())

    def test_idempotent(self, repo: Repository, snapshot) -> None:
        snapshot("one\n", {"a.txt": "a"})
        repo.store.write_object(b"orphan")
        GarbageCollector(repo).collect()

        second = GarbageCollector(repo).collect()
        assert second.removed == []
