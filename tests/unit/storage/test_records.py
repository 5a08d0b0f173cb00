"""Unit tests for commit and tree records."""

import json
from pathlib import Path

import pytest

from sit.constants import EMPTY_REF
from sit.errors import ObjectNotFoundError, SitError
from sit.storage.object_store import ObjectStore
from sit.storage.records import (
    Commit,
    commit_id,
    read_commit,
    read_tree,
    serialize_commit,
    write_commit,
    write_tree,
)


@pytest.fixture
def store(tmp_path: Path) -> ObjectStore:
    sit_dir = tmp_path / ".sit"
    (sit_dir / "objects").mkdir(parents=True)
    return ObjectStore(sit_dir)


def make_commit(parent: str = EMPTY_REF, message: str = "first\n") -> Commit:
    return Commit(
        tree="1" * 64,
        parent=parent,
        author="Ada <ada@example.com> 2026-10-19 10:00:00 +0000",
        committer="Ada <ada@example.com> 2026-10-19 10:00:00 +0000",
        message=message,
    )


class TestCommitRecords:
    """Test commit serialization."""

    def test_write_and_read(self, store: ObjectStore) -> None:
        commit = make_commit()
        object_id = write_commit(store, commit)

        assert read_commit(store, object_id) == commit

    def test_id_is_pure_function_of_fields(self, store: ObjectStore) -> None:
        """commit_id needs no store and agrees with write_commit."""
        commit = make_commit()
        assert commit_id(commit) == commit_id(make_commit())
        assert commit_id(commit) == write_commit(store, commit)

    def test_id_not_stored_in_record(self) -> None:
        data = json.loads(serialize_commit(make_commit()))
        assert set(data) == {"tree", "parent", "author", "committer", "message"}

    def test_parent_changes_id(self) -> None:
        commit = make_commit()
        relinked = commit.with_parent("2" * 64)

        assert relinked.parent == "2" * 64
        assert commit.parent == EMPTY_REF
        assert commit_id(relinked) != commit_id(commit)

    def test_read_missing_commit(self, store: ObjectStore) -> None:
        with pytest.raises(ObjectNotFoundError):
            read_commit(store, "3" * 64)

    def test_read_blob_as_commit(self, store: ObjectStore) -> None:
        blob = store.write_object(b"\xff\xfe not json")
        with pytest.raises(SitError, match="not a commit"):
            read_commit(store, blob)

    def test_read_incomplete_record(self, store: ObjectStore) -> None:
        object_id = store.write_object(b'{"tree": "x"}')
        with pytest.raises(SitError, match="Malformed commit"):
            read_commit(store, object_id)


class TestTreeRecords:
    """Test tree (index snapshot) serialization."""

    def test_write_and_read(self, store: ObjectStore) -> None:
        entries = {"b.txt": "b" * 64, "a/x.txt": "a" * 64}
        tree_id = write_tree(store, entries)

        loaded = read_tree(store, tree_id)
        assert loaded == entries
        assert list(loaded) == ["a/x.txt", "b.txt"]

    def test_same_entries_same_id(self, store: ObjectStore) -> None:
        first = write_tree(store, {"a": "1" * 64, "b": "2" * 64})
        second = write_tree(store, {"b": "2" * 64, "a": "1" * 64})
        assert first == second

    def test_empty_tree(self, store: ObjectStore) -> None:
        assert read_tree(store, write_tree(store, {})) == {}

    def test_read_commit_as_tree(self, store: ObjectStore) -> None:
        object_id = write_commit(store, make_commit())
        with pytest.raises(SitError, match="not a tree"):
            read_tree(store, object_id)
