"""Unit tests for Refs."""

from pathlib import Path

import pytest

from sit.constants import EMPTY_REF
from sit.core.refs import Refs


@pytest.fixture
def refs(tmp_path: Path) -> Refs:
    return Refs(tmp_path)


class TestRefs:
    """Test HEAD and branch ref files."""

    def test_local_name(self) -> None:
        assert Refs.local("master") == "refs/heads/master"

    def test_missing_ref_is_empty(self, refs: Refs) -> None:
        assert refs.head() == EMPTY_REF
        assert refs.branch("master") == EMPTY_REF

    def test_set_and_get(self, refs: Refs, tmp_path: Path) -> None:
        refs.set("HEAD", "a" * 64)
        refs.set(Refs.local("master"), "b" * 64)

        assert refs.head() == "a" * 64
        assert refs.branch("master") == "b" * 64
        assert (tmp_path / "HEAD").read_text() == "a" * 64 + "\n"
        assert (tmp_path / "refs" / "heads" / "master").is_file()

    def test_literal_id_passes_through(self, refs: Refs) -> None:
        assert refs.get("c" * 64) == "c" * 64

    def test_empty_file_is_empty_ref(self, refs: Refs, tmp_path: Path) -> None:
        (tmp_path / "HEAD").write_text("\n")
        assert refs.head() == EMPTY_REF

    def test_is_ref(self, refs: Refs) -> None:
        assert refs.is_ref("HEAD")
        assert refs.is_ref("refs/heads/master")
        assert not refs.is_ref("master")
