"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import Dict, Optional

import pytest

from sit.core.history import CommitEngine, CommitResult
from sit.core.repository import Repository
from sit.core.staging import StagingManager


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """An empty working tree directory."""
    root = tmp_path / "workspace"
    root.mkdir()
    return root


@pytest.fixture
def repo(workspace: Path):
    """Initialized repository with an identity configured."""
    repository = Repository.init(workspace)
    repository.config.set("user.name", "Ada Lovelace")
    repository.config.set("user.email", "ada@example.com")
    yield repository
    repository.close()


@pytest.fixture
def write_file(workspace: Path):
    """Write a working tree file relative to the workspace root."""

    def _write(rel_path: str, content: str) -> Path:
        path = workspace / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


FIXED_TIME = "2026-10-19 10:00:00 +0000"


@pytest.fixture
def engine(repo: Repository) -> CommitEngine:
    """CommitEngine with a fixed clock."""
    return CommitEngine(repo, clock=lambda: FIXED_TIME)


@pytest.fixture
def snapshot(repo: Repository, engine: CommitEngine, write_file):
    """Write files, stage the whole tree and commit it."""

    def _snapshot(message: str, files: Optional[Dict[str, str]] = None, amend: bool = False) -> CommitResult:
        for rel_path, content in (files or {}).items():
            write_file(rel_path, content)
        StagingManager(repo).add(["."], cwd=repo.root)
        return engine.commit(message, amend=amend)

    return _snapshot
