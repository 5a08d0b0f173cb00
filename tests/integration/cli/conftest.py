"""Fixtures for subprocess-driven CLI tests."""

import subprocess
import sys
from pathlib import Path

import pytest

SIT = [sys.executable, "-m", "sit.cli.main"]


def _run_sit(*args: str, cwd: Path) -> subprocess.CompletedProcess:
    return subprocess.run([*SIT, *args], cwd=cwd, capture_output=True, text=True)


@pytest.fixture
def run_sit():
    """Run the sit CLI in a child process."""
    return _run_sit


@pytest.fixture
def initialized_repo(tmp_path):
    """Create a temporary directory with an initialized sit repository.

    Returns:
        Path: Path to the workspace root
    """
    workspace = tmp_path / "test_workspace"
    workspace.mkdir()

    result = _run_sit("init", "--quiet", cwd=workspace)
    if result.returncode != 0:
        raise RuntimeError(f"Failed to initialize repo: {result.stdout}\n{result.stderr}")

    return workspace
