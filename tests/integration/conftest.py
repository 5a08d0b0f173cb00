"""Fixtures for integration tests."""

import os
from pathlib import Path

import pytest
from typer.testing import CliRunner

from sit.cli.main import app


@pytest.fixture
def cli_workspace(tmp_path: Path):
    """Empty working directory that is the process cwd for the test.

    Yields:
        Path: Path to the workspace root
    """
    workspace = tmp_path / "test_workspace"
    workspace.mkdir()
    original_cwd = Path.cwd()
    os.chdir(workspace)
    try:
        yield workspace
    finally:
        os.chdir(original_cwd)


@pytest.fixture
def sit(cli_workspace: Path):
    """Run sit commands inside an initialized repository with an identity."""
    runner = CliRunner()

    def _run(*args: str):
        return runner.invoke(app, list(args))

    result = _run("init", "--quiet")
    if result.exit_code != 0:
        raise RuntimeError(f"Failed to initialize repo: {result.output}")
    _run("config", "user.name", "Ada Lovelace")
    _run("config", "user.email", "ada@example.com")
    return _run
