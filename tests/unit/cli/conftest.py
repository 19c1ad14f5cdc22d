"""Shared fixtures for CLI command tests.

Common fixtures available from the parent conftest.py and fixture plugins:
- cli_runner: Click CLI test runner
- temp_dir: Temporary directory for test files
- clean_env: Clean environment without GITGRIP_ vars
- workspace: Manifest plus cloned repositories (tests/fixtures/workspace.py)
"""

from __future__ import annotations

from collections.abc import Callable

import pytest
from click.testing import CliRunner, Result

from gitgrip.main import cli
from tests.fixtures.workspace import WorkspaceLayout


@pytest.fixture
def run_cli(
    cli_runner: CliRunner,
    workspace: WorkspaceLayout,
    clean_env: None,
    monkeypatch: pytest.MonkeyPatch,
) -> Callable[..., Result]:
    """Invoke ``gitgrip`` from inside the ``workspace`` root."""
    monkeypatch.chdir(workspace.root)

    def _run(*args: str) -> Result:
        return cli_runner.invoke(cli, list(args), catch_exceptions=False)

    return _run
