"""Tests for ``gitgrip checkout``."""

from __future__ import annotations

from collections.abc import Callable

from click.testing import Result
from git import Repo

from gitgrip.cli.context import ExitCode
from tests.fixtures.workspace import WorkspaceLayout

RunCli = Callable[..., Result]


def _branch(workspace: WorkspaceLayout, name: str) -> str:
    repo = Repo(workspace.repo_path(name))
    try:
        return repo.active_branch.name
    finally:
        repo.close()


def test_create_branch_everywhere(run_cli: RunCli, workspace: WorkspaceLayout) -> None:
    result = run_cli("checkout", "-b", "feature/login")

    assert result.exit_code == 0
    assert "Switched 2/2 repos to feature/login" in result.output
    assert _branch(workspace, "app") == "feature/login"
    assert _branch(workspace, "lib") == "feature/login"


def test_switch_back_to_existing_branch(
    run_cli: RunCli, workspace: WorkspaceLayout
) -> None:
    run_cli("checkout", "-b", "topic")

    result = run_cli("checkout", "main")

    assert result.exit_code == 0
    assert _branch(workspace, "app") == "main"
    assert _branch(workspace, "lib") == "main"


def test_missing_branch_is_reported(
    run_cli: RunCli, workspace: WorkspaceLayout
) -> None:
    Repo(workspace.repo_path("app")).git.branch("only-in-app")

    result = run_cli("checkout", "only-in-app")

    assert result.exit_code == ExitCode.PARTIAL
    assert "Branch 'only-in-app' doesn't exist in 1 repos:" in result.output
    assert "Switched 1/2 repos to only-in-app" in result.output
    assert _branch(workspace, "app") == "only-in-app"
    assert _branch(workspace, "lib") == "main"


def test_branch_missing_everywhere(
    run_cli: RunCli, workspace: WorkspaceLayout
) -> None:
    result = run_cli("checkout", "ghost")

    assert result.exit_code == ExitCode.FAILURE
    assert "doesn't exist in 2 repos" in result.output
