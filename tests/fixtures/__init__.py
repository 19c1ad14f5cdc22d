"""Shared test fixtures for the gitgrip test suite.

Available Fixtures
==================

Repositories (from tests/fixtures/repos.py)
-------------------------------------------

Helpers:
    init_repo: Initialise a repository on ``main`` with one commit.
    commit_file: Write a file and commit it.
    clone_from: Clone a repository with a test identity configured.

Fixtures:
    git_repo: A repository with one commit on ``main`` and no remote.
    remote_repo: ``(local, bare_remote_path)`` with ``main`` pushed and tracked.
    other_clone: Factory cloning the bare remote of ``remote_repo`` elsewhere,
        used to push commits the local repository has not seen yet.

Workspaces (from tests/fixtures/workspace.py)
---------------------------------------------

Fixtures:
    workspace: A workspace root holding a manifest with two cloned
        repositories (``app``, ``lib``) and one that is not cloned (``docs``).

Example:
    >>> def test_pull(remote_repo, other_clone):
    ...     local, _ = remote_repo
    ...     upstream = other_clone()
    ...     commit_file(upstream, "new.txt", "x", "upstream change")
    ...     upstream.git.push("origin", "main")
"""

from __future__ import annotations

from tests.fixtures.repos import (
    clone_from,
    commit_file,
    git_repo,
    init_repo,
    other_clone,
    remote_repo,
)
from tests.fixtures.workspace import WorkspaceLayout, workspace

__all__ = [
    "WorkspaceLayout",
    "clone_from",
    "commit_file",
    "git_repo",
    "init_repo",
    "other_clone",
    "remote_repo",
    "workspace",
]
