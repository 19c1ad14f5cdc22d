"""Tests for repository opening, identity and the GitRepository handle.

Uses temporary git repositories for isolation.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from git import GitCommandError, Repo
from tenacity import wait_none

from gitgrip.exceptions import (
    GitError,
    NotARepositoryError,
    OperationFailedError,
    RepositoryNotFoundError,
)
from gitgrip.git import (
    GitRepository,
    clone_repo,
    convert_git_error,
    current_branch,
    is_git_repo,
    network_retry,
    open_repo,
    path_exists,
    repo_root,
)
from tests.fixtures.repos import commit_file

# =============================================================================
# open_repo / is_git_repo
# =============================================================================


class TestOpenRepo:
    def test_opens_existing_repository(self, git_repo: Repo) -> None:
        repo = open_repo(git_repo.working_tree_dir)
        try:
            assert repo_root(repo) == Path(git_repo.working_tree_dir).resolve()
        finally:
            repo.close()

    def test_missing_path_raises_not_found(self, tmp_path: Path) -> None:
        with pytest.raises(RepositoryNotFoundError) as exc_info:
            open_repo(tmp_path / "missing")
        assert exc_info.value.path == tmp_path / "missing"
        assert exc_info.value.operation == "open"

    def test_plain_directory_raises_not_a_repo(self, tmp_path: Path) -> None:
        plain = tmp_path / "plain"
        plain.mkdir()
        with pytest.raises(NotARepositoryError):
            open_repo(plain)

    def test_errors_share_git_error_base(self, tmp_path: Path) -> None:
        with pytest.raises(GitError):
            open_repo(tmp_path / "missing")

    def test_is_git_repo(self, git_repo: Repo, tmp_path: Path) -> None:
        assert is_git_repo(git_repo.working_tree_dir)
        assert not is_git_repo(tmp_path / "missing")

    def test_path_exists(self, tmp_path: Path) -> None:
        assert path_exists(tmp_path)
        assert not path_exists(tmp_path / "nope")


# =============================================================================
# current_branch
# =============================================================================


class TestCurrentBranch:
    def test_reports_checked_out_branch(self, git_repo: Repo) -> None:
        assert current_branch(git_repo) == "main"

    def test_detached_head_label(self, git_repo: Repo) -> None:
        sha = git_repo.head.commit.hexsha
        git_repo.git.checkout(sha)
        assert current_branch(git_repo) == f"(HEAD detached at {sha[:7]})"


# =============================================================================
# GitRepository handle
# =============================================================================


class TestGitRepository:
    def test_opens_lazily(self, git_repo: Repo) -> None:
        handle = GitRepository(git_repo.working_tree_dir)
        assert handle.exists
        assert not handle.is_open
        assert current_branch(handle.repo) == "main"
        assert handle.is_open
        handle.close()
        assert not handle.is_open

    def test_handle_for_uncloned_path(self, tmp_path: Path) -> None:
        handle = GitRepository(tmp_path / "later")
        assert not handle.exists
        with pytest.raises(RepositoryNotFoundError):
            _ = handle.repo

    def test_context_manager_closes(self, git_repo: Repo) -> None:
        with GitRepository(git_repo.working_tree_dir, remote="upstream") as handle:
            _ = handle.repo
            assert handle.remote == "upstream"
        assert not handle.is_open

    def test_repr_names_path(self, tmp_path: Path) -> None:
        assert repr(GitRepository(tmp_path)) == f"GitRepository({str(tmp_path)!r})"


# =============================================================================
# clone_repo
# =============================================================================


def test_clone_repo_checks_out_branch(
    remote_repo: tuple[Repo, Path], tmp_path: Path
) -> None:
    local, remote_path = remote_repo
    local.git.checkout("-b", "feature")
    commit_file(local, "feature.txt", "x\n", "feature work")
    local.git.push("origin", "feature")

    cloned = clone_repo(str(remote_path), tmp_path / "cloned", branch="feature")
    try:
        assert current_branch(cloned) == "feature"
        assert (tmp_path / "cloned" / "feature.txt").exists()
    finally:
        cloned.close()


def test_clone_repo_bad_url_raises_git_error(tmp_path: Path) -> None:
    with pytest.raises(GitError) as exc_info:
        clone_repo(str(tmp_path / "no-such-remote.git"), tmp_path / "dest")
    assert exc_info.value.operation == "clone"


# =============================================================================
# Error conversion and retry
# =============================================================================


class TestConvertGitError:
    @pytest.mark.parametrize(
        "stderr",
        [
            "! [rejected] main -> main (non-fast-forward)",
            "fatal: Not possible to fast-forward, aborting.",
        ],
    )
    def test_non_fast_forward(self, stderr: str) -> None:
        err = convert_git_error(GitCommandError(["git"], 1, stderr=stderr), "pull")
        assert isinstance(err, OperationFailedError)
        assert err.reason == "Non-fast-forward merge required. Please merge manually."
        assert err.operation == "pull"

    def test_overwritten_local_changes(self) -> None:
        stderr = "error: Your local changes would be overwritten by checkout"
        err = convert_git_error(GitCommandError(["git"], 1, stderr=stderr), "checkout")
        assert isinstance(err, OperationFailedError)

    def test_other_failures_are_plain_git_errors(self) -> None:
        stderr = "fatal: something odd"
        err = convert_git_error(GitCommandError(["git"], 128, stderr=stderr), "fetch")
        assert type(err) is GitError
        assert "something odd" in err.message


class TestNetworkRetry:
    def test_retries_transient_network_errors(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        calls = []

        @network_retry
        def flaky() -> str:
            calls.append(1)
            if len(calls) < 3:
                raise GitCommandError(
                    ["git", "fetch"], 128, stderr="Could not resolve host: example"
                )
            return "ok"

        monkeypatch.setattr(flaky.retry, "wait", wait_none())
        assert flaky() == "ok"
        assert len(calls) == 3

    def test_does_not_retry_other_errors(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        calls = []

        @network_retry
        def broken() -> None:
            calls.append(1)
            raise GitCommandError(["git", "fetch"], 128, stderr="Permission denied")

        monkeypatch.setattr(broken.retry, "wait", wait_none())
        with pytest.raises(GitCommandError):
            broken()
        assert len(calls) == 1
