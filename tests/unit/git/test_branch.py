"""Tests for local branch primitives."""

from __future__ import annotations

from pathlib import Path

import pytest
from git import GitCommandError, Repo

from gitgrip.exceptions import BranchNotFoundError, GitError, OperationFailedError
from gitgrip.git import (
    StatusCache,
    branch_exists,
    checkout,
    commits_between,
    create_and_checkout,
    current_branch,
    delete_local_branch,
    has_commits_ahead,
    is_merged,
    list_local_branches,
    list_remote_branches,
    remote_branch_exists,
    reset_hard,
)
from tests.fixtures.repos import commit_file


class TestCreateAndCheckout:
    def test_round_trip(self, git_repo: Repo) -> None:
        create_and_checkout(git_repo, "feature/x")
        assert current_branch(git_repo) == "feature/x"

        checkout(git_repo, "main")
        assert current_branch(git_repo) == "main"

    def test_new_branch_starts_at_head(self, git_repo: Repo) -> None:
        head = git_repo.head.commit
        create_and_checkout(git_repo, "topic")
        assert git_repo.heads["topic"].commit == head

    def test_checkout_unknown_branch(self, git_repo: Repo) -> None:
        with pytest.raises(BranchNotFoundError) as exc_info:
            checkout(git_repo, "nope")
        assert exc_info.value.branch_name == "nope"
        assert current_branch(git_repo) == "main"

    def test_checkout_invalidates_cache(self, git_repo: Repo) -> None:
        cache = StatusCache()
        path = Path(git_repo.working_tree_dir)
        cache.get_cached(path)
        assert path in cache

        create_and_checkout(git_repo, "topic", cache)
        assert path not in cache
        assert cache.get_cached(path).current_branch == "topic"


class TestListing:
    def test_branch_exists(self, git_repo: Repo) -> None:
        assert branch_exists(git_repo, "main")
        assert not branch_exists(git_repo, "other")

    def test_list_local_branches(self, git_repo: Repo) -> None:
        git_repo.create_head("b")
        git_repo.create_head("a")
        assert sorted(list_local_branches(git_repo)) == ["a", "b", "main"]

    def test_remote_branches(self, remote_repo: tuple[Repo, Path]) -> None:
        local, _ = remote_repo
        assert remote_branch_exists(local, "main")
        assert not remote_branch_exists(local, "feature")
        assert list_remote_branches(local) == ["main"]

    def test_unknown_remote(self, git_repo: Repo) -> None:
        assert list_remote_branches(git_repo, "origin") == []
        assert not remote_branch_exists(git_repo, "main", "origin")


class TestMergeState:
    def test_branch_at_target_is_merged(self, git_repo: Repo) -> None:
        git_repo.create_head("same")
        assert is_merged(git_repo, "same", "main")

    def test_branch_with_extra_commit_is_not_merged(self, git_repo: Repo) -> None:
        create_and_checkout(git_repo, "work")
        commit_file(git_repo, "work.txt", "w\n", "work")
        assert not is_merged(git_repo, "work", "main")
        assert is_merged(git_repo, "main", "work")

    def test_unknown_branch(self, git_repo: Repo) -> None:
        with pytest.raises(BranchNotFoundError):
            is_merged(git_repo, "ghost", "main")

    def test_commits_between(self, git_repo: Repo) -> None:
        create_and_checkout(git_repo, "work")
        first = commit_file(git_repo, "a.txt", "a\n", "a")
        second = commit_file(git_repo, "b.txt", "b\n", "b")

        assert commits_between(git_repo, "main") == [second, first]
        assert has_commits_ahead(git_repo, "main")
        assert not has_commits_ahead(git_repo, "work", "main")


class TestDeleteLocalBranch:
    def test_refuses_current_branch(self, git_repo: Repo) -> None:
        with pytest.raises(OperationFailedError) as exc_info:
            delete_local_branch(git_repo, "main")
        assert "currently checked out" in exc_info.value.message
        assert branch_exists(git_repo, "main")

    def test_refuses_current_branch_even_with_force(self, git_repo: Repo) -> None:
        with pytest.raises(OperationFailedError):
            delete_local_branch(git_repo, "main", force=True)

    def test_deletes_merged_branch(self, git_repo: Repo) -> None:
        git_repo.create_head("done")
        delete_local_branch(git_repo, "done")
        assert not branch_exists(git_repo, "done")

    def test_unmerged_branch_needs_force(self, git_repo: Repo) -> None:
        create_and_checkout(git_repo, "wip")
        commit_file(git_repo, "wip.txt", "w\n", "wip")
        checkout(git_repo, "main")

        with pytest.raises(OperationFailedError) as exc_info:
            delete_local_branch(git_repo, "wip")
        assert "not fully merged" in exc_info.value.message

        delete_local_branch(git_repo, "wip", force=True)
        assert not branch_exists(git_repo, "wip")

    def test_missing_branch(self, git_repo: Repo) -> None:
        with pytest.raises(BranchNotFoundError):
            delete_local_branch(git_repo, "ghost")

    def test_merge_check_failure_is_a_git_error(
        self, git_repo: Repo, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        git_repo.create_head("done")

        def broken_merge_base(self: Repo, *revs: object) -> list[object]:
            raise GitCommandError(
                ["git", "merge-base"], 128, stderr="fatal: bad object"
            )

        monkeypatch.setattr(Repo, "merge_base", broken_merge_base)

        with pytest.raises(GitError) as exc_info:
            delete_local_branch(git_repo, "done")
        assert exc_info.value.operation == "merge-base"
        assert branch_exists(git_repo, "done")


class TestResetHard:
    def test_discards_changes_and_commits(self, git_repo: Repo) -> None:
        base = git_repo.head.commit.hexsha
        commit_file(git_repo, "extra.txt", "x\n", "extra")
        readme = Path(git_repo.working_tree_dir) / "README.md"
        readme.write_text("changed\n")

        cache = StatusCache()
        path = Path(git_repo.working_tree_dir)
        cache.get_cached(path)

        reset_hard(git_repo, base, cache)

        assert git_repo.head.commit.hexsha == base
        assert readme.read_text() == "# Test Repo\n"
        assert not (path / "extra.txt").exists()
        assert path not in cache

    def test_unknown_target(self, git_repo: Repo) -> None:
        with pytest.raises(BranchNotFoundError):
            reset_hard(git_repo, "does-not-exist")
