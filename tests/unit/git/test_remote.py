"""Tests for remote primitives against a local bare remote."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
from git import Repo

from gitgrip.exceptions import GitError, OperationFailedError
from gitgrip.git import (
    StatusCache,
    create_and_checkout,
    delete_remote_branch,
    fetch,
    force_push,
    get_remote_url,
    get_upstream,
    pull,
    push,
    remote_branch_exists,
    reset_hard,
    set_remote_url,
    set_upstream,
    upstream_exists_on_remote,
)
from tests.fixtures.repos import commit_file

Clone = Callable[[], Repo]


def _push_upstream_commit(other_clone: Clone, name: str = "up.txt") -> str:
    upstream = other_clone()
    sha = commit_file(upstream, name, "u\n", "upstream change")
    upstream.git.push("origin", "main")
    return sha


class TestRemoteUrl:
    def test_get_remote_url(self, remote_repo: tuple[Repo, Path]) -> None:
        local, remote_path = remote_repo
        assert get_remote_url(local) == str(remote_path)
        assert get_remote_url(local, "missing") is None

    def test_set_remote_url_creates_or_updates(self, git_repo: Repo) -> None:
        set_remote_url(git_repo, "https://example.com/a.git")
        assert get_remote_url(git_repo) == "https://example.com/a.git"

        set_remote_url(git_repo, "https://example.com/b.git")
        assert get_remote_url(git_repo) == "https://example.com/b.git"


class TestFetch:
    def test_fetch_updates_tracking_ref(
        self, remote_repo: tuple[Repo, Path], other_clone: Clone
    ) -> None:
        local, _ = remote_repo
        sha = _push_upstream_commit(other_clone)

        fetch(local)

        assert local.commit("origin/main").hexsha == sha
        assert local.head.commit.hexsha != sha

    def test_unknown_remote(self, git_repo: Repo) -> None:
        with pytest.raises(GitError, match="Remote not found"):
            fetch(git_repo, "origin")


class TestPull:
    def test_fast_forwards(
        self, remote_repo: tuple[Repo, Path], other_clone: Clone
    ) -> None:
        local, _ = remote_repo
        sha = _push_upstream_commit(other_clone)

        pull(local)

        assert local.head.commit.hexsha == sha
        assert (Path(local.working_tree_dir) / "up.txt").exists()

    def test_up_to_date_is_a_no_op(self, remote_repo: tuple[Repo, Path]) -> None:
        local, _ = remote_repo
        before = local.head.commit.hexsha
        pull(local)
        assert local.head.commit.hexsha == before

    def test_local_ahead_is_a_no_op(self, remote_repo: tuple[Repo, Path]) -> None:
        local, _ = remote_repo
        sha = commit_file(local, "mine.txt", "m\n", "mine")
        pull(local)
        assert local.head.commit.hexsha == sha

    def test_diverged_history_is_refused(
        self, remote_repo: tuple[Repo, Path], other_clone: Clone
    ) -> None:
        local, _ = remote_repo
        _push_upstream_commit(other_clone)
        mine = commit_file(local, "mine.txt", "m\n", "mine")

        with pytest.raises(OperationFailedError) as exc_info:
            pull(local)

        assert "Non-fast-forward" in exc_info.value.message
        assert local.head.commit.hexsha == mine

    def test_branch_missing_on_remote(self, remote_repo: tuple[Repo, Path]) -> None:
        local, _ = remote_repo
        create_and_checkout(local, "local-only")
        before = local.head.commit.hexsha
        pull(local)
        assert local.head.commit.hexsha == before

    def test_invalidates_cache(
        self, remote_repo: tuple[Repo, Path], other_clone: Clone
    ) -> None:
        local, _ = remote_repo
        path = Path(local.working_tree_dir)
        cache = StatusCache()
        cache.get_cached(path)
        _push_upstream_commit(other_clone)

        pull(local, cache=cache)

        assert path not in cache


class TestPush:
    def test_push_with_upstream(self, remote_repo: tuple[Repo, Path]) -> None:
        local, _ = remote_repo
        create_and_checkout(local, "feature")
        assert get_upstream(local) is None

        push(local, "feature", set_upstream=True)

        assert get_upstream(local) == "origin/feature"
        assert upstream_exists_on_remote(local)
        assert remote_branch_exists(local, "feature")

    def test_rejected_non_fast_forward(
        self, remote_repo: tuple[Repo, Path], other_clone: Clone
    ) -> None:
        local, _ = remote_repo
        _push_upstream_commit(other_clone)
        commit_file(local, "mine.txt", "m\n", "mine")

        with pytest.raises(OperationFailedError):
            push(local, "main")

    def test_force_push_rewrites_remote(self, remote_repo: tuple[Repo, Path]) -> None:
        local, remote_path = remote_repo
        base = local.head.commit.hexsha
        commit_file(local, "a.txt", "a\n", "a")
        push(local, "main")

        reset_hard(local, base)
        rewritten = commit_file(local, "b.txt", "b\n", "b")
        force_push(local, "main")

        assert Repo(remote_path).commit("main").hexsha == rewritten

    def test_delete_remote_branch(self, remote_repo: tuple[Repo, Path]) -> None:
        local, _ = remote_repo
        create_and_checkout(local, "temp")
        push(local, "temp", set_upstream=True)

        delete_remote_branch(local, "temp")

        assert get_upstream(local) == "origin/temp"
        assert not upstream_exists_on_remote(local)


class TestUpstream:
    def test_set_upstream_tracks_current_branch(
        self, remote_repo: tuple[Repo, Path]
    ) -> None:
        local, _ = remote_repo
        create_and_checkout(local, "topic")
        push(local, "topic")
        fetch(local)

        set_upstream(local)

        assert get_upstream(local) == "origin/topic"
        assert get_upstream(local, "main") == "origin/main"

    def test_set_upstream_on_detached_head(
        self, remote_repo: tuple[Repo, Path]
    ) -> None:
        local, _ = remote_repo
        local.git.checkout(local.head.commit.hexsha)
        with pytest.raises(GitError):
            set_upstream(local)
        assert get_upstream(local) is None

    def test_no_upstream_configured(self, git_repo: Repo) -> None:
        assert get_upstream(git_repo) is None
        assert not upstream_exists_on_remote(git_repo)
