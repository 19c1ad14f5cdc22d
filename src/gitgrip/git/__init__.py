"""Git operations package using GitPython.

Small, independently testable primitives over an already-open ``git.Repo``,
plus the status cache and the safe-pull reconciler built on them.

Usage:
    ```python
    from gitgrip.git import GitRepository, StatusCache, safe_pull

    cache = StatusCache()
    handle = GitRepository("/work/api")
    result = safe_pull(handle.repo, "main", cache=cache)
    info = cache.get_cached(handle.path)
    ```
"""

from __future__ import annotations

from gitgrip.git.branch import (
    branch_exists,
    checkout,
    commits_between,
    create_and_checkout,
    delete_local_branch,
    has_commits_ahead,
    is_merged,
    list_local_branches,
    list_remote_branches,
    remote_branch_exists,
    reset_hard,
)
from gitgrip.git.cache import StatusCache
from gitgrip.git.credentials import CredentialChain, default_providers
from gitgrip.git.remote import (
    delete_remote_branch,
    fetch,
    force_push,
    get_remote_url,
    get_upstream,
    pull,
    push,
    set_remote_url,
    set_upstream,
    upstream_exists_on_remote,
)
from gitgrip.git.repository import (
    GitRepository,
    clone_repo,
    convert_git_error,
    current_branch,
    is_git_repo,
    network_retry,
    open_repo,
    path_exists,
    repo_root,
    run_network_command,
)
from gitgrip.git.safe_pull import PullState, SafePullResult, safe_pull
from gitgrip.git.status import (
    RepoStatus,
    RepoStatusInfo,
    get_all_repo_status,
    get_changed_files,
    get_repo_status,
    get_status_info,
    has_uncommitted_changes,
)

__all__ = [
    "CredentialChain",
    "GitRepository",
    "PullState",
    "RepoStatus",
    "RepoStatusInfo",
    "SafePullResult",
    "StatusCache",
    "branch_exists",
    "checkout",
    "clone_repo",
    "convert_git_error",
    "commits_between",
    "create_and_checkout",
    "current_branch",
    "default_providers",
    "delete_local_branch",
    "delete_remote_branch",
    "fetch",
    "force_push",
    "get_all_repo_status",
    "get_changed_files",
    "get_remote_url",
    "get_repo_status",
    "get_status_info",
    "get_upstream",
    "has_commits_ahead",
    "has_uncommitted_changes",
    "is_git_repo",
    "is_merged",
    "list_local_branches",
    "list_remote_branches",
    "network_retry",
    "open_repo",
    "path_exists",
    "pull",
    "push",
    "remote_branch_exists",
    "repo_root",
    "reset_hard",
    "run_network_command",
    "safe_pull",
    "set_remote_url",
    "set_upstream",
    "upstream_exists_on_remote",
]
