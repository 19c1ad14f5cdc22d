"""Remote and network primitives.

Every call that talks to a remote goes through
:func:`~gitgrip.git.repository.run_network_command`, which applies the
credential fallback chain and retries transient network failures.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from git import GitCommandError, Repo
from git.refs.remote import RemoteReference

from gitgrip.constants import DEFAULT_REMOTE
from gitgrip.exceptions import BranchNotFoundError, GitError, OperationFailedError
from gitgrip.git.branch import resolve_commit
from gitgrip.git.repository import (
    convert_git_error,
    repo_root,
    run_network_command,
)
from gitgrip.logging import get_logger

if TYPE_CHECKING:
    from gitgrip.git.cache import StatusCache
    from gitgrip.git.credentials import CredentialChain

logger = get_logger(__name__)

__all__ = [
    "delete_remote_branch",
    "fetch",
    "force_push",
    "get_remote_url",
    "get_upstream",
    "pull",
    "push",
    "set_remote_url",
    "set_upstream",
    "upstream_exists_on_remote",
]


def get_remote_url(repo: Repo, remote: str = DEFAULT_REMOTE) -> str | None:
    """URL of ``remote``, or None if the remote is not configured."""
    try:
        return repo.remote(remote).url
    except ValueError:
        return None


def set_remote_url(repo: Repo, url: str, remote: str = DEFAULT_REMOTE) -> None:
    """Point ``remote`` at ``url``, creating the remote if needed."""
    try:
        existing = repo.remote(remote)
    except ValueError:
        repo.create_remote(remote, url)
        logger.info("remote_created", remote=remote, url=url)
        return
    try:
        existing.set_url(url)
    except GitCommandError as e:
        raise convert_git_error(e, "remote") from e
    logger.info("remote_url_updated", remote=remote, url=url)


def fetch(
    repo: Repo,
    remote: str = DEFAULT_REMOTE,
    *,
    credentials: CredentialChain | None = None,
) -> None:
    """Fetch all branches from ``remote``."""
    run_network_command(repo, remote, "fetch", [remote], credentials=credentials)
    logger.debug("fetched", remote=remote)


def pull(
    repo: Repo,
    remote: str = DEFAULT_REMOTE,
    *,
    cache: StatusCache | None = None,
    credentials: CredentialChain | None = None,
) -> None:
    """Fetch ``remote`` and fast-forward the current branch.

    Does nothing after the fetch if HEAD is detached or the remote has no
    branch of the same name. Never creates a merge commit.

    Raises:
        OperationFailedError: If the branches have diverged.
        GitError: If the fetch or the fast-forward fails.
    """
    fetch(repo, remote, credentials=credentials)

    if repo.head.is_detached:
        return
    branch = repo.active_branch.name
    remote_ref = f"refs/remotes/{remote}/{branch}"
    try:
        remote_commit = resolve_commit(repo, remote_ref)
    except BranchNotFoundError:
        logger.debug("pull_no_remote_branch", branch=branch, remote=remote)
        return

    if repo.head.is_valid():
        local_commit = repo.head.commit
        if repo.is_ancestor(remote_commit, local_commit):
            logger.debug("pull_up_to_date", branch=branch)
            return
        if not repo.is_ancestor(local_commit, remote_commit):
            raise OperationFailedError(
                "Non-fast-forward merge required. Please merge manually.",
                operation="pull",
            )

    try:
        repo.git.merge("--ff-only", remote_commit.hexsha)
    except GitCommandError as e:
        raise convert_git_error(e, "pull") from e

    if cache is not None:
        cache.invalidate(repo_root(repo))
    logger.info("pull_fast_forwarded", branch=branch, commit=remote_commit.hexsha)


def push(
    repo: Repo,
    branch: str,
    remote: str = DEFAULT_REMOTE,
    *,
    set_upstream: bool = False,
    credentials: CredentialChain | None = None,
) -> None:
    """Push local ``branch`` to the same name on ``remote``.

    Args:
        repo: Open repository.
        branch: Local branch to push.
        remote: Remote name.
        set_upstream: Also configure ``<remote>/<branch>`` as the upstream.
        credentials: Credential chain override.
    """
    refspec = f"refs/heads/{branch}:refs/heads/{branch}"
    run_network_command(
        repo, remote, "push", [remote, refspec], credentials=credentials
    )
    logger.info("branch_pushed", branch=branch, remote=remote)

    if set_upstream:
        fetch(repo, remote, credentials=credentials)
        _set_tracking(repo, branch, remote)


def force_push(
    repo: Repo,
    branch: str,
    remote: str = DEFAULT_REMOTE,
    *,
    credentials: CredentialChain | None = None,
) -> None:
    refspec = f"+refs/heads/{branch}:refs/heads/{branch}"
    run_network_command(
        repo, remote, "push", [remote, refspec], credentials=credentials
    )
    logger.info("branch_force_pushed", branch=branch, remote=remote)


def delete_remote_branch(
    repo: Repo,
    branch: str,
    remote: str = DEFAULT_REMOTE,
    *,
    credentials: CredentialChain | None = None,
) -> None:
    """Delete ``branch`` on ``remote``."""
    refspec = f":refs/heads/{branch}"
    run_network_command(
        repo, remote, "push", [remote, refspec], credentials=credentials
    )
    logger.info("remote_branch_deleted", branch=branch, remote=remote)


# =============================================================================
# Upstream tracking
# =============================================================================


def _set_tracking(repo: Repo, branch: str, remote: str) -> None:
    if branch not in repo.heads:
        raise BranchNotFoundError(branch)
    tracking = RemoteReference(repo, f"refs/remotes/{remote}/{branch}")
    repo.heads[branch].set_tracking_branch(tracking)
    logger.debug("upstream_set", branch=branch, upstream=f"{remote}/{branch}")


def set_upstream(repo: Repo, remote: str = DEFAULT_REMOTE) -> None:
    """Track ``<remote>/<current branch>`` from the current branch.

    Raises:
        GitError: If HEAD is detached.
    """
    if repo.head.is_detached:
        raise GitError("Cannot set upstream on a detached HEAD", operation="branch")
    _set_tracking(repo, repo.active_branch.name, remote)


def get_upstream(repo: Repo, branch: str | None = None) -> str | None:
    """Configured upstream of ``branch`` (current branch if None).

    Returns:
        The upstream as ``"<remote>/<branch>"``, or None when no upstream is
        configured or HEAD is detached.

    Raises:
        BranchNotFoundError: If ``branch`` names no local branch.
    """
    if branch is None:
        if repo.head.is_detached:
            return None
        head = repo.active_branch
    elif branch in repo.heads:
        head = repo.heads[branch]
    else:
        raise BranchNotFoundError(branch)

    tracking = head.tracking_branch()
    if tracking is None:
        return None
    return f"{tracking.remote_name}/{tracking.remote_head}"


def upstream_exists_on_remote(
    repo: Repo, *, credentials: CredentialChain | None = None
) -> bool:
    """Ask the remote whether the current branch's upstream still exists.

    Queries the remote directly, so a branch deleted on the server is noticed
    even while a stale remote-tracking ref is still present locally.

    Returns:
        False if no upstream is configured or the remote lacks the branch.
    """
    if repo.head.is_detached:
        return False
    tracking = repo.active_branch.tracking_branch()
    if tracking is None:
        return False

    remote = tracking.remote_name
    output = run_network_command(
        repo,
        remote,
        "ls-remote",
        ["--heads", remote, f"refs/heads/{tracking.remote_head}"],
        credentials=credentials,
    )
    return bool(output.strip())
