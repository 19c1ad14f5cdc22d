"""Local branch primitives.

All functions take an open ``git.Repo``. Functions that move HEAD or rewrite
the working tree accept an optional :class:`~gitgrip.git.cache.StatusCache`
and invalidate the repository's entry when they succeed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from git import GitCommandError, Repo
from git.exc import BadName, BadObject
from git.objects import Commit

from gitgrip.constants import DEFAULT_REMOTE
from gitgrip.exceptions import BranchNotFoundError, GitError, OperationFailedError
from gitgrip.git.repository import convert_git_error, current_branch, repo_root
from gitgrip.logging import get_logger

if TYPE_CHECKING:
    from gitgrip.git.cache import StatusCache

logger = get_logger(__name__)

__all__ = [
    "branch_exists",
    "checkout",
    "commits_between",
    "create_and_checkout",
    "delete_local_branch",
    "has_commits_ahead",
    "is_merged",
    "list_local_branches",
    "list_remote_branches",
    "remote_branch_exists",
    "reset_hard",
    "resolve_commit",
]


def resolve_commit(repo: Repo, rev: str) -> Commit:
    """Resolve a branch name or revision to a commit.

    Raises:
        BranchNotFoundError: If ``rev`` does not name a commit.
    """
    try:
        return repo.commit(rev)
    except (BadName, BadObject, ValueError, IndexError) as e:
        raise BranchNotFoundError(rev) from e


def _head_commit(repo: Repo) -> Commit:
    try:
        return repo.head.commit
    except ValueError as e:
        raise GitError("HEAD does not point at a commit", operation="head") from e


def _invalidate(repo: Repo, cache: StatusCache | None) -> None:
    if cache is not None:
        cache.invalidate(repo_root(repo))


# =============================================================================
# Existence and listing
# =============================================================================


def branch_exists(repo: Repo, name: str) -> bool:
    """Check if a local branch exists."""
    return name in repo.heads


def remote_branch_exists(repo: Repo, name: str, remote: str = DEFAULT_REMOTE) -> bool:
    """Check if a remote-tracking branch ``<remote>/<name>`` exists locally."""
    try:
        refs = repo.remote(remote).refs
    except ValueError:
        return False
    return any(ref.remote_head == name for ref in refs)


def list_local_branches(repo: Repo) -> list[str]:
    return [head.name for head in repo.heads]


def list_remote_branches(repo: Repo, remote: str = DEFAULT_REMOTE) -> list[str]:
    """Branch names known for ``remote``, without the remote prefix."""
    try:
        refs = repo.remote(remote).refs
    except ValueError:
        return []
    return [ref.remote_head for ref in refs if ref.remote_head != "HEAD"]


# =============================================================================
# Checkout
# =============================================================================


def create_and_checkout(
    repo: Repo, name: str, cache: StatusCache | None = None
) -> None:
    """Create branch ``name`` at the current HEAD commit and check it out.

    Raises:
        GitError: If HEAD has no commit or the branch cannot be created.
    """
    start = _head_commit(repo)
    try:
        head = repo.create_head(name, start)
        head.checkout()
    except GitCommandError as e:
        raise convert_git_error(e, "checkout") from e
    except OSError as e:
        raise GitError(f"Cannot create branch {name}: {e}", operation="branch") from e

    _invalidate(repo, cache)
    logger.info("branch_created", branch=name, commit=start.hexsha)


def checkout(repo: Repo, name: str, cache: StatusCache | None = None) -> None:
    """Check out an existing local branch.

    Raises:
        BranchNotFoundError: If no local branch ``name`` exists.
        OperationFailedError: If local changes would be overwritten.
    """
    if not branch_exists(repo, name):
        raise BranchNotFoundError(name)

    try:
        repo.heads[name].checkout()
    except GitCommandError as e:
        raise convert_git_error(e, "checkout") from e

    _invalidate(repo, cache)
    logger.info("branch_checked_out", branch=name)


def reset_hard(repo: Repo, target: str, cache: StatusCache | None = None) -> None:
    """Reset HEAD, index and working tree to ``target``.

    Raises:
        BranchNotFoundError: If ``target`` does not resolve to a commit.
    """
    commit = resolve_commit(repo, target)
    try:
        repo.head.reset(commit, index=True, working_tree=True)
    except GitCommandError as e:
        raise convert_git_error(e, "reset") from e

    _invalidate(repo, cache)
    logger.info("reset_hard", target=target, commit=commit.hexsha)


# =============================================================================
# Merge state
# =============================================================================


def is_merged(repo: Repo, branch: str, target: str) -> bool:
    """True if ``branch`` is fully merged into ``target``.

    A branch is merged when the merge base of the two tips is the branch tip
    itself.

    Raises:
        BranchNotFoundError: If either name does not resolve.
    """
    branch_tip = resolve_commit(repo, branch)
    target_tip = resolve_commit(repo, target)
    try:
        bases = repo.merge_base(target_tip, branch_tip)
    except GitCommandError as e:
        raise convert_git_error(e, "merge-base") from e
    return bool(bases) and bases[0] == branch_tip


def delete_local_branch(repo: Repo, name: str, force: bool = False) -> None:
    """Delete a local branch.

    The checked-out branch is never deleted. Without ``force`` the branch must
    also be fully merged into HEAD.

    Raises:
        BranchNotFoundError: If the branch does not exist.
        OperationFailedError: If deletion is refused.
    """
    if not branch_exists(repo, name):
        raise BranchNotFoundError(name)

    if current_branch(repo) == name:
        raise OperationFailedError(
            "Cannot delete the currently checked out branch", operation="branch"
        )

    if not force:
        head = _head_commit(repo)
        tip = repo.heads[name].commit
        try:
            bases = repo.merge_base(head, tip)
        except GitCommandError as e:
            raise convert_git_error(e, "merge-base") from e
        if not bases or bases[0] != tip:
            raise OperationFailedError(
                f"Branch '{name}' is not fully merged. Use force to delete anyway.",
                operation="branch",
            )

    try:
        repo.delete_head(name, force=True)
    except GitCommandError as e:
        raise convert_git_error(e, "branch") from e
    logger.info("branch_deleted", branch=name, force=force)


def commits_between(repo: Repo, base: str, head: str | None = None) -> list[str]:
    """Commits reachable from ``head`` but not from ``base``, newest first.

    Args:
        repo: Open repository.
        base: Branch or revision to exclude.
        head: Branch or revision to walk from (current branch if None).

    Returns:
        Full hex commit ids.

    Raises:
        BranchNotFoundError: If either revision does not resolve.
    """
    head_rev = head if head is not None else current_branch(repo)
    if head is None and repo.head.is_detached:
        head_rev = "HEAD"
    base_commit = resolve_commit(repo, base)
    head_commit = resolve_commit(repo, head_rev)
    try:
        commits = repo.iter_commits(f"{base_commit.hexsha}..{head_commit.hexsha}")
        return [commit.hexsha for commit in commits]
    except GitCommandError as e:
        raise convert_git_error(e, "rev-list") from e


def has_commits_ahead(repo: Repo, base: str, head: str | None = None) -> bool:
    """True if ``head`` (current branch if None) has commits not in ``base``."""
    return bool(commits_between(repo, base, head))
