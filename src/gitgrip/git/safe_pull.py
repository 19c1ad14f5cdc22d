"""Safe pull: update a branch, or recover to the default branch when lossless.

The reconciler re-derives everything from the repository on each call:

1. On the default branch: pull.
2. No upstream configured: do nothing and explain how to publish the branch.
3. Upstream configured but deleted on the remote:
   a. the branch has commits not in the default branch: do nothing, so no
      unpublished work is ever left behind;
   b. otherwise: check out the default branch and pull it.
4. Upstream present: pull.

:func:`safe_pull` never raises for git failures. Every failure is reported in
the returned :class:`SafePullResult`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from git import GitCommandError, Repo

from gitgrip.constants import DEFAULT_REMOTE
from gitgrip.exceptions import GitgripError
from gitgrip.git.branch import checkout, has_commits_ahead
from gitgrip.git.remote import get_upstream, pull, upstream_exists_on_remote
from gitgrip.git.repository import current_branch
from gitgrip.logging import get_logger

if TYPE_CHECKING:
    from gitgrip.git.cache import StatusCache
    from gitgrip.git.credentials import CredentialChain

logger = get_logger(__name__)

__all__ = ["PullState", "SafePullResult", "determine_pull_state", "safe_pull"]


class PullState(str, Enum):
    """Situation the reconciler found the repository in."""

    ON_DEFAULT = "on_default"
    NEVER_PUSHED = "never_pushed"
    UPSTREAM_DELETED_BLOCKED = "upstream_deleted_blocked"
    UPSTREAM_DELETED_RECOVERABLE = "upstream_deleted_recoverable"
    NORMAL_UPSTREAM = "normal_upstream"


@dataclass(frozen=True, slots=True)
class SafePullResult:
    """Outcome of one :func:`safe_pull` call.

    Attributes:
        pulled: True if the pull (or the recovery pull) succeeded.
        recovered: True if the reconciler switched to the default branch.
        message: Explanation for anything other than a plain successful pull.
    """

    pulled: bool
    recovered: bool = False
    message: str | None = None


def determine_pull_state(
    repo: Repo,
    default_branch: str,
    *,
    credentials: CredentialChain | None = None,
) -> PullState:
    """Classify the repository for :func:`safe_pull`.

    Raises:
        GitError: If the branch state or the remote cannot be read.
    """
    if current_branch(repo) == default_branch:
        return PullState.ON_DEFAULT
    if get_upstream(repo) is None:
        return PullState.NEVER_PUSHED
    if upstream_exists_on_remote(repo, credentials=credentials):
        return PullState.NORMAL_UPSTREAM
    if has_commits_ahead(repo, default_branch):
        return PullState.UPSTREAM_DELETED_BLOCKED
    return PullState.UPSTREAM_DELETED_RECOVERABLE


def _describe(exc: Exception) -> str:
    return exc.message if isinstance(exc, GitgripError) else str(exc)


def _pull_result(
    repo: Repo,
    remote: str,
    cache: StatusCache | None,
    credentials: CredentialChain | None,
) -> SafePullResult:
    try:
        pull(repo, remote, cache=cache, credentials=credentials)
    except (GitgripError, GitCommandError, ValueError) as e:
        return SafePullResult(pulled=False, message=_describe(e))
    return SafePullResult(pulled=True)


def safe_pull(
    repo: Repo,
    default_branch: str,
    remote: str = DEFAULT_REMOTE,
    *,
    cache: StatusCache | None = None,
    credentials: CredentialChain | None = None,
) -> SafePullResult:
    """Pull the current branch, recovering to ``default_branch`` when safe.

    Args:
        repo: Open repository.
        default_branch: Workspace default branch for this repository.
        remote: Remote to pull from.
        cache: Status cache invalidated on checkout and pull.
        credentials: Credential chain override for network calls.

    Returns:
        The outcome. Failures are reported with ``pulled=False`` and a message.

    Example:
        ```python
        result = safe_pull(repo, "main")
        if result.recovered:
            print(result.message)
        ```
    """
    try:
        branch = current_branch(repo)
        state = determine_pull_state(repo, default_branch, credentials=credentials)
    except (GitgripError, GitCommandError, ValueError) as e:
        message = _describe(e)
        logger.warning("safe_pull_state_failed", error=message)
        return SafePullResult(pulled=False, message=message)

    log = logger.bind(branch=branch, default_branch=default_branch, state=state.value)
    log.debug("safe_pull_state")

    if state in (PullState.ON_DEFAULT, PullState.NORMAL_UPSTREAM):
        return _pull_result(repo, remote, cache, credentials)

    if state is PullState.NEVER_PUSHED:
        return SafePullResult(
            pulled=False,
            message=(
                f"Branch '{branch}' has no upstream configured. "
                f"Push with 'git push -u {remote} {branch}' first, or checkout "
                f"'{default_branch}' manually."
            ),
        )

    if state is PullState.UPSTREAM_DELETED_BLOCKED:
        log.info("safe_pull_blocked")
        return SafePullResult(
            pulled=False,
            message=(
                f"Branch '{branch}' has local commits not in '{default_branch}'. "
                "Push your changes or merge manually."
            ),
        )

    try:
        checkout(repo, default_branch, cache=cache)
    except GitgripError as e:
        return SafePullResult(pulled=False, message=e.message)

    log.info("safe_pull_recovered")
    result = _pull_result(repo, remote, cache, credentials)
    if not result.pulled:
        return SafePullResult(pulled=False, recovered=True, message=result.message)
    return SafePullResult(
        pulled=True,
        recovered=True,
        message=(
            f"Switched from '{branch}' to '{default_branch}' "
            "(upstream branch was deleted)"
        ),
    )
