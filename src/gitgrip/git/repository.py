"""Repository handle and core helpers built on GitPython.

Every primitive in :mod:`gitgrip.git` operates on an already-open
``git.Repo``. This module is the only place repositories are opened:
:func:`open_repo` for one-off use and :class:`GitRepository` as a handle that
owns a path and opens it lazily on first use.

Example:
    ```python
    from gitgrip.git import GitRepository, current_branch

    handle = GitRepository("/work/api")
    print(current_branch(handle.repo))
    ```
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo
from git.exc import GitCommandNotFound
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from gitgrip.constants import DEFAULT_REMOTE, SHORT_SHA_LENGTH
from gitgrip.exceptions import (
    GitError,
    NotARepositoryError,
    OperationFailedError,
    RepositoryIOError,
    RepositoryNotFoundError,
)
from gitgrip.git.credentials import CredentialChain
from gitgrip.logging import get_logger

logger = get_logger(__name__)

__all__ = [
    "GitRepository",
    "clone_repo",
    "convert_git_error",
    "current_branch",
    "is_git_repo",
    "open_repo",
    "network_retry",
    "path_exists",
    "repo_root",
    "run_network_command",
]

# =============================================================================
# Constants
# =============================================================================

#: Maximum attempts for network operations
MAX_NETWORK_RETRIES: int = 3

#: stderr fragments that mark a transient network failure worth retrying
NETWORK_ERROR_PATTERNS: tuple[str, ...] = (
    "could not resolve host",
    "connection refused",
    "connection timed out",
    "connection reset",
    "network unreachable",
    "temporary failure",
    "unable to access",
    "early eof",
)


# =============================================================================
# Error conversion
# =============================================================================


def convert_git_error(exc: GitCommandError, operation: str) -> GitError:
    """Convert a GitPython exception into a gitgrip exception.

    Args:
        exc: GitPython exception.
        operation: Name of the git operation that failed.

    Returns:
        Appropriate gitgrip exception.
    """
    stderr = str(exc.stderr or exc.stdout or exc).strip()
    stderr_lower = stderr.lower()

    if "non-fast-forward" in stderr_lower or "not possible to fast-forward" in (
        stderr_lower
    ):
        return OperationFailedError(
            "Non-fast-forward merge required. Please merge manually.",
            operation=operation,
        )

    if "rejected" in stderr_lower:
        return OperationFailedError(
            f"Remote rejected {operation}: {stderr}", operation=operation
        )

    if "would be overwritten" in stderr_lower:
        return OperationFailedError(
            "Local changes would be overwritten. Commit or stash them first.",
            operation=operation,
        )

    return GitError(f"git {operation} failed: {stderr}", operation=operation)


# =============================================================================
# Network retry decorator
# =============================================================================


def _is_network_error(exc: BaseException) -> bool:
    """Check if exception is a transient network error that should be retried."""
    if not isinstance(exc, GitCommandError):
        return False
    stderr = str(exc.stderr or "").lower()
    return any(pattern in stderr for pattern in NETWORK_ERROR_PATTERNS)


network_retry = retry(
    retry=retry_if_exception(_is_network_error),
    stop=stop_after_attempt(MAX_NETWORK_RETRIES),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    reraise=True,
)


@network_retry
def _run_with_credentials(
    url: str,
    operation: Callable[[dict[str, str]], str],
    credentials: CredentialChain,
) -> str:
    return credentials.run(url, lambda env: operation(dict(env)))


def run_network_command(
    repo: Repo,
    remote: str,
    command: str,
    args: Sequence[str],
    *,
    credentials: CredentialChain | None = None,
) -> str:
    """Run a network git command against ``remote`` with credential fallback.

    Transient network failures are retried; rejected credentials fall through
    to the next provider in the chain.

    Args:
        repo: Open repository.
        remote: Remote name used to look up the URL for credential selection.
        command: Git subcommand (e.g. "fetch", "push", "ls-remote").
        args: Arguments for the subcommand.
        credentials: Credential chain; defaults to the standard fallback order.

    Returns:
        The command's stdout.

    Raises:
        GitError: If the remote does not exist or the command fails.
    """
    try:
        url = repo.remote(remote).url
    except ValueError as e:
        raise GitError(f"Remote not found: {remote}", operation=command) from e

    chain = credentials or CredentialChain()
    git_command = getattr(repo.git, command.replace("-", "_"))
    try:
        output = _run_with_credentials(
            url, lambda env: str(git_command(*args, env=env)), chain
        )
    except GitCommandError as e:
        raise convert_git_error(e, command) from e

    logger.debug("network_command_completed", command=command, remote=remote)
    return output


# =============================================================================
# Opening repositories
# =============================================================================


def path_exists(path: Path | str) -> bool:
    """Check if a path exists."""
    return Path(path).exists()


def open_repo(path: Path | str) -> Repo:
    """Open the git repository rooted at ``path``.

    Args:
        path: Repository working tree.

    Returns:
        An open GitPython ``Repo``.

    Raises:
        RepositoryNotFoundError: If the path does not exist.
        NotARepositoryError: If the path exists but is not a git repository.
        GitError: If git itself is unavailable.
        RepositoryIOError: If the path cannot be read.
    """
    resolved = Path(path)
    try:
        return Repo(resolved)
    except NoSuchPathError as e:
        raise RepositoryNotFoundError(
            f"Repository not found: {resolved}", path=resolved
        ) from e
    except InvalidGitRepositoryError as e:
        raise NotARepositoryError(
            f"Not a git repository: {resolved}", path=resolved
        ) from e
    except GitCommandNotFound as e:
        raise GitError("Git CLI not found. Please install git.") from e
    except OSError as e:
        raise RepositoryIOError(f"Cannot open {resolved}: {e}", path=resolved) from e


def is_git_repo(path: Path | str) -> bool:
    """Check if a path is a git repository."""
    try:
        open_repo(path)
    except GitError:
        return False
    return True


def repo_root(repo: Repo) -> Path:
    """Canonical working-tree path of an open repository.

    This is the key the status cache uses for the repository.
    """
    if repo.working_tree_dir is None:
        return Path(repo.git_dir).resolve()
    return Path(repo.working_tree_dir).resolve()


def clone_repo(
    url: str,
    path: Path | str,
    branch: str | None = None,
    *,
    credentials: CredentialChain | None = None,
) -> Repo:
    """Clone ``url`` into ``path``.

    Args:
        url: Remote URL.
        path: Destination directory.
        branch: Branch to check out after cloning (remote default if None).
        credentials: Credential chain; defaults to the standard fallback order.

    Returns:
        The freshly cloned repository.

    Raises:
        GitError: If the clone fails.
    """
    chain = credentials or CredentialChain()
    kwargs: dict[str, str] = {"branch": branch} if branch else {}

    @network_retry
    def _clone() -> Repo:
        return chain.run(
            url, lambda env: Repo.clone_from(url, str(path), env=dict(env), **kwargs)
        )

    try:
        repo = _clone()
    except GitCommandError as e:
        raise convert_git_error(e, "clone") from e

    logger.info("repository_cloned", url=url, path=str(path))
    return repo


# =============================================================================
# Branch identity
# =============================================================================


def current_branch(repo: Repo) -> str:
    """Get the checked-out branch name.

    Returns:
        The local branch name, or ``"(HEAD detached at <sha7>)"`` when HEAD
        points directly at a commit.

    Raises:
        GitError: If HEAD cannot be resolved at all.
    """
    head = repo.head
    if not head.is_detached:
        return repo.active_branch.name
    try:
        sha = head.commit.hexsha
    except ValueError as e:
        raise GitError("HEAD does not resolve to a commit", operation="head") from e
    return f"(HEAD detached at {sha[:SHORT_SHA_LENGTH]})"


# =============================================================================
# Repository handle
# =============================================================================


class GitRepository:
    """Handle owning the path of an on-disk repository.

    The repository is opened lazily on first access to :attr:`repo`, so a
    handle can be created for a path that has not been cloned yet.

    Example:
        ```python
        handle = GitRepository(workspace_root / "api")
        if handle.exists:
            branch = current_branch(handle.repo)
        ```
    """

    def __init__(self, path: Path | str, remote: str = DEFAULT_REMOTE) -> None:
        self._path = Path(path)
        self._remote = remote
        self._repo: Repo | None = None

    @property
    def path(self) -> Path:
        """Path to the repository root."""
        return self._path

    @property
    def remote(self) -> str:
        """Remote used by network operations on this repository."""
        return self._remote

    @property
    def exists(self) -> bool:
        """True if the repository directory exists on disk."""
        return path_exists(self._path)

    @property
    def is_open(self) -> bool:
        return self._repo is not None

    @property
    def repo(self) -> Repo:
        """Underlying GitPython ``Repo``, opened on first access.

        Raises:
            RepositoryNotFoundError: If the path does not exist.
            NotARepositoryError: If the path is not a git repository.
        """
        if self._repo is None:
            self._repo = open_repo(self._path)
        return self._repo

    def close(self) -> None:
        """Release the underlying repository, if it was opened."""
        if self._repo is not None:
            self._repo.close()
            self._repo = None

    def __enter__(self) -> GitRepository:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"GitRepository({str(self._path)!r})"
