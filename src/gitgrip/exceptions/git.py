from __future__ import annotations

from pathlib import Path

from gitgrip.exceptions.base import GitgripError


class GitError(GitgripError):
    """Exception for git operation failures.

    Raised directly when the underlying git library fails (object store,
    network, or a git command exiting non-zero). The more specific
    subclasses below describe expected failure categories.

    Attributes:
        message: Human-readable error message.
        operation: Git operation that failed (e.g., "fetch", "checkout").
    """

    def __init__(self, message: str, operation: str | None = None) -> None:
        """Initialize the GitError.

        Args:
            message: Human-readable error message.
            operation: Git operation that failed.
        """
        self.operation = operation
        super().__init__(message)


class RepositoryNotFoundError(GitError):
    """Exception raised when a repository path does not exist.

    Attributes:
        message: Human-readable error message.
        path: The missing path.
    """

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        self.path = path
        super().__init__(message, operation="open")


class NotARepositoryError(GitError):
    """Exception raised when a path exists but holds no git metadata.

    Attributes:
        message: Human-readable error message.
        path: Directory that is not a repo.
    """

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        self.path = path
        super().__init__(message, operation="open")


class BranchNotFoundError(GitError):
    """Exception raised when a named branch does not exist.

    Attributes:
        message: Human-readable error message.
        branch_name: The branch that could not be found.
    """

    def __init__(self, branch_name: str, message: str | None = None) -> None:
        self.branch_name = branch_name
        super().__init__(message or f"Branch not found: {branch_name}")


class RepositoryIOError(GitError):
    """Exception raised for filesystem failures while touching a repository."""

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        self.path = path
        super().__init__(message, operation="io")


class OperationFailedError(GitError):
    """Exception raised when an operation is refused by policy.

    Examples are deleting the checked-out branch, deleting an unmerged
    branch without force, or pulling a branch that has diverged.

    Attributes:
        message: Human-readable error message.
        reason: Short description of why the operation was refused.
    """

    def __init__(self, reason: str, operation: str | None = None) -> None:
        self.reason = reason
        super().__init__(f"Operation failed: {reason}", operation=operation)
