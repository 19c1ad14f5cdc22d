"""Working-tree status for single repositories and whole workspaces.

Status is derived from three GitPython diffs: HEAD against the index
(staged), the index against the working tree (modified) and the list of
untracked files. :func:`status_entries` keeps the per-path status letters so
porcelain output can be rebuilt; :func:`get_status_info` flattens them into a
:class:`RepoStatusInfo` snapshot.
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from git import GitCommandError, Repo

from gitgrip.exceptions import GitgripError
from gitgrip.git.repository import convert_git_error, current_branch, open_repo
from gitgrip.logging import get_logger

if TYPE_CHECKING:
    from gitgrip.git.cache import StatusCache
    from gitgrip.manifest.models import RepoInfo

logger = get_logger(__name__)

__all__ = [
    "RepoStatus",
    "RepoStatusInfo",
    "StatusEntry",
    "get_all_repo_status",
    "get_ahead_behind",
    "get_changed_files",
    "get_repo_status",
    "get_status_info",
    "has_uncommitted_changes",
    "status_entries",
]

#: Status letter for an unchanged side of an entry
UNCHANGED = " "

#: Status letter git uses for untracked files (both columns)
UNTRACKED = "?"


@dataclass(frozen=True, slots=True)
class StatusEntry:
    """One path in ``git status --porcelain`` terms.

    Attributes:
        path: Path relative to the repository root.
        index: Index column letter (``A``, ``M``, ``D``, ``R``, ``T``, ``?``
            or a space).
        worktree: Working-tree column letter, same alphabet.
    """

    path: str
    index: str = UNCHANGED
    worktree: str = UNCHANGED

    @property
    def is_untracked(self) -> bool:
        return self.index == UNTRACKED

    @property
    def is_staged(self) -> bool:
        return self.index not in (UNCHANGED, UNTRACKED)

    @property
    def is_modified(self) -> bool:
        return self.worktree not in (UNCHANGED, UNTRACKED)

    def porcelain(self) -> str:
        """Format as a ``git status --porcelain`` line (without newline)."""
        return f"{self.index}{self.worktree} {self.path}"


@dataclass(frozen=True, slots=True)
class RepoStatusInfo:
    """Snapshot of one repository's branch and working-tree state.

    Attributes:
        current_branch: Checked-out branch (or detached-HEAD label).
        staged: Paths with changes in the index.
        modified: Paths with unstaged working-tree changes.
        untracked: Paths not known to git.
        ahead: Commits on HEAD not on the upstream.
        behind: Commits on the upstream not on HEAD.
        computed_at: Monotonic time the snapshot was taken. Excluded from
            equality so two snapshots of an unchanged repository compare equal.
    """

    current_branch: str
    staged: tuple[str, ...] = ()
    modified: tuple[str, ...] = ()
    untracked: tuple[str, ...] = ()
    ahead: int = 0
    behind: int = 0
    computed_at: float = field(default_factory=time.monotonic, compare=False)

    @property
    def is_clean(self) -> bool:
        """True if nothing is staged, modified or untracked."""
        return not (self.staged or self.modified or self.untracked)


@dataclass(frozen=True, slots=True)
class RepoStatus:
    """Display-oriented status of a workspace repository.

    When ``exists`` is False the repository has not been cloned: every count
    is zero and ``clean`` is True without anything having been checked.
    """

    name: str
    branch: str
    clean: bool
    staged: int
    modified: int
    untracked: int
    ahead: int
    behind: int
    exists: bool

    @classmethod
    def not_cloned(cls, name: str) -> RepoStatus:
        return cls(name, "", True, 0, 0, 0, 0, 0, exists=False)

    @classmethod
    def from_info(cls, name: str, info: RepoStatusInfo) -> RepoStatus:
        return cls(
            name=name,
            branch=info.current_branch,
            clean=info.is_clean,
            staged=len(info.staged),
            modified=len(info.modified),
            untracked=len(info.untracked),
            ahead=info.ahead,
            behind=info.behind,
            exists=True,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "branch": self.branch,
            "clean": self.clean,
            "staged": self.staged,
            "modified": self.modified,
            "untracked": self.untracked,
            "ahead": self.ahead,
            "behind": self.behind,
            "exists": self.exists,
        }


# =============================================================================
# Single repository
# =============================================================================


def _diff_path(diff: object) -> str:
    change_type = getattr(diff, "change_type", "M")
    a_path = getattr(diff, "a_path", None)
    b_path = getattr(diff, "b_path", None)
    if change_type == "D":
        return str(a_path or b_path)
    return str(b_path or a_path)


def status_entries(repo: Repo) -> list[StatusEntry]:
    """Compute per-path status entries, tracked paths first, each group sorted.

    Args:
        repo: Open repository.

    Returns:
        One entry per changed or untracked path.

    Raises:
        GitError: If git fails to produce a diff.
    """
    index_codes: dict[str, str] = {}
    worktree_codes: dict[str, str] = {}

    try:
        if repo.head.is_valid():
            for diff in repo.head.commit.diff():
                index_codes[_diff_path(diff)] = diff.change_type or "M"
        else:
            # Unborn HEAD: everything in the index is a new file
            for path, _stage in repo.index.entries:
                index_codes[str(path)] = "A"

        for diff in repo.index.diff(None):
            worktree_codes[_diff_path(diff)] = diff.change_type or "M"

        untracked = repo.untracked_files
    except GitCommandError as e:
        raise convert_git_error(e, "status") from e

    tracked = [
        StatusEntry(
            path,
            index_codes.get(path, UNCHANGED),
            worktree_codes.get(path, UNCHANGED),
        )
        for path in sorted(set(index_codes) | set(worktree_codes))
    ]
    return tracked + [
        StatusEntry(path, UNTRACKED, UNTRACKED) for path in sorted(untracked)
    ]


def get_ahead_behind(repo: Repo) -> tuple[int, int]:
    """Count commits ahead of and behind the configured upstream.

    Returns ``(0, 0)`` for a detached HEAD, a branch without upstream, or an
    upstream whose tracking ref is missing.
    """
    if repo.head.is_detached or not repo.head.is_valid():
        return 0, 0

    tracking = repo.active_branch.tracking_branch()
    if tracking is None or not tracking.is_valid():
        return 0, 0

    try:
        ahead = sum(1 for _ in repo.iter_commits(f"{tracking.path}..HEAD"))
        behind = sum(1 for _ in repo.iter_commits(f"HEAD..{tracking.path}"))
    except (GitCommandError, ValueError):
        return 0, 0
    return ahead, behind


def get_status_info(repo: Repo) -> RepoStatusInfo:
    """Compute a fresh status snapshot of ``repo``.

    Raises:
        GitError: If the branch or diffs cannot be read.
    """
    entries = status_entries(repo)
    ahead, behind = get_ahead_behind(repo)
    return RepoStatusInfo(
        current_branch=current_branch(repo),
        staged=tuple(e.path for e in entries if e.is_staged),
        modified=tuple(e.path for e in entries if e.is_modified),
        untracked=tuple(e.path for e in entries if e.is_untracked),
        ahead=ahead,
        behind=behind,
    )


def get_changed_files(repo: Repo) -> list[str]:
    """All staged, modified and untracked paths, each listed once."""
    return [entry.path for entry in status_entries(repo)]


def has_uncommitted_changes(repo: Repo) -> bool:
    return bool(status_entries(repo))


# =============================================================================
# Workspace
# =============================================================================


def get_repo_status(
    repo_info: RepoInfo, cache: StatusCache | None = None
) -> RepoStatus:
    """Status of one workspace repository for display.

    Never raises: a repository that cannot be opened or read is reported with
    branch ``"error"`` and zero counts.

    Args:
        repo_info: Manifest-derived repository identity.
        cache: Status cache to read through, if any.
    """
    path = repo_info.absolute_path
    if not path.exists():
        return RepoStatus.not_cloned(repo_info.name)

    try:
        if cache is not None:
            info = cache.get_cached(path)
        else:
            with open_repo(path) as repo:
                info = get_status_info(repo)
    except GitgripError as e:
        logger.warning("status_failed", repo=repo_info.name, error=e.message)
        return RepoStatus(repo_info.name, "error", True, 0, 0, 0, 0, 0, exists=True)

    return RepoStatus.from_info(repo_info.name, info)


def get_all_repo_status(
    repos: Iterable[RepoInfo], cache: StatusCache | None = None
) -> list[RepoStatus]:
    """Status of every repository, in the order given."""
    return [get_repo_status(repo_info, cache) for repo_info in repos]

