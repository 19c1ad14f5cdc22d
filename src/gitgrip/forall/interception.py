"""Answer common read-only git commands without spawning git.

Only a fixed table of exact command lines is recognised. The command string is
split on whitespace and compared word for word, so quoting, aliases and extra
flags all fall through to the shell. Anything that uses a pipe or redirection
is never intercepted, since its output has to go through a real shell.

The emulated output mirrors what git prints for the same command closely
enough for scripts that read it line by line. Untracked directories are
collapsed to a single ``dir/`` line, as in git's default untracked mode.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath

from git import Repo

from gitgrip.constants import DEFAULT_REMOTE
from gitgrip.exceptions import GitError, OperationFailedError
from gitgrip.git.branch import list_local_branches, list_remote_branches
from gitgrip.git.repository import current_branch
from gitgrip.git.status import UNTRACKED, StatusEntry, status_entries

__all__ = [
    "DiffStatCommand",
    "GetBranchCommand",
    "GetHeadCommand",
    "GitCommand",
    "ListBranchesCommand",
    "StatusCommand",
    "execute_git_command",
    "parse_git_command",
]

#: Characters that hand a command line to the shell for composition
SHELL_OPERATORS = frozenset("|<>")

CLEAN_STATUS = "nothing to commit, working tree clean\n"


@dataclass(frozen=True, slots=True)
class StatusCommand:
    """``git status``; ``porcelain`` also covers ``-s`` and ``--short``."""

    porcelain: bool = False


@dataclass(frozen=True, slots=True)
class ListBranchesCommand:
    """``git branch``, with remote-tracking branches when ``all`` is set."""

    all: bool = False


@dataclass(frozen=True, slots=True)
class GetHeadCommand:
    """``git rev-parse HEAD``."""


@dataclass(frozen=True, slots=True)
class GetBranchCommand:
    """``git rev-parse --abbrev-ref HEAD``."""


@dataclass(frozen=True, slots=True)
class DiffStatCommand:
    """``git diff --stat``. Recognised but always run through the shell."""


GitCommand = (
    StatusCommand
    | ListBranchesCommand
    | GetHeadCommand
    | GetBranchCommand
    | DiffStatCommand
)

_INTERCEPTED: dict[tuple[str, ...], GitCommand] = {
    ("git", "status"): StatusCommand(porcelain=False),
    ("git", "status", "--porcelain"): StatusCommand(porcelain=True),
    ("git", "status", "-s"): StatusCommand(porcelain=True),
    ("git", "status", "--short"): StatusCommand(porcelain=True),
    ("git", "branch"): ListBranchesCommand(all=False),
    ("git", "branch", "-a"): ListBranchesCommand(all=True),
    ("git", "branch", "--all"): ListBranchesCommand(all=True),
    ("git", "rev-parse", "HEAD"): GetHeadCommand(),
    ("git", "rev-parse", "--abbrev-ref", "HEAD"): GetBranchCommand(),
    ("git", "diff", "--stat"): DiffStatCommand(),
}


def parse_git_command(command: str) -> GitCommand | None:
    """Classify a command line as an interceptable git command.

    Args:
        command: Literal command string as given to ``gitgrip forall``.

    Returns:
        The matching command, or None if the shell must run it.

    Example:
        >>> parse_git_command("git status --porcelain")
        StatusCommand(porcelain=True)
        >>> parse_git_command("git status | grep foo") is None
        True
    """
    if any(char in SHELL_OPERATORS for char in command):
        return None
    return _INTERCEPTED.get(tuple(command.split()))


# =============================================================================
# Output emulation
# =============================================================================


def collapse_untracked(repo: Repo, entries: list[StatusEntry]) -> list[StatusEntry]:
    """Report wholly untracked directories once, as ``dir/``, like git does.

    A directory is wholly untracked when no index entry lives under it. The
    shallowest such ancestor of an untracked file replaces the file.
    """
    tracked_dirs = {
        str(parent)
        for path, _stage in repo.index.entries
        for parent in PurePosixPath(path).parents
    }
    tracked: list[StatusEntry] = []
    untracked: set[str] = set()
    for entry in entries:
        if not entry.is_untracked:
            tracked.append(entry)
            continue
        shown = entry.path
        for parent in reversed(PurePosixPath(entry.path).parents):
            if str(parent) != "." and str(parent) not in tracked_dirs:
                shown = f"{parent}/"
                break
        untracked.add(shown)
    return tracked + [
        StatusEntry(path, UNTRACKED, UNTRACKED) for path in sorted(untracked)
    ]


def format_porcelain(entries: list[StatusEntry]) -> str:
    return "".join(f"{entry.porcelain()}\n" for entry in entries)


def format_status(entries: list[StatusEntry]) -> str:
    """Human ``git status`` body: staged, unstaged and untracked groups."""
    staged = [e.path for e in entries if e.is_staged]
    modified = [e.path for e in entries if e.is_modified]
    untracked = [e.path for e in entries if e.is_untracked]
    groups = [
        ("Changes to be committed:", staged),
        ("Changes not staged for commit:", modified),
        ("Untracked files:", untracked),
    ]
    blocks = [
        header + "\n" + "".join(f"  {path}\n" for path in paths)
        for header, paths in groups
        if paths
    ]
    if not blocks:
        return CLEAN_STATUS
    return "\n".join(blocks)


def format_branches(repo: Repo, include_remote: bool, remote: str) -> str:
    lines: list[str] = []
    if repo.head.is_detached:
        lines.append(f"* {current_branch(repo)}")
        active = None
    else:
        active = repo.active_branch.name

    for name in sorted(list_local_branches(repo)):
        marker = "* " if name == active else "  "
        lines.append(f"{marker}{name}")

    if include_remote:
        for name in sorted(list_remote_branches(repo, remote)):
            lines.append(f"  remotes/{remote}/{name}")

    return "".join(f"{line}\n" for line in lines)


def execute_git_command(
    repo: Repo, command: GitCommand, remote: str = DEFAULT_REMOTE
) -> str:
    """Produce the output of ``command`` from the repository directly.

    Raises:
        OperationFailedError: For commands without a library implementation.
        GitError: If the repository cannot be read.
    """
    if isinstance(command, StatusCommand):
        entries = collapse_untracked(repo, status_entries(repo))
        if command.porcelain:
            return format_porcelain(entries)
        return format_status(entries)

    if isinstance(command, ListBranchesCommand):
        return format_branches(repo, command.all, remote)

    if isinstance(command, GetHeadCommand):
        try:
            return f"{repo.head.commit.hexsha}\n"
        except ValueError as e:
            raise GitError(
                "HEAD does not point at a commit", operation="rev-parse"
            ) from e

    if isinstance(command, GetBranchCommand):
        if repo.head.is_detached:
            return "HEAD\n"
        return f"{repo.active_branch.name}\n"

    raise OperationFailedError(
        f"{type(command).__name__} has no library implementation",
        operation="forall",
    )
