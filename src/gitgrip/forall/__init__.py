"""Fan-out execution of one command across workspace repositories."""

from __future__ import annotations

from gitgrip.forall.executor import (
    ForallExecutor,
    ForallOutcome,
    ForallSummary,
    has_changes,
    repo_environment,
    run_forall,
)
from gitgrip.forall.interception import (
    DiffStatCommand,
    GetBranchCommand,
    GetHeadCommand,
    GitCommand,
    ListBranchesCommand,
    StatusCommand,
    execute_git_command,
    parse_git_command,
)
from gitgrip.forall.report import ForallReporter

__all__ = [
    "DiffStatCommand",
    "ForallExecutor",
    "ForallOutcome",
    "ForallReporter",
    "ForallSummary",
    "GetBranchCommand",
    "GetHeadCommand",
    "GitCommand",
    "ListBranchesCommand",
    "StatusCommand",
    "execute_git_command",
    "has_changes",
    "parse_git_command",
    "repo_environment",
    "run_forall",
]
