"""Run one command across every repository of a workspace.

Per repository the executor either answers the command from the repository
directly (see :mod:`gitgrip.forall.interception`) or runs it through the
shell with the repository as working directory. Failures are isolated per
repository: one failing or crashing repository never stops the others.

Sequential mode prints each repository's output as soon as it finishes, in
manifest order. Parallel mode starts one task per repository and prints the
collected results once all tasks are done, in the order they completed.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field

from git import GitCommandError

from gitgrip.constants import (
    DEFAULT_REMOTE,
    ENV_REPO_BRANCH,
    ENV_REPO_NAME,
    ENV_REPO_PATH,
    ENV_REPO_URL,
)
from gitgrip.exceptions import GitgripError
from gitgrip.forall.interception import (
    GitCommand,
    execute_git_command,
    parse_git_command,
)
from gitgrip.forall.report import ForallReporter
from gitgrip.git.cache import StatusCache
from gitgrip.git.repository import open_repo
from gitgrip.git.status import get_status_info
from gitgrip.logging import get_logger
from gitgrip.manifest.models import RepoInfo
from gitgrip.runners.command import ShellRunner

logger = get_logger(__name__)

__all__ = [
    "ForallExecutor",
    "ForallOutcome",
    "ForallSummary",
    "has_changes",
    "repo_environment",
    "run_forall",
]


@dataclass(frozen=True, slots=True)
class ForallOutcome:
    """Result of running the command in one repository.

    Attributes:
        repo: Repository name.
        success: True if the command (or its fast path) succeeded.
        stdout: Captured standard output.
        stderr: Captured standard error.
        returncode: Shell exit code (0 for the fast path).
        intercepted: True if the output came from the fast path.
        error: Set when the command could not be run at all.
    """

    repo: str
    success: bool
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0
    intercepted: bool = False
    error: str | None = None


@dataclass(frozen=True, slots=True)
class ForallSummary:
    """Aggregate result of a forall run."""

    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    outcomes: tuple[ForallOutcome, ...] = field(default_factory=tuple)

    @property
    def all_succeeded(self) -> bool:
        return self.failed == 0

    @property
    def message(self) -> str:
        """One-line summary suitable for the end of a run."""
        if self.failed == 0:
            suffix = f", {self.skipped} skipped" if self.skipped else ""
            return f"Command completed in {self.succeeded} repo(s){suffix}"
        return (
            f"{self.succeeded} succeeded, {self.failed} failed, "
            f"{self.skipped} skipped"
        )


def repo_environment(repo_info: RepoInfo) -> dict[str, str]:
    """Environment variables describing ``repo_info`` to the spawned command."""
    return {
        ENV_REPO_NAME: repo_info.name,
        ENV_REPO_PATH: str(repo_info.absolute_path),
        ENV_REPO_URL: repo_info.url,
        ENV_REPO_BRANCH: repo_info.default_branch,
    }


def has_changes(repo_info: RepoInfo, cache: StatusCache | None = None) -> bool:
    """True if the repository has staged, modified or untracked files.

    A repository that cannot be opened or read counts as unchanged.
    """
    try:
        if cache is not None:
            info = cache.get_cached(repo_info.absolute_path)
        else:
            with open_repo(repo_info.absolute_path) as repo:
                info = get_status_info(repo)
    except GitgripError as e:
        logger.debug("has_changes_failed", repo=repo_info.name, error=e.message)
        return False
    return not info.is_clean


class ForallExecutor:
    """Run a command in each eligible repository.

    Attributes:
        command: Literal command line.
        git_command: Interceptable form of ``command``, if any.

    Example:
        ```python
        executor = ForallExecutor("git status --porcelain", changed_only=True)
        summary = await executor.run(repos)
        print(summary.message)
        ```
    """

    def __init__(
        self,
        command: str,
        *,
        intercept: bool = True,
        changed_only: bool = False,
        remote: str = DEFAULT_REMOTE,
        cache: StatusCache | None = None,
        runner: ShellRunner | None = None,
        reporter: ForallReporter | None = None,
    ) -> None:
        self.command = command
        self.git_command: GitCommand | None = (
            parse_git_command(command) if intercept else None
        )
        self._changed_only = changed_only
        self._remote = remote
        self._cache = cache
        self._runner = runner or ShellRunner()
        self._reporter = reporter

    # -------------------------------------------------------------------------
    # Eligibility
    # -------------------------------------------------------------------------

    def _eligible(self, repos: Sequence[RepoInfo]) -> tuple[list[RepoInfo], int]:
        eligible: list[RepoInfo] = []
        skipped = 0
        for repo_info in repos:
            if not repo_info.absolute_path.exists():
                logger.info(
                    "forall_repo_skipped", repo=repo_info.name, reason="not_cloned"
                )
                if self._reporter is not None:
                    self._reporter.not_cloned(repo_info.name)
                skipped += 1
                continue
            if self._changed_only and not has_changes(repo_info, self._cache):
                skipped += 1
                continue
            eligible.append(repo_info)
        return eligible, skipped

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def _fast_path(self, repo_info: RepoInfo, command: GitCommand) -> str:
        repo = open_repo(repo_info.absolute_path)
        try:
            return execute_git_command(repo, command, self._remote)
        finally:
            repo.close()

    async def _execute(self, repo_info: RepoInfo) -> ForallOutcome:
        if self.git_command is not None:
            try:
                output = await asyncio.to_thread(
                    self._fast_path, repo_info, self.git_command
                )
            except (GitgripError, GitCommandError, ValueError) as e:
                logger.debug(
                    "forall_fast_path_fallback", repo=repo_info.name, error=str(e)
                )
            else:
                return ForallOutcome(
                    repo_info.name, True, stdout=output, intercepted=True
                )

        result = await self._runner.run(
            self.command,
            cwd=repo_info.absolute_path,
            env=repo_environment(repo_info),
        )
        if self._cache is not None:
            self._cache.invalidate(repo_info.absolute_path)
        if not result.success:
            logger.info(
                "forall_repo_failed",
                repo=repo_info.name,
                reason=result.failure_reason,
                duration_ms=result.duration_ms,
            )

        return ForallOutcome(
            repo=repo_info.name,
            success=result.success,
            stdout=result.stdout,
            stderr=result.stderr,
            returncode=result.returncode,
        )

    async def _execute_isolated(self, repo_info: RepoInfo) -> ForallOutcome:
        """Run :meth:`_execute`, turning any exception into a failed outcome."""
        try:
            return await self._execute(repo_info)
        except Exception as e:  # noqa: BLE001
            logger.error(
                "forall_repo_crashed",
                repo=repo_info.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return ForallOutcome(repo_info.name, False, returncode=-1, error=str(e))

    def _report(self, outcome: ForallOutcome) -> None:
        if self._reporter is None:
            return
        self._reporter.header(outcome.repo)
        self._reporter.outcome(outcome)

    async def run_sequential(self, repos: Sequence[RepoInfo]) -> ForallSummary:
        outcomes: list[ForallOutcome] = []
        skipped = 0
        for repo_info in repos:
            eligible, skip = self._eligible([repo_info])
            skipped += skip
            if not eligible:
                continue
            if self._reporter is not None:
                self._reporter.header(repo_info.name)
            outcome = await self._execute_isolated(repo_info)
            if self._reporter is not None:
                self._reporter.outcome(outcome)
            outcomes.append(outcome)
        return self._summarize(outcomes, skipped)

    async def run_parallel(self, repos: Sequence[RepoInfo]) -> ForallSummary:
        eligible, skipped = self._eligible(repos)
        tasks = [
            asyncio.ensure_future(self._execute_isolated(repo_info))
            for repo_info in eligible
        ]
        outcomes = [await task for task in asyncio.as_completed(tasks)]
        for outcome in outcomes:
            self._report(outcome)
        return self._summarize(outcomes, skipped)

    async def run(
        self, repos: Sequence[RepoInfo], *, parallel: bool = False
    ) -> ForallSummary:
        """Run the command across ``repos`` and report the aggregate result.

        Args:
            repos: Repositories in manifest order.
            parallel: Run one concurrent task per repository.

        Returns:
            Counts and per-repository outcomes. Never raises for a
            repository-level failure.
        """
        logger.info(
            "forall_started",
            command=self.command,
            repos=len(repos),
            parallel=parallel,
            intercepted=self.git_command is not None,
        )
        if parallel:
            summary = await self.run_parallel(repos)
        else:
            summary = await self.run_sequential(repos)

        if self._reporter is not None:
            self._reporter.summary(summary)
        logger.info(
            "forall_completed",
            succeeded=summary.succeeded,
            failed=summary.failed,
            skipped=summary.skipped,
        )
        return summary

    @staticmethod
    def _summarize(outcomes: list[ForallOutcome], skipped: int) -> ForallSummary:
        succeeded = sum(1 for outcome in outcomes if outcome.success)
        return ForallSummary(
            succeeded=succeeded,
            failed=len(outcomes) - succeeded,
            skipped=skipped,
            outcomes=tuple(outcomes),
        )


async def run_forall(
    repos: Sequence[RepoInfo],
    command: str,
    *,
    parallel: bool = False,
    changed_only: bool = False,
    intercept: bool = True,
    remote: str = DEFAULT_REMOTE,
    cache: StatusCache | None = None,
    reporter: ForallReporter | None = None,
) -> ForallSummary:
    """Convenience wrapper building a :class:`ForallExecutor` and running it."""
    executor = ForallExecutor(
        command,
        intercept=intercept,
        changed_only=changed_only,
        remote=remote,
        cache=cache,
        reporter=reporter,
    )
    return await executor.run(repos, parallel=parallel)
