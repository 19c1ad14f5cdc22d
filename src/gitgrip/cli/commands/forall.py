from __future__ import annotations

import click

from gitgrip.cli.common import cli_error_handler, get_cli_context, load_workspace
from gitgrip.cli.console import console, err_console
from gitgrip.cli.context import ExitCode, async_command
from gitgrip.forall import ForallReporter, run_forall


@click.command()
@click.option("-c", "--command", required=True, help="Command line to run.")
@click.option(
    "--parallel/--sequential",
    default=None,
    help="Run in all repositories concurrently (default from config).",
)
@click.option(
    "--changed-only", is_flag=True, help="Only repositories with local changes."
)
@click.option(
    "--no-intercept",
    is_flag=True,
    help="Always spawn the command, even for recognised git commands.",
)
@click.pass_context
@async_command
async def forall(
    ctx: click.Context,
    command: str,
    parallel: bool | None,
    changed_only: bool,
    no_intercept: bool,
) -> None:
    """Run COMMAND in every cloned repository.

    The command runs through the shell with the repository as working
    directory and REPO_NAME, REPO_PATH, REPO_URL and REPO_BRANCH set.
    Simple read-only git commands such as ``git status`` are answered
    without spawning git unless --no-intercept is given.

    Examples:
        gitgrip forall -c "git status --porcelain"
        gitgrip forall -c "make test" --parallel
        gitgrip forall -c "git log -1 --oneline" --changed-only
    """
    with cli_error_handler():
        workspace = load_workspace(ctx)
        cli_ctx = get_cli_context(ctx)
        config = cli_ctx.config

        summary = await run_forall(
            workspace.repos,
            command,
            parallel=config.forall.parallel if parallel is None else parallel,
            changed_only=changed_only,
            intercept=config.forall.intercept_git and not no_intercept,
            remote=config.remote,
            cache=cli_ctx.cache,
            reporter=ForallReporter(console, err_console),
        )
        if summary.failed:
            raise SystemExit(ExitCode.FAILURE)
