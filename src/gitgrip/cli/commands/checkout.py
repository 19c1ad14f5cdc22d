from __future__ import annotations

import click
from rich.markup import escape

from gitgrip.cli.common import cli_error_handler, get_cli_context, load_workspace
from gitgrip.cli.console import console
from gitgrip.cli.context import ExitCode
from gitgrip.exceptions import GitgripError
from gitgrip.git.branch import branch_exists, create_and_checkout
from gitgrip.git.branch import checkout as checkout_branch
from gitgrip.git.cache import StatusCache
from gitgrip.git.repository import GitRepository
from gitgrip.logging import get_logger

logger = get_logger(__name__)


def _has_branch(handle: GitRepository, branch: str) -> bool:
    try:
        return branch_exists(handle.repo, branch)
    except GitgripError:
        return False


def checkout_repo(
    handle: GitRepository, branch: str, *, create: bool, cache: StatusCache
) -> str:
    """Switch one repository to ``branch`` and say what happened.

    Returns:
        ``"created"`` or ``"switched"``.

    Raises:
        GitgripError: If the repository cannot be opened or switched.
    """
    if create and not branch_exists(handle.repo, branch):
        create_and_checkout(handle.repo, branch, cache)
        return "created"
    checkout_branch(handle.repo, branch, cache)
    return "switched"


@click.command()
@click.argument("branch")
@click.option(
    "-b", "create", is_flag=True, help="Create the branch at HEAD where it is missing."
)
@click.pass_context
def checkout(ctx: click.Context, branch: str, create: bool) -> None:
    """Check out BRANCH in every cloned repository.

    Without -b the branch must already exist locally; repositories that lack
    it are listed and left alone.

    Examples:
        gitgrip checkout main
        gitgrip checkout -b feature/login
    """
    with cli_error_handler():
        workspace = load_workspace(ctx)
        cli_ctx = get_cli_context(ctx)
        remote = cli_ctx.config.remote

        cloned = [
            (repo_info.name, GitRepository(repo_info.absolute_path, remote=remote))
            for repo_info in workspace.repos
        ]
        cloned = [(name, handle) for name, handle in cloned if handle.exists]

        targets = cloned
        if not create:
            targets = [(n, h) for n, h in cloned if _has_branch(h, branch)]
            missing = [n for n, h in cloned if (n, h) not in targets]
            if missing:
                console.print(
                    f"[yellow]Branch '{escape(branch)}' doesn't exist in "
                    f"{len(missing)} repos:[/yellow]"
                )
                for name in missing:
                    console.print(f"  [dim]{escape(name)}[/dim]")
                console.print()

        switched = 0
        for name, handle in targets:
            try:
                action = checkout_repo(
                    handle, branch, create=create, cache=cli_ctx.cache
                )
            except GitgripError as e:
                logger.warning("checkout_failed", repo=name, error=e.message)
                console.print(f"  [red]✗[/red] {escape(name)}: {escape(e.message)}")
                continue
            finally:
                handle.close()
            switched += 1
            console.print(f"  [green]✓[/green] {escape(name)}: {action}")

        for _, handle in cloned:
            handle.close()

        console.print()
        console.print(
            f"Switched {switched}/{len(cloned)} repos to "
            f"[cyan]{escape(branch)}[/cyan]"
        )
        if switched < len(cloned):
            raise SystemExit(ExitCode.PARTIAL if switched else ExitCode.FAILURE)
