from __future__ import annotations

import click
from rich.markup import escape

from gitgrip.cli.common import cli_error_handler, get_cli_context, load_workspace
from gitgrip.cli.console import console
from gitgrip.cli.context import ExitCode
from gitgrip.exceptions import GitgripError
from gitgrip.git.cache import StatusCache
from gitgrip.git.remote import fetch as fetch_remote
from gitgrip.git.repository import GitRepository, clone_repo, current_branch
from gitgrip.git.safe_pull import safe_pull
from gitgrip.logging import get_logger
from gitgrip.manifest import RepoInfo

logger = get_logger(__name__)


def sync_repo(
    repo_info: RepoInfo,
    remote: str,
    *,
    fetch_only: bool,
    cache: StatusCache,
) -> tuple[bool, str]:
    """Clone, fetch or safe-pull one repository.

    Repositories that are not cloned yet are cloned on their default branch.

    Returns:
        Whether the repository synced, and a rich-markup line describing it.
    """
    name = escape(repo_info.name)
    handle = GitRepository(repo_info.absolute_path, remote=remote)
    if not handle.exists:
        try:
            clone_repo(
                repo_info.url, repo_info.absolute_path, repo_info.default_branch
            ).close()
        except GitgripError as e:
            logger.warning("clone_failed", repo=repo_info.name, error=e.message)
            return False, f"  [red]✗[/red] {name}: {escape(e.message)}"
        return True, f"  [green]✓[/green] {name}: cloned"

    try:
        with handle:
            branch = escape(current_branch(handle.repo))
            if fetch_only:
                fetch_remote(handle.repo, remote)
                line = f"  [green]✓[/green] {name} ([cyan]{branch}[/cyan])"
                return True, f"{line}: fetched"
            result = safe_pull(
                handle.repo, repo_info.default_branch, remote, cache=cache
            )
    except GitgripError as e:
        logger.warning("sync_failed", repo=repo_info.name, error=e.message)
        return False, f"  [red]✗[/red] {name}: {escape(e.message)}"

    if not result.pulled:
        message = escape(result.message or "pull failed")
        return False, f"  [yellow]![/yellow] {name}: {message}"

    line = f"  [green]✓[/green] {name} ([cyan]{branch}[/cyan]): pulled"
    if result.message:
        line += f" [dim]{escape(result.message)}[/dim]"
    return True, line


@click.command()
@click.option(
    "--fetch", "fetch_only", is_flag=True, help="Only fetch; do not update branches."
)
@click.pass_context
def sync(ctx: click.Context, fetch_only: bool) -> None:
    """Clone missing repositories and fetch or safely pull the rest.

    Without --fetch, each repository is pulled with fast-forward only. A
    branch whose upstream was deleted is switched back to the repository's
    default branch when that loses no local commits.

    Examples:
        gitgrip sync
        gitgrip sync --fetch
    """
    with cli_error_handler():
        workspace = load_workspace(ctx)
        cli_ctx = get_cli_context(ctx)
        repos = workspace.repos

        console.print(f"[blue]Syncing {len(repos)} repositories...[/blue]\n")
        synced = 0
        for repo_info in repos:
            ok, line = sync_repo(
                repo_info,
                cli_ctx.config.remote,
                fetch_only=fetch_only,
                cache=cli_ctx.cache,
            )
            synced += ok
            console.print(line)

        console.print()
        if synced == len(repos):
            console.print(
                f"[green]All {synced} repositories synced successfully.[/green]"
            )
            return
        console.print(
            f"[yellow]Synced {synced}/{len(repos)} repositories. "
            f"{len(repos) - synced} had issues.[/yellow]"
        )
        raise SystemExit(ExitCode.PARTIAL if synced else ExitCode.FAILURE)
