from __future__ import annotations

import click
from rich.markup import escape
from rich.table import Table

from gitgrip.cli.common import cli_error_handler, get_cli_context, load_workspace
from gitgrip.cli.console import console
from gitgrip.cli.output import format_json
from gitgrip.git.status import RepoStatus, get_all_repo_status

#: Branch column width before names are truncated
BRANCH_WIDTH = 20


def _changes(status: RepoStatus) -> str:
    if status.clean:
        return "[green]✓[/green]"
    indicators = []
    if status.staged:
        indicators.append(f"[green]+{status.staged}[/green]")
    if status.modified:
        indicators.append(f"[yellow]~{status.modified}[/yellow]")
    if status.untracked:
        indicators.append(f"[dim]?{status.untracked}[/dim]")
    return " ".join(indicators)


def _sync(status: RepoStatus) -> str:
    parts = []
    if status.ahead:
        parts.append(f"[green]↑{status.ahead}[/green]")
    if status.behind:
        parts.append(f"[red]↓{status.behind}[/red]")
    return " ".join(parts)


def _branch(name: str) -> str:
    if len(name) > BRANCH_WIDTH:
        name = name[: BRANCH_WIDTH - 3] + "..."
    return f"[cyan]{escape(name)}[/cyan]"


def render_status_table(statuses: list[RepoStatus]) -> Table:
    """Build the per-repository status table."""
    table = Table(title="Repository Status", title_justify="left", box=None)
    table.add_column("Repository", style="bold")
    table.add_column("Branch")
    table.add_column("Changes")
    table.add_column("Sync")

    for status in statuses:
        if not status.exists:
            name = f"[yellow]{escape(status.name)}[/yellow]"
            table.add_row(name, "[dim]not cloned[/dim]", "", "")
            continue
        table.add_row(
            escape(status.name), _branch(status.branch), _changes(status), _sync(status)
        )
    return table


def summarize(statuses: list[RepoStatus]) -> str:
    """One-line summary: cloned count, repos with changes, repos not cloned."""
    cloned = sum(1 for s in statuses if s.exists)
    dirty = sum(1 for s in statuses if s.exists and not s.clean)
    not_cloned = len(statuses) - cloned

    parts = [f"{cloned}/{len(statuses)} cloned"]
    if dirty:
        parts.append(f"[yellow]{dirty} with changes[/yellow]")
    if not_cloned:
        parts.append(f"[dim]{not_cloned} not cloned[/dim]")
    return " | ".join(parts)


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output status as JSON.")
@click.pass_context
def status(ctx: click.Context, as_json: bool) -> None:
    """Show branch and working-tree status of every repository.

    Examples:
        gitgrip status
        gitgrip status --json
    """
    with cli_error_handler():
        workspace = load_workspace(ctx)
        cache = get_cli_context(ctx).cache
        statuses = get_all_repo_status(workspace.repos, cache)

        if as_json:
            click.echo(format_json([s.to_dict() for s in statuses]))
            return

        console.print(render_status_table(statuses))
        console.print()
        console.print(f"  {summarize(statuses)}")

        branches = {s.branch for s in statuses if s.exists}
        if len(branches) > 1:
            console.print()
            console.print(
                "[yellow]  ⚠ Repositories are on different branches[/yellow]"
            )
