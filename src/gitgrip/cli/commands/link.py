from __future__ import annotations

from pathlib import Path

import click
from rich.markup import escape

from gitgrip.cli.common import cli_error_handler, load_workspace
from gitgrip.cli.console import console
from gitgrip.cli.context import ExitCode
from gitgrip.manifest.links import LinkResult, apply_links


def _describe(result: LinkResult, root: Path) -> str:
    mark = "[green]✓[/green]" if result.success else "[red]✗[/red]"
    dest = result.dest
    if dest.is_relative_to(root.resolve()):
        dest = dest.relative_to(root.resolve())
    line = f"  {mark} {result.repo} {result.kind} {escape(str(dest))}"
    if result.message:
        line += f": {escape(result.message)}"
    return line


@click.command()
@click.pass_context
def link(ctx: click.Context) -> None:
    """Apply the copyfile and linkfile rules of every cloned repository.

    Examples:
        gitgrip link
    """
    with cli_error_handler():
        workspace = load_workspace(ctx)

        results: list[LinkResult] = []
        for repo_info in workspace.repos:
            if not repo_info.absolute_path.exists():
                continue
            results.extend(apply_links(repo_info, workspace.root))

        if not results:
            console.print("[dim]No copyfile or linkfile rules to apply.[/dim]")
            return

        for result in results:
            console.print(_describe(result, workspace.root))

        failed = sum(1 for r in results if not r.success)
        console.print()
        console.print(f"Applied {len(results) - failed}/{len(results)} rules")
        if failed:
            raise SystemExit(ExitCode.FAILURE)
