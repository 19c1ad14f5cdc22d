"""Console reporting for ``gitgrip forall``."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape

if TYPE_CHECKING:
    from gitgrip.forall.executor import ForallOutcome, ForallSummary

__all__ = ["ForallReporter"]


class ForallReporter:
    """Prints per-repository output and the final summary.

    Command output is written verbatim (no markup or highlighting) to
    ``console``; captured stderr and diagnostics go to ``err_console``.
    """

    def __init__(self, console: Console, err_console: Console) -> None:
        self._console = console
        self._err_console = err_console

    def not_cloned(self, name: str) -> None:
        self._err_console.print(
            f"[yellow]Warning:[/yellow] {escape(name)}: not cloned, skipping"
        )

    def header(self, name: str) -> None:
        self._console.print(f"[bold cyan]{escape(name)}:[/bold cyan]")

    def outcome(self, outcome: ForallOutcome) -> None:
        """Print one repository's captured output.

        Failures additionally report the exit code, after stdout and stderr.
        """
        if outcome.stdout:
            self._console.out(outcome.stdout, end="", highlight=False)
        if outcome.stderr:
            self._err_console.out(outcome.stderr, end="", highlight=False)
        if not outcome.success:
            if outcome.error is not None:
                detail = f"Failed to run command: {outcome.error}"
            else:
                detail = f"Command failed with exit code: {outcome.returncode}"
            self._err_console.print(f"[red]Error:[/red] {escape(detail)}")
        self._console.print()

    def summary(self, summary: ForallSummary) -> None:
        if summary.failed == 0:
            self._console.print(f"[green]✓[/green] {summary.message}")
        else:
            self._console.print(f"[yellow]Warning:[/yellow] {summary.message}")
