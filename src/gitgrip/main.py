"""CLI entry point for gitgrip.

This module defines the Click-based command-line interface for gitgrip.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click
from dotenv import load_dotenv

# Load environment variables (GIT_USER, GIT_PASSWORD, GITGRIP_*) from .env in
# the current directory before any code reads them
load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

from gitgrip import __version__  # noqa: E402
from gitgrip.cli.commands.checkout import checkout  # noqa: E402
from gitgrip.cli.commands.forall import forall  # noqa: E402
from gitgrip.cli.commands.link import link  # noqa: E402
from gitgrip.cli.commands.status import status  # noqa: E402
from gitgrip.cli.commands.sync import sync  # noqa: E402
from gitgrip.cli.context import CLIContext, ExitCode  # noqa: E402
from gitgrip.cli.output import format_error  # noqa: E402
from gitgrip.config import load_config  # noqa: E402
from gitgrip.exceptions import ConfigError  # noqa: E402
from gitgrip.logging import bind_context, configure_logging  # noqa: E402

VERBOSITY_LEVELS = {
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def resolve_log_level(verbose: int, quiet: bool, configured: str) -> int:
    """Pick the log level. Priority: quiet > verbose > config."""
    if quiet:
        return logging.ERROR
    if verbose > 0:
        return logging.INFO if verbose == 1 else logging.DEBUG
    return VERBOSITY_LEVELS.get(configured, logging.WARNING)


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="gitgrip")
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=False, path_type=str),
    default=None,
    help="Path to config file (overrides project/user config).",
)
@click.option(
    "-m",
    "--manifest",
    "manifest_file",
    type=click.Path(exists=False, path_type=str),
    default=None,
    help="Path to the workspace manifest (default: search upward from cwd).",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase verbosity (-v for INFO, -vv for DEBUG).",
)
@click.option(
    "-q",
    "--quiet",
    is_flag=True,
    default=False,
    help="Suppress non-essential output (ERROR level only).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: str | None,
    manifest_file: str | None,
    verbose: int,
    quiet: bool,
) -> None:
    """gitgrip - manage a workspace of related git repositories."""
    ctx.ensure_object(dict)

    config_path = Path(config_file) if config_file else None
    try:
        config = load_config(config_path)
    except ConfigError as e:
        # Logging is not configured yet
        details = [f"File: {e.path}"] if e.path else []
        if e.field:
            details.append(f"Field: {e.field}")
        if e.value is not None:
            details.append(f"Value: {e.value}")
        click.echo(format_error(e.message, details=details or None), err=True)
        ctx.exit(ExitCode.FAILURE)

    ctx.obj["cli_ctx"] = CLIContext(
        config=config,
        config_path=config_path,
        manifest_path=Path(manifest_file) if manifest_file else None,
        verbosity=verbose,
        quiet=quiet,
    )

    configure_logging(level=resolve_log_level(verbose, quiet, config.verbosity))
    if ctx.invoked_subcommand is not None:
        bind_context(command=ctx.invoked_subcommand)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


cli.add_command(status)
cli.add_command(sync)
cli.add_command(checkout)
cli.add_command(forall)
cli.add_command(link)

if __name__ == "__main__":
    cli()
