from __future__ import annotations

import contextlib
from collections.abc import Generator

import click

from gitgrip.cli.context import CLIContext, ExitCode
from gitgrip.cli.output import format_error
from gitgrip.exceptions import (
    ConfigError,
    GitError,
    GitgripError,
    ManifestError,
    ManifestNotFoundError,
)
from gitgrip.logging import get_logger
from gitgrip.manifest import LoadedManifest, load_manifest


@contextlib.contextmanager
def cli_error_handler() -> Generator[None, None, None]:
    """Context manager for common CLI error handling.

    Handles common error patterns across CLI commands:
    - KeyboardInterrupt: Exit with code 130
    - GitError: Format error with operation details
    - ManifestError / ConfigError: Format error with the offending location
    - GitgripError: Format error with message
    - Generic exceptions: Log and format error

    Example:
        >>> with cli_error_handler():
        >>>     workspace = load_workspace(ctx)
    """
    logger = get_logger(__name__)

    try:
        yield
    except KeyboardInterrupt:
        click.echo("\n\nInterrupted by user.", err=True)
        raise SystemExit(ExitCode.INTERRUPTED) from None
    except GitError as e:
        error_msg = format_error(
            e.message,
            details=[f"Operation: {e.operation}"] if e.operation else None,
        )
        click.echo(error_msg, err=True)
        raise SystemExit(ExitCode.FAILURE) from e
    except ManifestNotFoundError as e:
        error_msg = format_error(
            e.message,
            suggestion="Run gitgrip from inside a workspace or pass --manifest",
        )
        click.echo(error_msg, err=True)
        raise SystemExit(ExitCode.FAILURE) from e
    except ManifestError as e:
        details = [f"File: {e.path}"] if e.path else None
        click.echo(format_error(e.message, details=details), err=True)
        raise SystemExit(ExitCode.FAILURE) from e
    except ConfigError as e:
        details = [f"Field: {e.field}"] if e.field else []
        if e.path:
            details.append(f"File: {e.path}")
        click.echo(format_error(e.message, details=details or None), err=True)
        raise SystemExit(ExitCode.FAILURE) from e
    except GitgripError as e:
        click.echo(format_error(e.message), err=True)
        raise SystemExit(ExitCode.FAILURE) from e
    except Exception as e:
        logger.exception("unexpected_command_error")
        click.echo(f"Error: {e!s}", err=True)
        raise SystemExit(ExitCode.FAILURE) from e


def get_cli_context(ctx: click.Context) -> CLIContext:
    cli_ctx: CLIContext = ctx.obj["cli_ctx"]
    return cli_ctx


def load_workspace(ctx: click.Context) -> LoadedManifest:
    """Load the manifest named by ``--manifest`` or found from the cwd.

    The result is cached on the Click context for the rest of the invocation.

    Raises:
        ManifestNotFoundError: If no manifest can be found.
        ManifestError: If the manifest is invalid.
    """
    if "workspace" not in ctx.obj:
        ctx.obj["workspace"] = load_manifest(get_cli_context(ctx).manifest_path)
    workspace: LoadedManifest = ctx.obj["workspace"]
    return workspace
