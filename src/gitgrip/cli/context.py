"""CLI context and utilities for gitgrip.

This module provides context management, exit codes, and the bridge from
Click's synchronous interface to the async forall executor.
"""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Any, TypeVar

from gitgrip.config import GitgripConfig
from gitgrip.git.cache import StatusCache

__all__ = [
    "CLIContext",
    "ExitCode",
    "async_command",
]


class ExitCode(IntEnum):
    """Standard exit codes for the gitgrip CLI.

    - 0 for success
    - 1 for failure
    - 2 for partial success
    - 130 for keyboard interrupt (128 + SIGINT=2)
    """

    SUCCESS = 0
    FAILURE = 1
    PARTIAL = 2
    INTERRUPTED = 130


@dataclass(frozen=True, slots=True)
class CLIContext:
    """Type-safe CLI context containing global options and configuration.

    Attributes:
        config: Loaded gitgrip configuration.
        config_path: Path to config file (if specified via --config).
        manifest_path: Manifest file (if specified via --manifest).
        verbosity: Verbosity level (0=default, 1=INFO, 2+=DEBUG).
        quiet: Suppress non-essential output.
        cache: Status cache shared by every command of this invocation.
    """

    config: GitgripConfig
    config_path: Path | None = None
    manifest_path: Path | None = None
    verbosity: int = 0
    quiet: bool = False
    cache: StatusCache = field(default_factory=StatusCache, compare=False)


F = TypeVar("F", bound=Callable[..., Any])


def async_command(f: F) -> F:
    """Decorator to run async Click commands with asyncio.run().

    Example:
        >>> @cli.command()
        >>> @async_command
        >>> async def forall(ctx: click.Context, command: str) -> None:
        >>>     await run_forall(repos, command)
    """

    @functools.wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return asyncio.run(f(*args, **kwargs))

    return wrapper  # type: ignore[return-value]
