"""CLI utilities for gitgrip.

This module provides CLI-specific utilities including context management,
output formatting, and error handling.
"""

from __future__ import annotations

from gitgrip.cli.context import CLIContext, ExitCode, async_command

__all__ = [
    "CLIContext",
    "ExitCode",
    "async_command",
]
