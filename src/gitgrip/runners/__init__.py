"""Subprocess runners for gitgrip."""

from __future__ import annotations

from gitgrip.runners.command import ShellRunner
from gitgrip.runners.models import CommandResult

__all__ = ["CommandResult", "ShellRunner"]
