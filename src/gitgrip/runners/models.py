"""Result type of :class:`gitgrip.runners.ShellRunner`."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

__all__ = ["CommandResult"]


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of one shell command run in one directory.

    Attributes:
        command: Command line as handed to the shell.
        cwd: Directory the command ran in (None for the current one).
        returncode: Shell exit status, -1 when the command was killed.
        stdout: Decoded standard output.
        stderr: Decoded standard error.
        duration_ms: Wall-clock time in milliseconds.
        timed_out: True if the runner stopped the command at its timeout.
    """

    command: str
    cwd: Path | None
    returncode: int
    stdout: str
    stderr: str
    duration_ms: int
    timed_out: bool = False

    @property
    def success(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    @property
    def failure_reason(self) -> str | None:
        """Short description of why the command failed, None on success."""
        if self.timed_out:
            return f"timed out after {self.duration_ms}ms"
        if self.returncode != 0:
            return f"exit code {self.returncode}"
        return None
