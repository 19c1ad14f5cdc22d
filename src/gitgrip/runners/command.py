"""Command runner for async shell execution.

This module provides the ShellRunner class for executing shell command
strings with working-directory validation, environment overrides and
optional timeout handling.
"""

from __future__ import annotations

import asyncio
import os
import time
from pathlib import Path

from gitgrip.exceptions import RepositoryIOError
from gitgrip.runners.models import CommandResult

__all__ = ["ShellRunner"]

# Timeout constants
TERMINATION_GRACE_PERIOD: float = 2.0


class ShellRunner:
    """Run command strings through the system shell.

    Commands are passed to ``/bin/sh -c`` unchanged, so pipes, redirection
    and globbing behave exactly as they would in a terminal.

    Attributes:
        timeout: Default timeout in seconds (None for no timeout).
        env: Additional environment variables to merge with parent env.

    Example:
        ```python
        runner = ShellRunner()
        result = await runner.run("git log -1 --oneline", cwd=Path("/work/api"))
        if result.success:
            print(result.stdout)
        ```
    """

    def __init__(
        self,
        timeout: float | None = None,
        env: dict[str, str] | None = None,
    ) -> None:
        """Initialize the ShellRunner.

        Args:
            timeout: Default timeout in seconds. None waits indefinitely.
            env: Additional environment variables to merge with os.environ.
        """
        self._timeout = timeout
        self._extra_env = env or {}

    @property
    def timeout(self) -> float | None:
        """Default timeout in seconds."""
        return self._timeout

    def _validate_cwd(self, cwd: Path | None) -> None:
        """Validate working directory exists.

        Raises:
            RepositoryIOError: If directory does not exist.
        """
        if cwd is not None and not cwd.is_dir():
            raise RepositoryIOError(
                f"Working directory does not exist: {cwd}",
                path=cwd,
            )

    def _build_env(self, extra_env: dict[str, str] | None = None) -> dict[str, str]:
        """Build environment by merging parent env with overrides."""
        env = os.environ.copy()
        env.update(self._extra_env)
        if extra_env:
            env.update(extra_env)
        return env

    async def run(
        self,
        command: str,
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
        env: dict[str, str] | None = None,
    ) -> CommandResult:
        """Execute a shell command and return the result.

        Args:
            command: Command line interpreted by the shell.
            cwd: Working directory for this command.
            timeout: Override timeout. Use 0 or negative for no timeout.
            env: Additional environment variables for this command.

        Returns:
            CommandResult for the command. A non-zero exit is not an error.

        Raises:
            RepositoryIOError: If working directory does not exist.
        """
        self._validate_cwd(cwd)

        effective_timeout = timeout if timeout is not None else self._timeout
        if effective_timeout is not None and effective_timeout <= 0:
            effective_timeout = None

        start_time = time.monotonic()
        timed_out = False
        stdout_str = ""
        stderr_str = ""

        process = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
            env=self._build_env(env),
        )

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                process.communicate(),
                timeout=effective_timeout,
            )
            returncode = process.returncode or 0
            stdout_str = stdout_bytes.decode("utf-8", errors="replace")
            stderr_str = stderr_bytes.decode("utf-8", errors="replace")
        except TimeoutError:
            # Graceful termination: SIGTERM first
            timed_out = True
            process.terminate()
            try:
                await asyncio.wait_for(process.wait(), timeout=TERMINATION_GRACE_PERIOD)
            except TimeoutError:
                process.kill()
                await process.wait()
            returncode = -1
            stderr_str = f"Command timed out after {effective_timeout}s"

        duration_ms = int((time.monotonic() - start_time) * 1000)

        return CommandResult(
            command=command,
            cwd=cwd,
            returncode=returncode,
            stdout=stdout_str,
            stderr=stderr_str,
            duration_ms=duration_ms,
            timed_out=timed_out,
        )
