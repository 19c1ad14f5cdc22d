from __future__ import annotations

from pathlib import Path

from gitgrip.exceptions.base import GitgripError


class ManifestError(GitgripError):
    """Exception for manifest loading and validation failures.

    Attributes:
        message: Human-readable error message.
        path: Manifest file that failed to load, if known.
    """

    def __init__(self, message: str, path: Path | None = None) -> None:
        self.path = path
        super().__init__(message)


class ManifestNotFoundError(ManifestError):
    """No manifest file was found in the directory tree."""
