"""gitgrip exception hierarchy.

All exceptions can be imported from this package:
    from gitgrip.exceptions import GitError, BranchNotFoundError
"""

from __future__ import annotations

# Base exception
from gitgrip.exceptions.base import GitgripError

# Configuration exceptions
from gitgrip.exceptions.config import ConfigError

# Git-related exceptions
from gitgrip.exceptions.git import (
    BranchNotFoundError,
    GitError,
    NotARepositoryError,
    OperationFailedError,
    RepositoryIOError,
    RepositoryNotFoundError,
)

# Manifest exceptions
from gitgrip.exceptions.manifest import ManifestError, ManifestNotFoundError

__all__ = [
    # Base
    "GitgripError",
    # Config
    "ConfigError",
    # Git
    "BranchNotFoundError",
    "GitError",
    "NotARepositoryError",
    "OperationFailedError",
    "RepositoryIOError",
    "RepositoryNotFoundError",
    # Manifest
    "ManifestError",
    "ManifestNotFoundError",
]
