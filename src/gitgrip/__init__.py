"""gitgrip - keep a workspace of git repositories in step."""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
