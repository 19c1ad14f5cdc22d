from __future__ import annotations


class GitgripError(Exception):
    """Base exception class for all gitgrip-specific errors.

    Catching ``GitgripError`` at the CLI boundary handles every failure the
    tool knows how to describe, while system exceptions propagate naturally.

    Attributes:
        message: Human-readable error message describing what went wrong.
    """

    def __init__(self, message: str) -> None:
        """Initialize the GitgripError.

        Args:
            message: Human-readable error message.
        """
        self.message = message
        super().__init__(message)
