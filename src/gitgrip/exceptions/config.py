from __future__ import annotations

from pathlib import Path
from typing import Any

from gitgrip.exceptions.base import GitgripError


class ConfigError(GitgripError):
    """Configuration could not be read or did not validate.

    Attributes:
        message: Human-readable description of the problem.
        field: Dotted settings key at fault (e.g. ``"forall.parallel"``).
        value: Offending value, if one was read.
        path: Config file the problem was found in.

    Example:
        ```python
        raise ConfigError(
            "Invalid configuration: Input should be a valid boolean",
            field="forall.parallel",
            value="often",
        )
        ```
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        path: Path | None = None,
    ) -> None:
        self.field = field
        self.value = value
        self.path = path
        super().__init__(message)
