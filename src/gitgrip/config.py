"""Configuration for gitgrip.

Settings come from environment variables, the project file (./gitgrip.yaml or
the file passed with ``--config``) and the user file, in that order of
precedence, on top of the model defaults.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from gitgrip.constants import CONFIG_FILENAME, DEFAULT_REMOTE
from gitgrip.exceptions import ConfigError
from gitgrip.logging import get_logger

__all__ = [
    "ForallConfig",
    "GitgripConfig",
    "get_user_config_path",
    "load_config",
]

logger = get_logger(__name__)

# Project config file chosen with ``gitgrip --config``; None means ./gitgrip.yaml
_project_config_path: ContextVar[Path | None] = ContextVar(
    "gitgrip_project_config_path", default=None
)


class ForallConfig(BaseModel):
    """Defaults for ``gitgrip forall``."""

    parallel: bool = False
    intercept_git: bool = True


class YamlConfigSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from YAML files."""

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        yaml_file: Path | None = None,
    ):
        super().__init__(settings_cls)
        self.yaml_file = yaml_file
        self._config_data: dict[str, Any] = {}
        if yaml_file and yaml_file.exists():
            try:
                with open(yaml_file) as f:
                    loaded = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(
                    message=f"Invalid YAML in {yaml_file}: {e}",
                    field=None,
                    value=None,
                    path=yaml_file,
                ) from e
            if loaded is None:
                logger.warning("config_file_empty", path=str(yaml_file))
            elif not isinstance(loaded, dict):
                raise ConfigError(
                    message=f"Config file {yaml_file} must contain a mapping",
                    field=None,
                    value=loaded,
                    path=yaml_file,
                )
            else:
                self._config_data = loaded

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        """Get value for a specific field from the YAML config."""
        if field_name in self._config_data:
            return self._config_data[field_name], field_name, False
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        """Return the complete config data."""
        return self._config_data


class GitgripConfig(BaseSettings):
    """Root configuration object containing all gitgrip settings."""

    model_config = SettingsConfigDict(
        env_prefix="GITGRIP_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    remote: str = DEFAULT_REMOTE
    forall: ForallConfig = Field(default_factory=ForallConfig)
    verbosity: Literal["error", "warning", "info", "debug"] = "warning"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize the order of settings sources.

        Priority (highest to lowest):
        1. Init arguments
        2. Environment variables (GITGRIP_*)
        3. Project YAML config (./gitgrip.yaml, or the ``--config`` file)
        4. User YAML config (~/.config/gitgrip/config.yaml)
        5. Model defaults

        pydantic-settings gives earlier sources higher priority.
        """
        project_config_path = _project_config_path.get() or (
            Path.cwd() / CONFIG_FILENAME
        )
        return (
            init_settings,
            env_settings,
            YamlConfigSource(settings_cls, project_config_path),
            YamlConfigSource(settings_cls, get_user_config_path()),
        )


def get_user_config_path() -> Path:
    """Get the path to the user configuration file.

    Returns:
        Path to ~/.config/gitgrip/config.yaml
    """
    return Path.home() / ".config" / "gitgrip" / "config.yaml"


@contextmanager
def _project_config(path: Path | None) -> Iterator[None]:
    token = _project_config_path.set(path)
    try:
        yield
    finally:
        _project_config_path.reset(token)


def load_config(config_path: Path | None = None) -> GitgripConfig:
    """Load configuration with hierarchy: defaults -> user -> project -> env.

    Args:
        config_path: Project config file. Defaults to ./gitgrip.yaml.

    Returns:
        GitgripConfig instance with merged configuration.

    Raises:
        ConfigError: If configuration is invalid or ``config_path`` is missing.
    """
    if config_path is not None and not config_path.exists():
        raise ConfigError(
            message=f"Config file not found: {config_path}",
            field="config",
            value=str(config_path),
            path=config_path,
        )
    if config_path is None and not (Path.cwd() / CONFIG_FILENAME).exists():
        logger.debug("project_config_missing", using="defaults")

    try:
        with _project_config(config_path):
            return GitgripConfig()
    except ValidationError as e:
        first_error = e.errors()[0]
        field = ".".join(str(loc) for loc in first_error["loc"])
        raise ConfigError(
            message=f"Invalid configuration: {first_error['msg']}",
            field=field,
            value=first_error.get("input"),
        ) from e
