"""Locate and load the workspace manifest."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml
from pydantic import ValidationError

from gitgrip.constants import MANIFEST_FILENAME
from gitgrip.exceptions import ManifestError, ManifestNotFoundError
from gitgrip.logging import get_logger
from gitgrip.manifest.models import Manifest, RepoInfo, get_all_repo_info

logger = get_logger(__name__)

__all__ = ["LoadedManifest", "find_manifest_path", "load_manifest"]


@dataclass(frozen=True, slots=True)
class LoadedManifest:
    """A parsed manifest together with the workspace root it belongs to."""

    manifest: Manifest
    path: Path
    root: Path

    @property
    def repos(self) -> list[RepoInfo]:
        return get_all_repo_info(self.manifest, self.root)


def find_manifest_path(start: Path | None = None) -> Path | None:
    """Walk up from ``start`` (default: cwd) looking for the manifest file."""
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / MANIFEST_FILENAME
        if candidate.is_file():
            return candidate
    return None


def _describe_validation_error(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    if first["type"] == "missing" and len(first["loc"]) >= 3:
        # ("repos", "<name>", "<field>")
        return f"Repository '{first['loc'][1]}' is missing '{first['loc'][2]}'"
    if location:
        return f"{location}: {first['msg']}"
    return str(first["msg"])


def load_manifest(path: Path | None = None) -> LoadedManifest:
    """Load and validate the workspace manifest.

    Args:
        path: Manifest file. Searched upward from the working directory if None.

    Returns:
        The parsed manifest; its workspace root is the file's directory.

    Raises:
        ManifestNotFoundError: If no manifest file can be found.
        ManifestError: If the file is not valid YAML or fails validation.
    """
    manifest_path = path if path is not None else find_manifest_path()
    if manifest_path is None or not manifest_path.is_file():
        raise ManifestNotFoundError(
            f"Manifest file not found. Create {MANIFEST_FILENAME} "
            "in the workspace root.",
            path=manifest_path,
        )

    try:
        with open(manifest_path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ManifestError(
            f"Invalid YAML in {manifest_path}: {e}", path=manifest_path
        ) from e
    except OSError as e:
        raise ManifestError(
            f"Cannot read {manifest_path}: {e}", path=manifest_path
        ) from e

    if not isinstance(data, dict):
        raise ManifestError(
            f"Manifest {manifest_path} must contain a mapping", path=manifest_path
        )

    try:
        manifest = Manifest.model_validate(data)
    except ValidationError as e:
        raise ManifestError(
            f"Invalid manifest: {_describe_validation_error(e)}", path=manifest_path
        ) from e

    root = manifest_path.resolve().parent
    logger.debug(
        "manifest_loaded", path=str(manifest_path), repos=len(manifest.repos)
    )
    return LoadedManifest(manifest=manifest, path=manifest_path, root=root)
