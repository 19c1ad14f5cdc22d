"""Workspace manifest: which repositories make up a workspace and where."""

from __future__ import annotations

from gitgrip.manifest.links import LinkResult, apply_links
from gitgrip.manifest.loader import LoadedManifest, find_manifest_path, load_manifest
from gitgrip.manifest.models import (
    FileRule,
    Manifest,
    ManifestSettings,
    RepoConfig,
    RepoInfo,
    get_all_repo_info,
)

__all__ = [
    "FileRule",
    "LinkResult",
    "LoadedManifest",
    "Manifest",
    "ManifestSettings",
    "RepoConfig",
    "RepoInfo",
    "apply_links",
    "find_manifest_path",
    "get_all_repo_info",
    "load_manifest",
]
