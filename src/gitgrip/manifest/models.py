"""Pydantic models for the workspace manifest.

A manifest maps repository names to where each repository comes from and
where it lives inside the workspace:

```yaml
version: 1
repos:
  api:
    url: git@github.com:acme/api.git
    path: api
    default_branch: main
    copyfile:
      - src: tooling/Makefile
        dest: Makefile
settings:
  pr_prefix: "[cross-repo]"
  merge_strategy: all-or-nothing
```
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gitgrip.constants import DEFAULT_BRANCH

__all__ = [
    "FileRule",
    "Manifest",
    "ManifestSettings",
    "RepoConfig",
    "RepoInfo",
    "get_all_repo_info",
]


class FileRule(BaseModel):
    """A copyfile or linkfile rule.

    Attributes:
        src: Path inside the repository.
        dest: Path relative to the workspace root.
    """

    model_config = ConfigDict(frozen=True)

    src: str = Field(min_length=1)
    dest: str = Field(min_length=1)


class RepoConfig(BaseModel):
    """One repository entry of the manifest."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(min_length=1)
    path: str = Field(min_length=1)
    default_branch: str = DEFAULT_BRANCH
    copyfile: list[FileRule] = Field(default_factory=list)
    linkfile: list[FileRule] = Field(default_factory=list)
    platform: str | None = None

    @field_validator("default_branch", mode="before")
    @classmethod
    def default_branch_when_blank(cls, v: str | None) -> str:
        return v or DEFAULT_BRANCH


class ManifestSettings(BaseModel):
    """Workspace-wide settings consumed by the PR workflow."""

    pr_prefix: str = "[cross-repo]"
    merge_strategy: Literal["all-or-nothing", "independent"] = "all-or-nothing"


class Manifest(BaseModel):
    """Root of a workspace manifest."""

    version: int = 1
    repos: dict[str, RepoConfig]
    settings: ManifestSettings = Field(default_factory=ManifestSettings)

    @field_validator("repos")
    @classmethod
    def at_least_one_repo(cls, v: dict[str, RepoConfig]) -> dict[str, RepoConfig]:
        if not v:
            raise ValueError("Manifest must define at least one repository")
        return v


@dataclass(frozen=True, slots=True)
class RepoInfo:
    """A manifest repository resolved against the workspace root.

    Attributes:
        name: Unique repository name within the workspace.
        url: Remote URL.
        path: Path relative to the workspace root, as written in the manifest.
        absolute_path: Workspace root joined with ``path``.
        default_branch: Branch the workspace treats as the base.
        copyfile: Copy rules for this repository.
        linkfile: Symlink rules for this repository.
    """

    name: str
    url: str
    path: str
    absolute_path: Path
    default_branch: str = DEFAULT_BRANCH
    copyfile: tuple[FileRule, ...] = ()
    linkfile: tuple[FileRule, ...] = ()

    @classmethod
    def from_config(
        cls, name: str, config: RepoConfig, workspace_root: Path
    ) -> RepoInfo:
        return cls(
            name=name,
            url=config.url,
            path=config.path,
            absolute_path=workspace_root / config.path,
            default_branch=config.default_branch,
            copyfile=tuple(config.copyfile),
            linkfile=tuple(config.linkfile),
        )


def get_all_repo_info(manifest: Manifest, workspace_root: Path) -> list[RepoInfo]:
    """Resolve every manifest repository, in manifest order."""
    return [
        RepoInfo.from_config(name, config, workspace_root)
        for name, config in manifest.repos.items()
    ]
