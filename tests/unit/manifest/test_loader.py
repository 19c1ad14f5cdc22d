"""Tests for manifest models and loading."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from gitgrip.exceptions import ManifestError, ManifestNotFoundError
from gitgrip.manifest import (
    Manifest,
    RepoConfig,
    RepoInfo,
    find_manifest_path,
    get_all_repo_info,
    load_manifest,
)

MANIFEST = """\
version: 1
repos:
  api:
    url: git@github.com:acme/api.git
    path: services/api
  web:
    url: https://github.com/acme/web.git
    path: web
    default_branch: develop
    linkfile:
      - src: .env.example
        dest: web.env
settings:
  merge_strategy: independent
"""


def _write(directory: Path, text: str = MANIFEST) -> Path:
    path = directory / "gitgrip-manifest.yaml"
    path.write_text(text)
    return path


class TestModels:
    def test_defaults(self) -> None:
        manifest = Manifest.model_validate(
            {"repos": {"a": {"url": "u", "path": "a"}}}
        )
        assert manifest.version == 1
        assert manifest.repos["a"].default_branch == "main"
        assert manifest.settings.pr_prefix == "[cross-repo]"
        assert manifest.settings.merge_strategy == "all-or-nothing"

    def test_blank_default_branch_means_main(self) -> None:
        config = RepoConfig(url="u", path="p", default_branch="")
        assert config.default_branch == "main"

    def test_requires_a_repository(self) -> None:
        with pytest.raises(ValidationError):
            Manifest.model_validate({"repos": {}})

    def test_repo_info_joins_workspace_root(self, tmp_path: Path) -> None:
        config = RepoConfig(url="u", path="nested/api")
        info = RepoInfo.from_config("api", config, tmp_path)
        assert info.absolute_path == tmp_path / "nested" / "api"
        assert info.default_branch == "main"

    def test_repo_order_follows_manifest(self, tmp_path: Path) -> None:
        manifest = Manifest.model_validate(
            {
                "repos": {
                    "zeta": {"url": "u", "path": "z"},
                    "alpha": {"url": "u", "path": "a"},
                }
            }
        )
        names = [info.name for info in get_all_repo_info(manifest, tmp_path)]
        assert names == ["zeta", "alpha"]


class TestLoadManifest:
    def test_load_explicit_path(self, tmp_path: Path) -> None:
        loaded = load_manifest(_write(tmp_path))

        assert loaded.root == tmp_path.resolve()
        assert [r.name for r in loaded.repos] == ["api", "web"]
        web = loaded.repos[1]
        assert web.default_branch == "develop"
        assert web.linkfile[0].dest == "web.env"
        assert loaded.manifest.settings.merge_strategy == "independent"

    def test_found_by_walking_up(self, temp_dir: Path) -> None:
        path = _write(temp_dir)
        nested = temp_dir / "services" / "api" / "src"
        nested.mkdir(parents=True)
        os.chdir(nested)

        assert find_manifest_path() == path
        assert load_manifest().root == temp_dir

    def test_not_found(self, temp_dir: Path) -> None:
        os.chdir(temp_dir)
        assert find_manifest_path() is None
        with pytest.raises(ManifestNotFoundError):
            load_manifest()

    def test_explicit_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestNotFoundError):
            load_manifest(tmp_path / "gone.yaml")

    def test_missing_url(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "repos:\n  api:\n    path: api\n")
        with pytest.raises(ManifestError) as exc_info:
            load_manifest(path)
        assert "Repository 'api' is missing 'url'" in exc_info.value.message
        assert exc_info.value.path == path

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "repos: [unclosed\n")
        with pytest.raises(ManifestError, match="Invalid YAML"):
            load_manifest(path)

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "- api\n")
        with pytest.raises(ManifestError, match="must contain a mapping"):
            load_manifest(path)

    def test_empty_repos(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "repos: {}\n")
        with pytest.raises(ManifestError, match="at least one repository"):
            load_manifest(path)
