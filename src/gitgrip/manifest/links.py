"""Apply copyfile and linkfile rules from the manifest.

A rule's ``src`` is resolved inside the repository and its ``dest`` inside
the workspace root. Neither may escape its base directory.
"""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from gitgrip.logging import get_logger
from gitgrip.manifest.models import FileRule, RepoInfo

logger = get_logger(__name__)

__all__ = ["LinkResult", "apply_links"]


@dataclass(frozen=True, slots=True)
class LinkResult:
    """Outcome of applying one rule."""

    repo: str
    kind: Literal["copyfile", "linkfile"]
    src: Path
    dest: Path
    success: bool
    message: str | None = None


def _within(base: Path, relative: str) -> Path | None:
    candidate = (base / relative).resolve()
    try:
        candidate.relative_to(base.resolve())
    except ValueError:
        return None
    return candidate


def _destination(base: Path, relative: str) -> Path | None:
    """Like :func:`_within`, but never follows a link at the final component.

    An existing link at the destination is replaced, never followed.
    """
    name = Path(relative).name
    if name in ("", ".", ".."):
        return None
    parent = (base / relative).parent.resolve()
    try:
        parent.relative_to(base.resolve())
    except ValueError:
        return None
    return parent / name


def _apply_rule(
    repo_info: RepoInfo,
    rule: FileRule,
    kind: Literal["copyfile", "linkfile"],
    workspace_root: Path,
) -> LinkResult:
    src = _within(repo_info.absolute_path, rule.src)
    dest = _destination(workspace_root, rule.dest)
    if src is None or dest is None:
        return LinkResult(
            repo_info.name,
            kind,
            repo_info.absolute_path / rule.src,
            workspace_root / rule.dest,
            success=False,
            message="Path escapes its base directory",
        )
    if not src.exists():
        return LinkResult(
            repo_info.name, kind, src, dest, False, f"Source not found: {rule.src}"
        )

    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        if dest.is_symlink() or dest.is_file():
            dest.unlink()
        if kind == "copyfile":
            shutil.copy2(src, dest)
        else:
            os.symlink(os.path.relpath(src, dest.parent), dest)
    except OSError as e:
        return LinkResult(repo_info.name, kind, src, dest, False, str(e))

    logger.debug(f"{kind}_applied", repo=repo_info.name, src=str(src), dest=str(dest))
    return LinkResult(repo_info.name, kind, src, dest, True)


def apply_links(repo_info: RepoInfo, workspace_root: Path) -> list[LinkResult]:
    """Apply every copyfile then linkfile rule of one repository.

    Args:
        repo_info: Repository whose rules to apply.
        workspace_root: Directory that ``dest`` paths are relative to.

    Returns:
        One result per rule. Failures are reported, not raised.
    """
    results = [
        _apply_rule(repo_info, rule, "copyfile", workspace_root)
        for rule in repo_info.copyfile
    ]
    results.extend(
        _apply_rule(repo_info, rule, "linkfile", workspace_root)
        for rule in repo_info.linkfile
    )
    return results
