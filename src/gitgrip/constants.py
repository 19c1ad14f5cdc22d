"""Shared constants for gitgrip."""

from __future__ import annotations

#: Remote used by sync and network primitives when none is given
DEFAULT_REMOTE = "origin"

#: Branch assumed when a manifest entry omits ``default_branch``
DEFAULT_BRANCH = "main"

#: Length of abbreviated commit ids in user-facing labels
SHORT_SHA_LENGTH = 7

#: Workspace manifest file, searched upward from the working directory
MANIFEST_FILENAME = "gitgrip-manifest.yaml"

#: Project-level tool configuration file
CONFIG_FILENAME = "gitgrip.yaml"

# Environment variables exported to commands run by ``gitgrip forall``
ENV_REPO_NAME = "REPO_NAME"
ENV_REPO_PATH = "REPO_PATH"
ENV_REPO_URL = "REPO_URL"
ENV_REPO_BRANCH = "REPO_BRANCH"

# Environment variables read for username/password authentication
ENV_GIT_USER = "GIT_USER"
ENV_GIT_PASSWORD = "GIT_PASSWORD"
