"""Concrete collaborators backed by cargo, git and the GitHub API."""

from __future__ import annotations

from shipcrate.release.infra.git_publisher import RepositoryGitPublisher
from shipcrate.release.infra.github_checks import GitHubCheckSource
from shipcrate.release.infra.manifest import CargoManifestEditor
from shipcrate.release.infra.registry import CargoRegistryPublisher
from shipcrate.release.infra.validation import CommandValidationRunner

__all__ = [
    "CargoManifestEditor",
    "CargoRegistryPublisher",
    "CommandValidationRunner",
    "GitHubCheckSource",
    "RepositoryGitPublisher",
]
