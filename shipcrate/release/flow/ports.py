"""Collaborator interfaces the orchestrator drives.

Concrete implementations live in `shipcrate.release.infra`; tests provide
in-memory fakes. Every method reports failure as a Result, never by raising.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Protocol

from shipcrate.core.config import ValidationCommand
from shipcrate.core.result import Result
from shipcrate.release.domain.errors import (
    GitError,
    InputValidationError,
    InvalidVersion,
    LocalMutationError,
    PublishError,
    ValidationFailed,
)
from shipcrate.release.domain.model import CheckResult, ReleasePlan
from shipcrate.release.domain.version import Version


@dataclass(frozen=True, slots=True)
class PackageManifest:
    name: str
    version: Version


@dataclass(frozen=True, slots=True)
class CommitRef:
    sha: str
    tag: str


@dataclass(frozen=True, slots=True)
class Author:
    name: str
    email: str


class ManifestEditor(Protocol):
    def read(self) -> Result[PackageManifest, LocalMutationError | InvalidVersion]: ...

    def write_version(self, version: Version) -> Result[tuple[str, ...], LocalMutationError]:
        """Persist version to the manifest and lockfile; returns changed paths."""
        ...

    def paths(self) -> tuple[str, ...]:
        """Repository-relative paths a version change may touch."""
        ...


class StatusSource(Protocol):
    def poll(self, names: frozenset[str], *, ref: str) -> Result[Mapping[str, CheckResult], str]:
        """Current status of each named check for ref.

        Names that have no reported status may be omitted or reported as
        not_found. Err carries a transport diagnostic.
        """
        ...


class ValidationRunner(Protocol):
    def run(self, checks: Sequence[ValidationCommand]) -> Result[None, ValidationFailed]: ...


class GitPublisher(Protocol):
    def ensure_ready(self, branch: str) -> Result[str, InputValidationError | GitError]:
        """Check the checkout is on branch and clean; returns HEAD sha."""
        ...

    def commit_and_tag(
        self,
        plan: ReleasePlan,
        author: Author,
        *,
        message: str,
        paths: Sequence[str],
    ) -> Result[CommitRef, GitError]: ...

    def push(self, branch: str, tag: str, *, include_tags: bool) -> Result[None, GitError]: ...

    def delete_tag(self, tag: str, *, remote: bool) -> Result[None, GitError]: ...

    def revert_commit(
        self,
        ref: str,
        author: Author,
        *,
        push_branch: str | None,
    ) -> Result[str, GitError]:
        """Commit the inverse of ref; push it to push_branch when given."""
        ...

    def reset_to(self, ref: str) -> Result[None, GitError]:
        """Discard local commits after ref and all uncommitted changes."""
        ...


class RegistryPublisher(Protocol):
    def dry_run(self, plan: ReleasePlan) -> Result[None, PublishError]: ...

    def publish(self, plan: ReleasePlan) -> Result[None, PublishError]: ...
