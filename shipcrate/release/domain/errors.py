"""Error taxonomy for a release run.

Each variant is a frozen dataclass; the category unions at the bottom are what
collaborators return and what the orchestrator maps to a terminal state:

- InputValidationError: bad inputs, nothing has happened yet
- CheckGateError: status checks not satisfied, nothing has happened yet
- LocalMutationError: working tree was touched and gets reset
- GitError: commit/tag/push failures; after a commit they trigger rollback
- PublishError: registry failures; always trigger rollback
- ManualInterventionRequired: remote state is unknown, a human must look
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar, Literal

ErrorCategory = Literal["input", "check_gate", "local", "git", "publish", "manual"]


# -----------------------------------------------------------------------------
# Input validation
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class InvalidBumpKind:
    category: ClassVar[ErrorCategory] = "input"
    value: str

    @property
    def message(self) -> str:
        return f"invalid bump type {self.value!r} (expected patch, minor or major)"


@dataclass(frozen=True, slots=True)
class InvalidVersion:
    category: ClassVar[ErrorCategory] = "input"
    value: str

    @property
    def message(self) -> str:
        return f"invalid version {self.value!r} (expected MAJOR.MINOR.PATCH)"


@dataclass(frozen=True, slots=True)
class MissingToken:
    category: ClassVar[ErrorCategory] = "input"
    name: str

    @property
    def message(self) -> str:
        return f"missing required credential: {self.name}"


@dataclass(frozen=True, slots=True)
class InvalidBranch:
    category: ClassVar[ErrorCategory] = "input"
    branch: str
    reason: str

    @property
    def message(self) -> str:
        return f"invalid branch {self.branch!r}: {self.reason}"


@dataclass(frozen=True, slots=True)
class InvalidInput:
    category: ClassVar[ErrorCategory] = "input"
    field: str
    reason: str

    @property
    def message(self) -> str:
        return f"invalid {self.field}: {self.reason}"


@dataclass(frozen=True, slots=True)
class DirtyWorkingTree:
    category: ClassVar[ErrorCategory] = "input"
    paths: tuple[str, ...]

    @property
    def message(self) -> str:
        shown = ", ".join(self.paths[:5])
        more = f" (+{len(self.paths) - 5} more)" if len(self.paths) > 5 else ""
        return f"working tree has uncommitted changes: {shown}{more}"


# -----------------------------------------------------------------------------
# Check gate
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CheckFailed:
    category: ClassVar[ErrorCategory] = "check_gate"
    name: str

    @property
    def message(self) -> str:
        return f"required check failed: {self.name}"


@dataclass(frozen=True, slots=True)
class CheckNotFound:
    category: ClassVar[ErrorCategory] = "check_gate"
    name: str

    @property
    def message(self) -> str:
        return (
            f"required check never reported: {self.name} "
            "(verify the check name matches the job/context name exactly)"
        )


@dataclass(frozen=True, slots=True)
class Timeout:
    category: ClassVar[ErrorCategory] = "check_gate"
    remaining: tuple[str, ...]

    @property
    def message(self) -> str:
        return f"timed out waiting for checks: {', '.join(self.remaining)}"


@dataclass(frozen=True, slots=True)
class Cancelled:
    category: ClassVar[ErrorCategory] = "check_gate"

    @property
    def message(self) -> str:
        return "cancelled while waiting for checks"


# -----------------------------------------------------------------------------
# Local mutation
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ManifestNotFound:
    category: ClassVar[ErrorCategory] = "local"
    path: Path

    @property
    def message(self) -> str:
        return f"manifest not found: {self.path}"


@dataclass(frozen=True, slots=True)
class VersionFieldMissing:
    category: ClassVar[ErrorCategory] = "local"
    path: Path
    detail: str = "no version in [package]"

    @property
    def message(self) -> str:
        return f"{self.path.name}: {self.detail}"


@dataclass(frozen=True, slots=True)
class ManifestWriteFailed:
    category: ClassVar[ErrorCategory] = "local"
    path: Path
    reason: str

    @property
    def message(self) -> str:
        return f"failed to update {self.path.name}: {self.reason}"


@dataclass(frozen=True, slots=True)
class ValidationFailed:
    category: ClassVar[ErrorCategory] = "local"
    name: str
    output: str

    @property
    def message(self) -> str:
        return f"local validation failed: {self.name}"


# -----------------------------------------------------------------------------
# Git
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NothingToCommit:
    category: ClassVar[ErrorCategory] = "git"

    @property
    def message(self) -> str:
        return "nothing to commit (manifest unchanged)"


@dataclass(frozen=True, slots=True)
class TagAlreadyExists:
    category: ClassVar[ErrorCategory] = "git"
    tag: str
    remote: bool = False

    @property
    def message(self) -> str:
        where = "on the remote" if self.remote else "locally"
        return f"tag {self.tag} already exists {where}"


@dataclass(frozen=True, slots=True)
class CommitFailed:
    category: ClassVar[ErrorCategory] = "git"
    detail: str

    @property
    def message(self) -> str:
        return f"git commit failed: {self.detail}"


@dataclass(frozen=True, slots=True)
class TagFailed:
    category: ClassVar[ErrorCategory] = "git"
    detail: str

    @property
    def message(self) -> str:
        return f"git tag failed: {self.detail}"


@dataclass(frozen=True, slots=True)
class PushRejected:
    category: ClassVar[ErrorCategory] = "git"
    detail: str

    @property
    def message(self) -> str:
        return f"push rejected: {self.detail}"


@dataclass(frozen=True, slots=True)
class AuthFailed:
    category: ClassVar[ErrorCategory] = "git"
    detail: str

    @property
    def message(self) -> str:
        return f"git authentication failed: {self.detail}"


@dataclass(frozen=True, slots=True)
class PushInterrupted:
    """The push did not finish; the remote may or may not have the refs."""

    category: ClassVar[ErrorCategory] = "git"
    detail: str

    @property
    def message(self) -> str:
        return f"push interrupted: {self.detail}"


@dataclass(frozen=True, slots=True)
class GitCommandFailed:
    category: ClassVar[ErrorCategory] = "git"
    command: str
    detail: str

    @property
    def message(self) -> str:
        return f"git {self.command} failed: {self.detail}"


# -----------------------------------------------------------------------------
# Registry
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DryRunFailed:
    category: ClassVar[ErrorCategory] = "publish"
    output: str

    @property
    def message(self) -> str:
        return "registry dry-run failed"


@dataclass(frozen=True, slots=True)
class RegistryAuthFailed:
    category: ClassVar[ErrorCategory] = "publish"
    detail: str

    @property
    def message(self) -> str:
        return f"registry rejected credentials: {self.detail}"


@dataclass(frozen=True, slots=True)
class RegistryRejected:
    category: ClassVar[ErrorCategory] = "publish"
    detail: str

    @property
    def message(self) -> str:
        return f"registry rejected the package: {self.detail}"


@dataclass(frozen=True, slots=True)
class NetworkError:
    category: ClassVar[ErrorCategory] = "publish"
    detail: str
    timed_out: bool = False

    @property
    def message(self) -> str:
        return f"network error talking to the registry: {self.detail}"


# -----------------------------------------------------------------------------
# Manual intervention
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ManualInterventionRequired:
    category: ClassVar[ErrorCategory] = "manual"
    cause: ReleaseFailure
    detail: str

    @property
    def message(self) -> str:
        return f"manual intervention required: {self.detail} (cause: {self.cause.message})"


InputValidationError = (
    InvalidBumpKind
    | InvalidVersion
    | MissingToken
    | InvalidBranch
    | InvalidInput
    | DirtyWorkingTree
)
CheckGateError = CheckFailed | CheckNotFound | Timeout | Cancelled
LocalMutationError = ManifestNotFound | VersionFieldMissing | ManifestWriteFailed | ValidationFailed
GitError = (
    NothingToCommit
    | TagAlreadyExists
    | CommitFailed
    | TagFailed
    | PushRejected
    | AuthFailed
    | PushInterrupted
    | GitCommandFailed
)
PublishError = DryRunFailed | RegistryAuthFailed | RegistryRejected | NetworkError

ReleaseFailure = (
    InputValidationError
    | CheckGateError
    | LocalMutationError
    | GitError
    | PublishError
    | ManualInterventionRequired
)
