from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Literal

from shipcrate.release.domain.errors import ReleaseFailure
from shipcrate.release.domain.version import Version

DEFAULT_GIT_USER_NAME = "github-actions[bot]"
DEFAULT_GIT_USER_EMAIL = "41898282+github-actions[bot]@users.noreply.github.com"
DEFAULT_CHECK_WAIT_INTERVAL = 60
DEFAULT_CHECK_TIMEOUT_COUNT = 20


class RunState(StrEnum):
    VALIDATING = "validating"
    CHECK_GATING = "check_gating"
    BUMPING = "bumping"
    LOCAL_VALIDATING = "local_validating"
    COMMITTING = "committing"
    DRY_RUN_PUBLISHING = "dry_run_publishing"
    PUSHING = "pushing"
    PUBLISHING = "publishing"
    ROLLING_BACK = "rolling_back"
    DONE = "done"
    ABORTED = "aborted"


class CheckStatus(StrEnum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"
    NOT_FOUND = "not_found"


@dataclass(frozen=True, slots=True)
class CheckResult:
    name: str
    status: CheckStatus
    observed_at: datetime


@dataclass(frozen=True, slots=True)
class ReleaseInputs:
    """Run inputs as supplied by the caller (CLI options or workflow inputs).

    Values are raw; `resolve.validate_inputs` checks them before anything runs.
    """

    branch: str
    bump_type: str
    dry_run: bool = False
    registry_token: str | None = field(default=None, repr=False)
    repo_token: str | None = field(default=None, repr=False)
    rust_toolchain: str | None = None
    git_user_name: str = DEFAULT_GIT_USER_NAME
    git_user_email: str = DEFAULT_GIT_USER_EMAIL
    wait_for_checks: frozenset[str] = frozenset()
    check_wait_interval: int = DEFAULT_CHECK_WAIT_INTERVAL
    check_timeout_count: int = DEFAULT_CHECK_TIMEOUT_COUNT


def render_tag(tag_format: str, *, name: str, version: Version) -> str:
    return tag_format.format(name=name, version=str(version))


@dataclass(frozen=True, slots=True)
class ReleasePlan:
    package_name: str
    old_version: Version
    new_version: Version
    tag_name: str
    branch: str
    dry_run: bool


@dataclass(frozen=True, slots=True)
class Outputs:
    package_name: str = ""
    old_version: str = ""
    new_version: str = ""
    tag_name: str = ""
    published: bool = False

    @classmethod
    def from_plan(cls, plan: ReleasePlan, *, published: bool = False) -> Outputs:
        return cls(
            package_name=plan.package_name,
            old_version=str(plan.old_version),
            new_version=str(plan.new_version),
            tag_name=plan.tag_name,
            published=published,
        )

    def as_pairs(self) -> list[tuple[str, str]]:
        return [
            ("package_name", self.package_name),
            ("old_version", self.old_version),
            ("new_version", self.new_version),
            ("tag_name", self.tag_name),
            ("published", "true" if self.published else "false"),
        ]


TerminalKind = Literal["done", "aborted", "manual_intervention"]


@dataclass(frozen=True, slots=True)
class ReleaseOutcome:
    """What a run ended with; populated on every terminal path.

    Attributes:
        terminal: done, aborted, or manual_intervention
        outputs: Values reported to the caller, even on early abort
        reason: The failure that ended the run (None when done)
        failed_in: State that was running when the failure happened
        rollback_actions: Corrective actions that were performed
        left_behind: Remote or local state the run could not undo
        history: States entered, in order
    """

    terminal: TerminalKind
    outputs: Outputs
    reason: ReleaseFailure | None = None
    failed_in: RunState | None = None
    rollback_actions: tuple[str, ...] = ()
    left_behind: tuple[str, ...] = ()
    history: tuple[RunState, ...] = ()

    @property
    def rolled_back(self) -> bool:
        return self.failed_in is not None and RunState.ROLLING_BACK in self.history
