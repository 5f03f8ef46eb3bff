from __future__ import annotations

from pathlib import Path

import pytest

from shipcrate.core.errors import ErrorCode
from shipcrate.output.console import MockConsole, Style
from shipcrate.release.domain.errors import (
    Cancelled,
    CheckFailed,
    DryRunFailed,
    GitCommandFailed,
    InvalidBumpKind,
    ManifestNotFound,
    ManualInterventionRequired,
    PushRejected,
    RegistryRejected,
    ReleaseFailure,
    ValidationFailed,
)
from shipcrate.release.domain.model import Outputs, ReleaseOutcome, RunState
from shipcrate.release.view.report import exit_code_for, print_outcome

OUTPUTS = Outputs(
    package_name="widget",
    old_version="1.4.9",
    new_version="1.4.10",
    tag_name="v1.4.10",
)


def _aborted(
    reason: ReleaseFailure,
    failed_in: RunState,
    *,
    rolled_back: bool = False,
) -> ReleaseOutcome:
    history = (RunState.VALIDATING, failed_in)
    if rolled_back:
        history = (*history, RunState.ROLLING_BACK)
    return ReleaseOutcome(
        terminal="aborted",
        outputs=OUTPUTS,
        reason=reason,
        failed_in=failed_in,
        history=(*history, RunState.ABORTED),
    )


@pytest.mark.parametrize(
    ("outcome", "code"),
    [
        (ReleaseOutcome(terminal="done", outputs=OUTPUTS), ErrorCode.OK),
        (_aborted(InvalidBumpKind("huge"), RunState.VALIDATING), ErrorCode.USER_ERROR),
        (_aborted(CheckFailed("test"), RunState.CHECK_GATING), ErrorCode.CHECKS_FAILED),
        (
            _aborted(ManifestNotFound(Path("Cargo.toml")), RunState.VALIDATING),
            ErrorCode.USER_ERROR,
        ),
        (
            _aborted(GitCommandFailed("status", "not a git repository"), RunState.VALIDATING),
            ErrorCode.USER_ERROR,
        ),
        (_aborted(Cancelled(), RunState.CHECK_GATING), ErrorCode.CANCELLED),
        (
            _aborted(ValidationFailed("fmt", ""), RunState.LOCAL_VALIDATING),
            ErrorCode.LOCAL_FAILURE,
        ),
        (
            _aborted(PushRejected("non-fast-forward"), RunState.PUSHING, rolled_back=True),
            ErrorCode.ROLLED_BACK,
        ),
        (
            ReleaseOutcome(
                terminal="manual_intervention",
                outputs=OUTPUTS,
                reason=ManualInterventionRequired(cause=RegistryRejected("x"), detail="y"),
                failed_in=RunState.PUBLISHING,
            ),
            ErrorCode.MANUAL_INTERVENTION,
        ),
    ],
)
def test_exit_code_for(outcome: ReleaseOutcome, code: ErrorCode) -> None:
    assert exit_code_for(outcome) == code


def test_print_published_release() -> None:
    console = MockConsole()
    outcome = ReleaseOutcome(
        terminal="done",
        outputs=Outputs("widget", "1.4.9", "1.4.10", "v1.4.10", published=True),
    )

    print_outcome(outcome, console)

    assert console.find("Released widget 1.4.10")
    assert console.find("published: true")
    assert console.has_success()
    assert not console.has_error()


def test_print_failure_with_rollback_and_tool_output() -> None:
    console = MockConsole()
    outcome = ReleaseOutcome(
        terminal="aborted",
        outputs=OUTPUTS,
        reason=DryRunFailed(output="error: missing `license`"),
        failed_in=RunState.DRY_RUN_PUBLISHING,
        rollback_actions=("deleted local tag v1.4.10", "reset branch to abc12345"),
        history=(RunState.DRY_RUN_PUBLISHING, RunState.ROLLING_BACK, RunState.ABORTED),
    )

    print_outcome(outcome, console)

    assert console.find("failed in dry_run_publishing: registry dry-run failed")
    dim = [o.message for o in console.outputs if o.style == Style.DIM]
    assert "  error: missing `license`" in dim
    assert "Rollback" in console.headers()
    assert console.find("  - reset branch to abc12345")
    assert console.find("exit 4 (rolled back)")


def test_print_left_behind_as_warnings() -> None:
    console = MockConsole()
    outcome = ReleaseOutcome(
        terminal="manual_intervention",
        outputs=OUTPUTS,
        reason=ManualInterventionRequired(cause=RegistryRejected("x"), detail="revert failed"),
        failed_in=RunState.PUBLISHING,
        left_behind=("tag v1.4.10 still exists on origin",),
    )

    print_outcome(outcome, console)

    assert "Left behind" in console.headers()
    assert console.has_warning()
    assert console.find("Release needs manual intervention")


def test_print_unset_outputs_as_dash() -> None:
    console = MockConsole()
    outcome = ReleaseOutcome(
        terminal="aborted",
        outputs=Outputs(),
        reason=InvalidBumpKind("huge"),
        failed_in=RunState.VALIDATING,
    )

    print_outcome(outcome, console)

    assert console.find("new_version: -")
    assert console.find("published: false")
    assert console.find("exit 1 (user error)")
    assert not console.find("Rollback")
