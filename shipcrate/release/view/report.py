"""Terminal outcome presentation and exit code mapping."""

from __future__ import annotations

from typing import TYPE_CHECKING

from shipcrate.core.errors import ErrorCode
from shipcrate.output.console import Style
from shipcrate.release.domain.errors import (
    Cancelled,
    DryRunFailed,
    ReleaseFailure,
    ValidationFailed,
)
from shipcrate.release.domain.model import ReleaseOutcome, RunState

if TYPE_CHECKING:
    from shipcrate.output.console import ConsoleProtocol

__all__ = ["exit_code_for", "print_outcome"]

# Failures here happen before the manifest is touched.
_NOTHING_CHANGED = frozenset({RunState.VALIDATING, RunState.CHECK_GATING})


def exit_code_for(outcome: ReleaseOutcome) -> ErrorCode:
    """Map a terminal outcome to a process exit code."""
    match outcome.terminal:
        case "done":
            return ErrorCode.OK
        case "manual_intervention":
            return ErrorCode.MANUAL_INTERVENTION
        case "aborted":
            pass

    reason = outcome.reason
    if reason is None:
        return ErrorCode.LOCAL_FAILURE
    if isinstance(reason, Cancelled):
        return ErrorCode.CANCELLED
    if outcome.rolled_back:
        return ErrorCode.ROLLED_BACK
    if outcome.failed_in in _NOTHING_CHANGED:
        if reason.category == "check_gate":
            return ErrorCode.CHECKS_FAILED
        return ErrorCode.USER_ERROR

    match reason.category:
        case "input":
            return ErrorCode.USER_ERROR
        case "check_gate":
            return ErrorCode.CHECKS_FAILED
        case "manual":
            return ErrorCode.MANUAL_INTERVENTION
        case _:
            return ErrorCode.LOCAL_FAILURE


def print_outcome(outcome: ReleaseOutcome, console: ConsoleProtocol) -> None:
    console.newline()
    console.table(
        _title(outcome),
        [(key, value or "-") for key, value in outcome.outputs.as_pairs()],
    )

    if outcome.reason is not None:
        where = f" in {outcome.failed_in}" if outcome.failed_in is not None else ""
        console.error(f"failed{where}: {outcome.reason.message}")
        _print_detail(outcome.reason, console)

    if outcome.rollback_actions:
        console.header("Rollback")
        for action in outcome.rollback_actions:
            console.print(f"  - {action}")

    if outcome.left_behind:
        if outcome.terminal == "done":
            for note in outcome.left_behind:
                console.info(note)
        else:
            console.header("Left behind")
            for item in outcome.left_behind:
                console.warning(item)

    code = exit_code_for(outcome)
    if code.is_success:
        console.success(_title(outcome))
    else:
        console.print(f"exit {int(code)} ({code!s})", Style.DIM)


def _title(outcome: ReleaseOutcome) -> str:
    outputs = outcome.outputs
    match outcome.terminal:
        case "done" if outputs.published:
            return f"Released {outputs.package_name} {outputs.new_version}"
        case "done":
            return f"Prepared {outputs.package_name} {outputs.new_version} (not published)"
        case "manual_intervention":
            return "Release needs manual intervention"
        case _:
            return "Release aborted"


def _print_detail(reason: ReleaseFailure, console: ConsoleProtocol) -> None:
    match reason:
        case ValidationFailed(output=output) | DryRunFailed(output=output) if output:
            for line in output.splitlines():
                console.print(f"  {line}", Style.DIM)
        case _:
            pass
