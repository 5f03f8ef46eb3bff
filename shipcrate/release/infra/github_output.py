"""GitHub Actions step outputs and job summary."""

from __future__ import annotations

import os
import uuid
from collections.abc import Mapping, Sequence
from pathlib import Path

from shipcrate.core.result import Err, Ok, Result
from shipcrate.release.domain.model import ReleaseOutcome

GITHUB_OUTPUT_ENV = "GITHUB_OUTPUT"
GITHUB_STEP_SUMMARY_ENV = "GITHUB_STEP_SUMMARY"


def output_path(env: Mapping[str, str] | None = None) -> Path | None:
    value = (env if env is not None else os.environ).get(GITHUB_OUTPUT_ENV, "").strip()
    return Path(value) if value else None


def summary_path(env: Mapping[str, str] | None = None) -> Path | None:
    value = (env if env is not None else os.environ).get(GITHUB_STEP_SUMMARY_ENV, "").strip()
    return Path(value) if value else None


def format_outputs(pairs: Sequence[tuple[str, str]]) -> str:
    lines: list[str] = []
    for key, value in pairs:
        if "\n" in value:
            delimiter = f"ghadelimiter_{uuid.uuid4().hex}"
            lines.extend([f"{key}<<{delimiter}", value, delimiter])
        else:
            lines.append(f"{key}={value}")
    return "\n".join(lines) + "\n"


def write_outputs(path: Path, pairs: Sequence[tuple[str, str]]) -> Result[None, str]:
    """Append key/value pairs to the file named by GITHUB_OUTPUT."""
    try:
        with path.open("a", encoding="utf-8") as handle:
            handle.write(format_outputs(pairs))
    except OSError as e:
        return Err(f"failed to write step outputs to {path}: {e}")
    return Ok(None)


def format_summary(outcome: ReleaseOutcome) -> str:
    outputs = outcome.outputs
    title = {
        "done": "Release finished",
        "aborted": "Release aborted",
        "manual_intervention": "Release needs manual intervention",
    }[outcome.terminal]

    lines = [f"## {title}", ""]
    lines.extend(["| | |", "|---|---|"])
    for key, value in outputs.as_pairs():
        lines.append(f"| {key} | `{value}` |" if value else f"| {key} | |")
    if outcome.reason is not None:
        lines.extend(["", f"**Reason** ({outcome.failed_in}): {outcome.reason.message}"])
    if outcome.rollback_actions:
        lines.extend(["", "**Rollback**", ""])
        lines.extend(f"- {action}" for action in outcome.rollback_actions)
    if outcome.left_behind:
        lines.extend(["", "**Left behind**", ""])
        lines.extend(f"- {item}" for item in outcome.left_behind)
    return "\n".join(lines) + "\n"


def write_summary(path: Path, outcome: ReleaseOutcome) -> Result[None, str]:
    try:
        with path.open("a", encoding="utf-8") as handle:
            handle.write(format_summary(outcome))
    except OSError as e:
        return Err(f"failed to write job summary to {path}: {e}")
    return Ok(None)
