from __future__ import annotations

from pathlib import Path

import pytest
import typer

from shipcrate.cli.context import CLIContext
from shipcrate.core.config import ReleaseConfig
from shipcrate.core.errors import ErrorCode
from shipcrate.output.console import MockConsole
from shipcrate.release.domain.errors import CheckFailed, RegistryRejected
from shipcrate.release.domain.model import (
    DEFAULT_GIT_USER_EMAIL,
    DEFAULT_GIT_USER_NAME,
    Outputs,
    ReleaseInputs,
    ReleaseOutcome,
    RunState,
)

DONE = ReleaseOutcome(
    terminal="done",
    outputs=Outputs("widget", "1.4.9", "1.4.10", "v1.4.10", published=True),
    history=(RunState.VALIDATING, RunState.PUBLISHING, RunState.DONE),
)


@pytest.fixture(autouse=True)
def _no_actions_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GITHUB_OUTPUT", raising=False)
    monkeypatch.delenv("GITHUB_STEP_SUMMARY", raising=False)


def _ctx(tmp_path: Path, *, repository: str | None = "acme/widget") -> CLIContext:
    return CLIContext(
        root=tmp_path,
        config=ReleaseConfig(repository=repository),
        console=MockConsole(),
    )


class FakeOrchestrator:
    def __init__(self, outcome: ReleaseOutcome) -> None:
        self.outcome = outcome

    def run(self) -> ReleaseOutcome:
        return self.outcome


def _patch(
    monkeypatch: pytest.MonkeyPatch,
    ctx: CLIContext,
    outcome: ReleaseOutcome = DONE,
) -> list[ReleaseInputs]:
    import shipcrate.cli.commands.release_cmd as release_cmd

    seen: list[ReleaseInputs] = []

    def fake_build(_ctx: CLIContext, inputs: ReleaseInputs, **_: object) -> FakeOrchestrator:
        seen.append(inputs)
        return FakeOrchestrator(outcome)

    monkeypatch.setattr(release_cmd, "build_context", lambda **_: ctx)
    monkeypatch.setattr(release_cmd, "build_orchestrator", fake_build)
    return seen


def _release(**overrides: object) -> None:
    import shipcrate.cli.commands.release_cmd as release_cmd

    args: dict[str, object] = {
        "branch": "main",
        "bump_type": "patch",
        "dry_run": "false",
        "registry_token": "cargo-token",
        "repo_token": "gh-token",
        "rust_toolchain": None,
        "git_user_name": DEFAULT_GIT_USER_NAME,
        "git_user_email": DEFAULT_GIT_USER_EMAIL,
        "wait_for_checks": "",
        "check_wait_interval": 60,
        "check_timeout_count": 20,
        "root": None,
        "config": None,
    }
    args.update(overrides)
    release_cmd.release(**args)  # type: ignore[arg-type]


def test_release_success_writes_step_outputs(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    out = tmp_path / "github_output"
    summary = tmp_path / "summary.md"
    monkeypatch.setenv("GITHUB_OUTPUT", str(out))
    monkeypatch.setenv("GITHUB_STEP_SUMMARY", str(summary))
    ctx = _ctx(tmp_path)
    _patch(monkeypatch, ctx)

    _release()

    assert "published=true\n" in out.read_text(encoding="utf-8")
    assert "tag_name=v1.4.10\n" in out.read_text(encoding="utf-8")
    assert summary.read_text(encoding="utf-8").startswith("## Release finished")
    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.has_success()


def test_release_passes_parsed_inputs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    seen = _patch(monkeypatch, _ctx(tmp_path))

    _release(
        dry_run="TRUE",
        registry_token="",
        wait_for_checks="test, lint",
        rust_toolchain="1.79.0",
    )

    assert len(seen) == 1
    inputs = seen[0]
    assert inputs.dry_run is True
    assert inputs.registry_token is None
    assert inputs.wait_for_checks == frozenset({"test", "lint"})
    assert inputs.rust_toolchain == "1.79.0"


def test_release_rolled_back_exit_code(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    outcome = ReleaseOutcome(
        terminal="aborted",
        outputs=DONE.outputs,
        reason=RegistryRejected(detail="bad"),
        failed_in=RunState.PUBLISHING,
        rollback_actions=("deleted remote tag v1.4.10",),
        history=(RunState.PUBLISHING, RunState.ROLLING_BACK, RunState.ABORTED),
    )
    _patch(monkeypatch, _ctx(tmp_path), outcome)

    with pytest.raises(typer.Exit) as exc:
        _release()

    assert exc.value.exit_code == int(ErrorCode.ROLLED_BACK)


def test_release_checks_failed_exit_code(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    outcome = ReleaseOutcome(
        terminal="aborted",
        outputs=Outputs(),
        reason=CheckFailed(name="test"),
        failed_in=RunState.CHECK_GATING,
        history=(RunState.VALIDATING, RunState.CHECK_GATING, RunState.ABORTED),
    )
    _patch(monkeypatch, _ctx(tmp_path), outcome)

    with pytest.raises(typer.Exit) as exc:
        _release()

    assert exc.value.exit_code == int(ErrorCode.CHECKS_FAILED)


def test_release_rejects_bad_boolean(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    seen = _patch(monkeypatch, _ctx(tmp_path))

    with pytest.raises(typer.Exit) as exc:
        _release(dry_run="perhaps")

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)
    assert seen == []


def test_release_checks_need_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    ctx = _ctx(tmp_path, repository=None)
    seen = _patch(monkeypatch, ctx)

    with pytest.raises(typer.Exit) as exc:
        _release(wait_for_checks="test")

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)
    assert seen == []
