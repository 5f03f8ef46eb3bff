from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

import pytest

from shipcrate.core.config import ValidationCommand
from shipcrate.core.result import Err, Ok, Result
from shipcrate.output.console import MockConsole
from shipcrate.platform.process import ProcessError
from shipcrate.release.domain.errors import ValidationFailed
from shipcrate.release.infra import validation as validation_mod
from shipcrate.release.infra.validation import CommandValidationRunner

CHECKS = (
    ValidationCommand("fmt", ("cargo", "fmt", "--check")),
    ValidationCommand("test", ("cargo", "test")),
    ValidationCommand("doc", ("cargo", "doc")),
)


class FakeRun:
    def __init__(self, fail_on: str | None = None, *, timed_out: bool = False) -> None:
        self.calls: list[list[str]] = []
        self.envs: list[Mapping[str, str] | None] = []
        self._fail_on = fail_on
        self._timed_out = timed_out

    def __call__(
        self,
        cmd: list[str],
        *,
        cwd: Path,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> Result[str, ProcessError]:
        del cwd, timeout
        self.calls.append(cmd)
        self.envs.append(env)
        if self._fail_on is not None and self._fail_on in cmd:
            lines = "\n".join(f"line {i}" for i in range(100))
            return Err(
                ProcessError(tuple(cmd), 101, stdout=lines, stderr="", timed_out=self._timed_out)
            )
        return Ok("")


def test_runs_all_checks_in_order(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    fake = FakeRun()
    monkeypatch.setattr(validation_mod, "run_process", fake)
    console = MockConsole()

    result = CommandValidationRunner(tmp_path, console=console).run(CHECKS)

    assert result == Ok(None)
    assert [c[1] for c in fake.calls] == ["fmt", "test", "doc"]
    assert console.find("$ cargo fmt --check")
    assert fake.envs[0] == {}


def test_stops_at_first_failure_with_output_tail(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    fake = FakeRun(fail_on="test")
    monkeypatch.setattr(validation_mod, "run_process", fake)

    result = CommandValidationRunner(tmp_path, console=MockConsole()).run(CHECKS)

    assert isinstance(result, Err)
    assert isinstance(result.error, ValidationFailed)
    assert result.error.name == "test"
    assert result.error.output.splitlines()[-1] == "line 99"
    assert len(result.error.output.splitlines()) == 40
    assert len(fake.calls) == 2


def test_timeout_is_mentioned(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(validation_mod, "run_process", FakeRun(fail_on="fmt", timed_out=True))

    result = CommandValidationRunner(tmp_path, console=MockConsole(), timeout=5).run(CHECKS)

    assert isinstance(result, Err)
    assert result.error.name == "fmt"
    assert "timed out after 5s" in result.error.output


def test_toolchain_is_pinned(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    fake = FakeRun()
    monkeypatch.setattr(validation_mod, "run_process", fake)

    CommandValidationRunner(tmp_path, console=MockConsole(), toolchain="1.79.0").run(CHECKS[:1])

    assert fake.envs == [{"RUSTUP_TOOLCHAIN": "1.79.0"}]
