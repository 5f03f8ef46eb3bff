from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path

import pytest

from shipcrate.core.result import Err, Ok, Result
from shipcrate.platform.process import ProcessError
from shipcrate.release.domain.model import CheckStatus
from shipcrate.release.infra import github_checks as checks_mod
from shipcrate.release.infra.github_checks import GitHubCheckSource

NOW = datetime(2026, 1, 1, tzinfo=UTC)

CHECK_RUNS = {
    "total_count": 4,
    "check_runs": [
        {"id": 10, "name": "test", "status": "completed", "conclusion": "failure"},
        {"id": 12, "name": "test", "status": "completed", "conclusion": "success"},
        {"id": 11, "name": "lint", "status": "in_progress", "conclusion": None},
        {"id": 13, "name": "docs", "status": "completed", "conclusion": "skipped"},
        {"id": 14, "name": "ci/legacy", "status": "completed", "conclusion": "cancelled"},
    ],
}

STATUSES = {
    "state": "pending",
    "statuses": [
        {"context": "ci/external", "state": "error"},
        {"context": "ci/external", "state": "success"},
        {"context": "ci/queued", "state": "pending"},
        {"context": "ci/legacy", "state": "success"},
    ],
}


def _no_sleep(seconds: float) -> None:
    del seconds


def _err(stderr: str) -> Err[ProcessError]:
    return Err(ProcessError(("gh", "api"), 1, stdout="", stderr=stderr))


class FakeGh:
    def __init__(self, responses: list[Result[str, ProcessError]] | None = None) -> None:
        self.calls: list[list[str]] = []
        self.envs: list[Mapping[str, str] | None] = []
        self._responses = responses

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
        if self._responses is not None:
            return self._responses.pop(0)
        if cmd[-1].split("?")[0].endswith("/check-runs"):
            return Ok(json.dumps(CHECK_RUNS))
        return Ok(json.dumps(STATUSES))


@pytest.fixture
def source(tmp_path: Path) -> GitHubCheckSource:
    return GitHubCheckSource(
        tmp_path, repository="acme/widget", token="gh-token", clock=lambda: NOW
    )


def test_poll_merges_check_runs_and_statuses(
    monkeypatch: pytest.MonkeyPatch, source: GitHubCheckSource
) -> None:
    fake = FakeGh()
    monkeypatch.setattr(checks_mod, "run_process", fake)
    names = frozenset({"test", "lint", "docs", "ci/external", "ci/queued", "ci/legacy", "nope"})

    result = source.poll(names, ref="abc123")

    assert isinstance(result, Ok)
    status = {name: r.status for name, r in result.value.items()}
    assert status == {
        "test": CheckStatus.SUCCESS,
        "lint": CheckStatus.PENDING,
        "docs": CheckStatus.SUCCESS,
        "ci/external": CheckStatus.FAILURE,
        "ci/queued": CheckStatus.PENDING,
        "ci/legacy": CheckStatus.FAILURE,
    }
    assert all(r.observed_at == NOW for r in result.value.values())
    assert fake.calls[0] == [
        "gh",
        "api",
        "repos/acme/widget/commits/abc123/check-runs?per_page=100",
    ]
    assert fake.envs[0] == {"GH_TOKEN": "gh-token"}


def test_poll_retries_transient_error(
    monkeypatch: pytest.MonkeyPatch, source: GitHubCheckSource
) -> None:
    fake = FakeGh(
        [_err("HTTP 502 Bad Gateway"), Ok(json.dumps(CHECK_RUNS)), Ok(json.dumps(STATUSES))]
    )
    monkeypatch.setattr(checks_mod, "run_process", fake)
    monkeypatch.setattr(checks_mod, "sleep", _no_sleep)

    result = source.poll(frozenset({"test"}), ref="abc")

    assert isinstance(result, Ok)
    assert len(fake.calls) == 3


def test_poll_does_not_retry_not_found(
    monkeypatch: pytest.MonkeyPatch, source: GitHubCheckSource
) -> None:
    fake = FakeGh([_err("HTTP 404 Not Found")])
    monkeypatch.setattr(checks_mod, "run_process", fake)
    monkeypatch.setattr(checks_mod, "sleep", _no_sleep)

    result = source.poll(frozenset({"test"}), ref="abc")

    assert result == Err("HTTP 404 Not Found")
    assert len(fake.calls) == 1


def test_poll_invalid_json(monkeypatch: pytest.MonkeyPatch, source: GitHubCheckSource) -> None:
    monkeypatch.setattr(checks_mod, "run_process", FakeGh([Ok("<html>")]))

    result = source.poll(frozenset({"test"}), ref="abc")

    assert isinstance(result, Err)
    assert "invalid JSON" in result.error
