"""Check status from the GitHub API, through the gh CLI.

Two sources are merged: check runs (GitHub Actions jobs and apps) and the
legacy combined commit status (external CI contexts). A name may match
either.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from pathlib import Path
from time import sleep

from shipcrate.core.result import Err, Ok, Result
from shipcrate.core.structured import as_obj_list, as_str_dict, get_int, get_list, get_str
from shipcrate.platform.process import run as run_process
from shipcrate.release.domain.model import CheckResult, CheckStatus
from shipcrate.release.infra.timeouts import (
    GH_READ_RETRY_ATTEMPTS,
    GH_READ_RETRY_DELAY_SECONDS,
    GH_TIMEOUT_SECONDS,
)
from shipcrate.release.infra.transient import is_transient

_PASSING_CONCLUSIONS = frozenset({"success", "neutral", "skipped"})


class GitHubCheckSource:
    def __init__(
        self,
        root: Path,
        *,
        repository: str,
        token: str | None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._root = root
        self._repository = repository
        self._token = token
        self._clock = clock or (lambda: datetime.now(UTC))

    def poll(self, names: frozenset[str], *, ref: str) -> Result[Mapping[str, CheckResult], str]:
        runs = self._api_json(f"repos/{self._repository}/commits/{ref}/check-runs?per_page=100")
        if isinstance(runs, Err):
            return runs
        statuses = self._api_json(f"repos/{self._repository}/commits/{ref}/status?per_page=100")
        if isinstance(statuses, Err):
            return statuses

        observed: dict[str, CheckStatus] = {}
        observed.update(_parse_commit_statuses(statuses.value))
        # Check runs win over a status context of the same name.
        observed.update(_parse_check_runs(runs.value))

        now = self._clock()
        return Ok(
            {
                name: CheckResult(name=name, status=observed[name], observed_at=now)
                for name in names
                if name in observed
            }
        )

    def _api_json(self, endpoint: str) -> Result[object, str]:
        text = self._gh_read(["gh", "api", endpoint])
        if isinstance(text, Err):
            return text
        try:
            obj: object = json.loads(text.value)
        except json.JSONDecodeError as e:
            return Err(f"gh api returned invalid JSON for {endpoint}: {e}")
        return Ok(obj)

    def _gh_read(self, cmd: list[str]) -> Result[str, str]:
        env: dict[str, str] = {}
        if self._token:
            env["GH_TOKEN"] = self._token

        attempts = max(1, GH_READ_RETRY_ATTEMPTS)
        for attempt in range(attempts):
            result = run_process(cmd, cwd=self._root, env=env, timeout=GH_TIMEOUT_SECONDS)
            if isinstance(result, Ok):
                return result

            error = result.error
            if attempt < attempts - 1 and is_transient(error):
                sleep(GH_READ_RETRY_DELAY_SECONDS * (attempt + 1))
                continue
            return Err(error.stderr.strip() or str(error))

        return Err(f"{' '.join(cmd)} failed")


def _parse_check_runs(obj: object) -> dict[str, CheckStatus]:
    data = as_str_dict(obj)
    if data is None:
        return {}
    runs = as_obj_list(get_list(data, "check_runs") or [])
    if runs is None:
        return {}

    # Re-runs produce several runs with one name; the newest has the highest id.
    latest: dict[str, tuple[int, CheckStatus]] = {}
    for run_obj in runs:
        run = as_str_dict(run_obj)
        if run is None:
            continue
        name = get_str(run, "name")
        if name is None:
            continue
        run_id = get_int(run, "id") or 0
        status = _check_run_status(get_str(run, "status"), get_str(run, "conclusion"))
        previous = latest.get(name)
        if previous is None or run_id >= previous[0]:
            latest[name] = (run_id, status)

    return {name: status for name, (_, status) in latest.items()}


def _check_run_status(status: str | None, conclusion: str | None) -> CheckStatus:
    if status != "completed":
        return CheckStatus.PENDING
    if conclusion in _PASSING_CONCLUSIONS:
        return CheckStatus.SUCCESS
    return CheckStatus.FAILURE


def _parse_commit_statuses(obj: object) -> dict[str, CheckStatus]:
    data = as_str_dict(obj)
    if data is None:
        return {}
    statuses = as_obj_list(get_list(data, "statuses") or [])
    if statuses is None:
        return {}

    out: dict[str, CheckStatus] = {}
    for status_obj in statuses:
        entry = as_str_dict(status_obj)
        if entry is None:
            continue
        context = get_str(entry, "context")
        state = get_str(entry, "state")
        if context is None or context in out:
            # Statuses are newest first; keep the first one seen per context.
            continue
        match state:
            case "success":
                out[context] = CheckStatus.SUCCESS
            case "failure" | "error":
                out[context] = CheckStatus.FAILURE
            case _:
                out[context] = CheckStatus.PENDING
    return out
