from __future__ import annotations

from dataclasses import replace

import pytest

from shipcrate.core.result import Err, Ok
from shipcrate.release.domain.errors import (
    InvalidBranch,
    InvalidBumpKind,
    InvalidInput,
    MissingToken,
)
from shipcrate.release.domain.model import ReleaseInputs
from shipcrate.release.domain.version import BumpKind
from shipcrate.release.resolve.inputs import (
    parse_bool,
    parse_check_names,
    validate_branch,
    validate_inputs,
)

BASE = ReleaseInputs(
    branch="main",
    bump_type="patch",
    registry_token="cargo-token",
    repo_token="gh-token",
)


def test_valid_inputs() -> None:
    result = validate_inputs(BASE, publish_branch="main")

    assert isinstance(result, Ok)
    assert result.value.bump is BumpKind.PATCH
    assert result.value.branch == "main"


def test_bump_type_error_wins_over_everything_else() -> None:
    inputs = replace(BASE, bump_type="huge", branch="", repo_token=None, registry_token=None)

    result = validate_inputs(inputs, publish_branch="main")

    assert result == Err(InvalidBumpKind(value="huge"))


def test_missing_repo_token() -> None:
    result = validate_inputs(replace(BASE, repo_token=None), publish_branch="main")
    assert isinstance(result, Err)
    assert isinstance(result.error, MissingToken)


def test_registry_token_only_needed_on_publish_branch() -> None:
    inputs = replace(BASE, branch="feature/x", registry_token=None)

    assert isinstance(validate_inputs(inputs, publish_branch="main"), Ok)
    assert isinstance(
        validate_inputs(replace(inputs, branch="main"), publish_branch="main"), Err
    )


def test_dry_run_needs_no_tokens() -> None:
    inputs = replace(BASE, dry_run=True, registry_token=None, repo_token=None)
    assert isinstance(validate_inputs(inputs, publish_branch="main"), Ok)


@pytest.mark.parametrize(
    ("changes", "field"),
    [
        ({"git_user_name": "  "}, "git_user_name"),
        ({"git_user_email": "nobody"}, "git_user_email"),
        ({"check_wait_interval": -1}, "check_wait_interval"),
        ({"check_timeout_count": 0}, "check_timeout_count"),
        ({"rust_toolchain": "stable nightly"}, "rust_toolchain"),
    ],
)
def test_invalid_fields(changes: dict[str, object], field: str) -> None:
    inputs = replace(BASE, **changes)  # type: ignore[arg-type]
    result = validate_inputs(inputs, publish_branch="main")

    assert isinstance(result, Err)
    assert isinstance(result.error, InvalidInput)
    assert result.error.field == field


def test_zero_interval_is_allowed() -> None:
    assert isinstance(
        validate_inputs(replace(BASE, check_wait_interval=0), publish_branch="main"), Ok
    )


class TestValidateBranch:
    def test_strips_refs_heads(self) -> None:
        assert validate_branch("refs/heads/release/1.x") == Ok("release/1.x")

    @pytest.mark.parametrize(
        "branch",
        ["", "a b", "a..b", "-x", "x.lock", "x/", "a~1", "a:b", "a@{1}"],
    )
    def test_rejects(self, branch: str) -> None:
        result = validate_branch(branch)
        assert isinstance(result, Err)
        assert isinstance(result.error, InvalidBranch)


class TestParseBool:
    @pytest.mark.parametrize("raw", ["true", "TRUE", "1", "yes", " on "])
    def test_true(self, raw: str) -> None:
        assert parse_bool(raw, field_name="dry_run") == Ok(True)

    @pytest.mark.parametrize("raw", ["false", "0", "no", "off", ""])
    def test_false(self, raw: str) -> None:
        assert parse_bool(raw, field_name="dry_run") == Ok(False)

    def test_garbage(self) -> None:
        result = parse_bool("maybe", field_name="dry_run")
        assert isinstance(result, Err)
        assert result.error.field == "dry_run"


def test_parse_check_names() -> None:
    assert parse_check_names(" ci / test, lint ,,") == frozenset({"ci / test", "lint"})
    assert parse_check_names("") == frozenset()
