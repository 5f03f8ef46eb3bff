from __future__ import annotations

import pytest

from shipcrate.core.result import Err, Ok
from shipcrate.release.domain.errors import InvalidBumpKind, InvalidVersion
from shipcrate.release.domain.version import (
    BumpKind,
    Version,
    bump,
    parse_bump_kind,
    parse_tag_version,
    parse_version,
)


@pytest.mark.parametrize(
    ("kind", "expected"),
    [("patch", "1.4.10"), ("minor", "1.5.0"), ("major", "2.0.0")],
)
def test_bump_from_1_4_9(kind: str, expected: str) -> None:
    result = bump("1.4.9", kind)
    assert isinstance(result, Ok)
    assert str(result.value) == expected


def test_bump_from_zero() -> None:
    assert bump("0.0.0", "patch") == Ok(Version(0, 0, 1))


def test_bump_drops_prerelease_and_build() -> None:
    result = bump("1.0.0-rc.1+build.5", "patch")
    assert result == Ok(Version(1, 0, 1))


def test_bump_kind_is_checked_before_version() -> None:
    result = bump("not-a-version", "huge")
    assert result == Err(InvalidBumpKind(value="huge"))


def test_bump_invalid_version() -> None:
    result = bump("1.2", "patch")
    assert result == Err(InvalidVersion(value="1.2"))


def test_parse_version_keeps_metadata() -> None:
    parsed = parse_version("2.0.0-beta.1+sha.abc")
    assert isinstance(parsed, Ok)
    assert parsed.value.pre == "beta.1"
    assert parsed.value.build == "sha.abc"
    assert str(parsed.value) == "2.0.0-beta.1+sha.abc"


@pytest.mark.parametrize("text", ["01.2.3", "1.2.3.4", "v1.2.3", "", "1.2.x"])
def test_parse_version_rejects(text: str) -> None:
    assert isinstance(parse_version(text), Err)


def test_parse_bump_kind_is_case_insensitive() -> None:
    assert parse_bump_kind(" Minor ") == Ok(BumpKind.MINOR)


def test_parse_tag_version_strips_v() -> None:
    assert parse_tag_version("v1.2.3") == Ok(Version(1, 2, 3))
    assert parse_tag_version("1.2.3") == Ok(Version(1, 2, 3))


def test_parse_tag_version_reports_original_text() -> None:
    assert parse_tag_version("vx") == Err(InvalidVersion(value="vx"))


def test_versions_order() -> None:
    assert Version(1, 4, 9) < Version(1, 4, 10) < Version(1, 5, 0)
