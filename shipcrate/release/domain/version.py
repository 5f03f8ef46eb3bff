from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum

from shipcrate.core.result import Err, Ok, Result
from shipcrate.release.domain.errors import InvalidBumpKind, InvalidVersion

# SemVer 2.0.0 core with optional pre-release and build metadata, which are
# carried verbatim but never interpreted.
_VERSION_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)


class BumpKind(StrEnum):
    PATCH = "patch"
    MINOR = "minor"
    MAJOR = "major"


@dataclass(frozen=True, slots=True, order=True)
class Version:
    major: int
    minor: int
    patch: int
    pre: str | None = None
    build: str | None = None

    def __str__(self) -> str:
        out = f"{self.major}.{self.minor}.{self.patch}"
        if self.pre:
            out += f"-{self.pre}"
        if self.build:
            out += f"+{self.build}"
        return out

    def bump(self, kind: BumpKind) -> Version:
        match kind:
            case BumpKind.MAJOR:
                return Version(self.major + 1, 0, 0)
            case BumpKind.MINOR:
                return Version(self.major, self.minor + 1, 0)
            case BumpKind.PATCH:
                return Version(self.major, self.minor, self.patch + 1)
            case _:
                raise AssertionError(f"unexpected bump kind: {kind}")


def parse_version(text: str) -> Result[Version, InvalidVersion]:
    m = _VERSION_RE.match(text.strip())
    if m is None:
        return Err(InvalidVersion(value=text))
    return Ok(
        Version(
            major=int(m.group(1)),
            minor=int(m.group(2)),
            patch=int(m.group(3)),
            pre=m.group(4),
            build=m.group(5),
        )
    )


def parse_bump_kind(text: str) -> Result[BumpKind, InvalidBumpKind]:
    token = text.strip().lower()
    try:
        return Ok(BumpKind(token))
    except ValueError:
        return Err(InvalidBumpKind(value=text))


def bump(current: str, kind: str) -> Result[Version, InvalidBumpKind | InvalidVersion]:
    """Compute the next release version from raw strings.

    The bump kind is validated first so a typo fails before the version is
    even looked at.
    """
    parsed_kind = parse_bump_kind(kind)
    if isinstance(parsed_kind, Err):
        return parsed_kind
    parsed = parse_version(current)
    if isinstance(parsed, Err):
        return parsed
    return Ok(parsed.value.bump(parsed_kind.value))


def parse_tag_version(tag: str) -> Result[Version, InvalidVersion]:
    """Parse a version as written in a tag, where a leading `v` is customary."""
    text = tag.strip()
    if text[:1] in ("v", "V"):
        text = text[1:]
    parsed = parse_version(text)
    if isinstance(parsed, Err):
        return Err(InvalidVersion(value=tag))
    return parsed
