"""Input normalization and validation.

Everything here is pure: it looks at the values it is given and nothing else,
so a malformed invocation fails before the repository is touched.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from shipcrate.core.result import Err, Ok, Result
from shipcrate.release.domain.errors import (
    InputValidationError,
    InvalidBranch,
    InvalidInput,
    MissingToken,
)
from shipcrate.release.domain.model import ReleaseInputs
from shipcrate.release.domain.version import BumpKind, parse_bump_kind

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off", ""})

# Subset of git-check-ref-format rules that matter for branch inputs.
_BAD_REF_CHARS = re.compile(r"[\s~^:?*\[\\\x00-\x1f\x7f]")


@dataclass(frozen=True, slots=True)
class ValidatedInputs:
    bump: BumpKind
    branch: str


def parse_check_names(raw: str) -> frozenset[str]:
    """Parse the comma-separated wire form of `wait_for_checks`."""
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


def parse_bool(raw: str, *, field_name: str) -> Result[bool, InvalidInput]:
    value = raw.strip().lower()
    if value in _TRUE:
        return Ok(True)
    if value in _FALSE:
        return Ok(False)
    return Err(InvalidInput(field=field_name, reason=f"expected true/false, got {raw!r}"))


def validate_branch(branch: str) -> Result[str, InvalidBranch]:
    name = branch.strip()
    if not name:
        return Err(InvalidBranch(branch=branch, reason="empty"))
    if name.startswith("refs/heads/"):
        name = name.removeprefix("refs/heads/")
    if _BAD_REF_CHARS.search(name):
        return Err(InvalidBranch(branch=branch, reason="contains forbidden characters"))
    if ".." in name or "@{" in name or "//" in name:
        return Err(InvalidBranch(branch=branch, reason="contains a forbidden sequence"))
    if name.startswith(("-", "/", ".")) or name.endswith(("/", ".", ".lock")):
        return Err(InvalidBranch(branch=branch, reason="not a valid git ref name"))
    return Ok(name)


def validate_inputs(
    inputs: ReleaseInputs,
    *,
    publish_branch: str,
) -> Result[ValidatedInputs, InputValidationError]:
    """Check run inputs; returns the parsed bump kind and normalized branch.

    The bump kind is checked first so an invalid `bump_type` is always the
    reported error, whatever else is wrong.
    """
    kind = parse_bump_kind(inputs.bump_type)
    if isinstance(kind, Err):
        return kind

    branch = validate_branch(inputs.branch)
    if isinstance(branch, Err):
        return branch

    if not inputs.git_user_name.strip():
        return Err(InvalidInput(field="git_user_name", reason="empty"))
    if "@" not in inputs.git_user_email or any(c.isspace() for c in inputs.git_user_email):
        return Err(InvalidInput(field="git_user_email", reason=f"{inputs.git_user_email!r}"))

    if inputs.check_wait_interval < 0:
        return Err(InvalidInput(field="check_wait_interval", reason="must be >= 0 seconds"))
    if inputs.check_timeout_count < 1:
        return Err(InvalidInput(field="check_timeout_count", reason="must be >= 1"))

    if inputs.rust_toolchain is not None and (
        not inputs.rust_toolchain.strip() or any(c.isspace() for c in inputs.rust_toolchain)
    ):
        return Err(InvalidInput(field="rust_toolchain", reason=f"{inputs.rust_toolchain!r}"))

    if not inputs.dry_run:
        if not inputs.repo_token:
            return Err(MissingToken(name="repository write token"))
        if branch.value == publish_branch and not inputs.registry_token:
            return Err(MissingToken(name="registry token"))

    return Ok(ValidatedInputs(bump=kind.value, branch=branch.value))
