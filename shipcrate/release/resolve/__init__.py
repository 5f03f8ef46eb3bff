"""Input resolution and normalization."""

from __future__ import annotations

from shipcrate.release.resolve.inputs import (
    ValidatedInputs,
    parse_bool,
    parse_check_names,
    validate_branch,
    validate_inputs,
)

__all__ = [
    "ValidatedInputs",
    "parse_bool",
    "parse_check_names",
    "validate_branch",
    "validate_inputs",
]
