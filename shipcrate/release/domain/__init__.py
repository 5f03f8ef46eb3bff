"""Release domain: versions, plans, outcomes and the error taxonomy.

Nothing here performs I/O.
"""

from __future__ import annotations

from shipcrate.release.domain.model import (
    CheckResult,
    CheckStatus,
    Outputs,
    ReleaseInputs,
    ReleaseOutcome,
    ReleasePlan,
    RunState,
    render_tag,
)
from shipcrate.release.domain.version import (
    BumpKind,
    Version,
    bump,
    parse_bump_kind,
    parse_tag_version,
    parse_version,
)

__all__ = [
    "BumpKind",
    "CheckResult",
    "CheckStatus",
    "Outputs",
    "ReleaseInputs",
    "ReleaseOutcome",
    "ReleasePlan",
    "RunState",
    "Version",
    "bump",
    "parse_bump_kind",
    "parse_tag_version",
    "parse_version",
    "render_tag",
]
