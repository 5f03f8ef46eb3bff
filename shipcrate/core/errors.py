"""Error codes for CLI exit status.

A release run can end in three very different places: nothing happened,
something happened and was undone, or something happened that a human has to
clean up. The exit codes keep those apart so CI can react to each.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    These values are used as process exit codes and should remain stable:
    - 0: Success (including dry runs and non-publishing branches)
    - 1: User error (bad input, missing token); no side effects
    - 2: Status checks failed or timed out; no side effects
    - 3: Local failure (manifest, validation, commit); working tree restored
    - 4: Rolled back after a durable side effect (commit, tag, push)
    - 5: Manual intervention required; remote state may be inconsistent
    - 130: Cancelled by the hosting environment
    """

    OK = 0
    USER_ERROR = 1
    CHECKS_FAILED = 2
    LOCAL_FAILURE = 3
    ROLLED_BACK = 4
    MANUAL_INTERVENTION = 5
    CANCELLED = 130

    def __str__(self) -> str:
        """Return human-readable name."""
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @property
    def is_error(self) -> bool:
        return self != ErrorCode.OK
