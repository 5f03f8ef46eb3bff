"""Git operations for a single repository."""

from .repository import (
    GitError,
    GitIdentity,
    GitStatus,
    Repository,
    StatusEntry,
    auth_header_config,
)

__all__ = [
    "GitError",
    "GitIdentity",
    "GitStatus",
    "Repository",
    "StatusEntry",
    "auth_header_config",
]
