"""Git repository abstraction.

This module provides the Repository class for single-repo git operations.
All operations return Result types for proper error handling.

Usage:
    repo = Repository(Path("/path/to/crate"))

    match repo.status():
        case Ok(status):
            print(f"Branch: {status.branch}")
            if status.is_clean:
                print("Working tree clean")
        case Err(e):
            print(f"Error: {e.message}")

    match repo.push("origin", ["main", "refs/tags/v1.2.3"], atomic=True):
        case Ok(_):
            print("pushed")
        case Err(e):
            print(f"Push failed: {e.message}")
"""

from __future__ import annotations

import base64
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from shipcrate.core.result import Err, Ok, Result
from shipcrate.platform.process import ProcessError
from shipcrate.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0
_NETWORK_COMMANDS = frozenset({"fetch", "pull", "push", "clone", "ls-remote"})

__all__ = [
    "GitError",
    "GitIdentity",
    "GitStatus",
    "Repository",
    "StatusEntry",
    "auth_header_config",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed
        message: Error message (stderr followed by stdout)
        returncode: Process return code
        timed_out: True if git was killed for exceeding its timeout
    """

    command: str
    message: str
    returncode: int = 1
    timed_out: bool = False


@dataclass(frozen=True, slots=True)
class GitIdentity:
    """Author/committer identity applied per command, never written to config."""

    name: str
    email: str

    def config(self) -> tuple[tuple[str, str], ...]:
        return (("user.name", self.name), ("user.email", self.email))


@dataclass(frozen=True, slots=True)
class StatusEntry:
    """A single entry in git status.

    Attributes:
        xy: Two-character status code (e.g., "M ", " M", "??")
        path: File path
    """

    xy: str
    path: str


@dataclass(frozen=True, slots=True)
class GitStatus:
    """Parsed `git status --porcelain=v1 -b` output."""

    branch: str
    entries: tuple[StatusEntry, ...] = field(default_factory=tuple)

    @property
    def is_clean(self) -> bool:
        return len(self.entries) == 0

    @property
    def changed_paths(self) -> list[str]:
        return [e.path for e in self.entries]


def auth_header_config(token: str | None) -> tuple[tuple[str, str], ...]:
    """Per-command config that authenticates HTTPS pushes with a token.

    This mirrors what actions/checkout does, without persisting the secret in
    .git/config. The leading empty value clears headers configured earlier
    (e.g. by checkout) so only one Authorization header is sent.
    """
    if not token:
        return ()
    basic = base64.b64encode(f"x-access-token:{token}".encode()).decode("ascii")
    return (("http.extraheader", ""), ("http.extraheader", f"AUTHORIZATION: basic {basic}"))


class Repository:
    """Git repository abstraction.

    Provides methods for the git operations a release needs on a single
    repository. All methods that can fail return Result types.

    Attributes:
        path: Path to the repository root
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        """Check if this is a valid git repository."""
        return (self.path / ".git").exists()

    def status(self) -> Result[GitStatus, GitError]:
        """Get repository status."""
        result = self._run(["status", "--porcelain=v1", "-b"])
        match result:
            case Err(e):
                return Err(_git_error("status", e, "git status failed"))
            case Ok(stdout):
                return Ok(self._parse_status(stdout))

    def current_branch(self) -> str | None:
        """Get current branch name; None on detached HEAD or error."""
        result = self._run(["rev-parse", "--abbrev-ref", "HEAD"])
        match result:
            case Ok(stdout):
                branch = stdout.strip()
                return None if branch == "HEAD" else branch
            case Err(_):
                return None

    def head_sha(self) -> Result[str, GitError]:
        result = self._run(["rev-parse", "HEAD"])
        match result:
            case Err(e):
                return Err(_git_error("rev-parse", e, "cannot resolve HEAD"))
            case Ok(stdout):
                return Ok(stdout.strip())

    def add(self, paths: Sequence[str]) -> Result[None, GitError]:
        result = self._run(["add", "--", *paths])
        if isinstance(result, Err):
            return Err(_git_error("add", result.error, "git add failed"))
        return Ok(None)

    def has_staged_changes(self) -> bool:
        # --quiet exits 1 when there are differences
        result = self._run(["diff", "--cached", "--quiet"])
        return isinstance(result, Err) and result.error.returncode == 1

    def commit(self, message: str, *, identity: GitIdentity) -> Result[str, GitError]:
        """Commit staged changes; returns the new commit sha."""
        result = self._run(["commit", "--no-verify", "-m", message], config=identity.config())
        if isinstance(result, Err):
            return Err(_git_error("commit", result.error, "git commit failed"))
        return self.head_sha()

    def tag_exists(self, tag: str) -> bool:
        result = self._run(["rev-parse", "--quiet", "--verify", f"refs/tags/{tag}"])
        return isinstance(result, Ok)

    def remote_tag_exists(
        self,
        remote: str,
        tag: str,
        *,
        token: str | None = None,
    ) -> Result[bool, GitError]:
        result = self._run(
            ["ls-remote", "--tags", remote, f"refs/tags/{tag}"],
            config=auth_header_config(token),
        )
        match result:
            case Err(e):
                return Err(_git_error("ls-remote", e, "git ls-remote failed"))
            case Ok(stdout):
                return Ok(stdout.strip() != "")

    def create_tag(
        self,
        tag: str,
        *,
        message: str,
        target: str,
        identity: GitIdentity,
    ) -> Result[None, GitError]:
        """Create an annotated tag pointing at target."""
        result = self._run(["tag", "-a", tag, "-m", message, target], config=identity.config())
        if isinstance(result, Err):
            return Err(_git_error("tag", result.error, "git tag failed"))
        return Ok(None)

    def delete_tag(self, tag: str) -> Result[None, GitError]:
        result = self._run(["tag", "-d", tag])
        if isinstance(result, Err):
            return Err(_git_error("tag -d", result.error, "git tag -d failed"))
        return Ok(None)

    def push(
        self,
        remote: str,
        refspecs: Sequence[str],
        *,
        atomic: bool = False,
        token: str | None = None,
    ) -> Result[str, GitError]:
        args = ["push"]
        if atomic:
            args.append("--atomic")
        args.extend(["--porcelain", remote, *refspecs])
        result = self._run(args, config=auth_header_config(token))
        match result:
            case Err(e):
                return Err(_git_error("push", e, "git push failed"))
            case Ok(stdout):
                return Ok(stdout.strip())

    def delete_remote_tag(
        self,
        remote: str,
        tag: str,
        *,
        token: str | None = None,
    ) -> Result[None, GitError]:
        result = self.push(remote, [f":refs/tags/{tag}"], token=token)
        if isinstance(result, Err):
            return result
        return Ok(None)

    def revert(self, sha: str, *, identity: GitIdentity) -> Result[str, GitError]:
        """Create a commit undoing sha; returns the revert commit sha."""
        result = self._run(["revert", "--no-edit", sha], config=identity.config())
        if isinstance(result, Err):
            return Err(_git_error("revert", result.error, "git revert failed"))
        return self.head_sha()

    def reset_hard(self, target: str) -> Result[None, GitError]:
        result = self._run(["reset", "--hard", target])
        if isinstance(result, Err):
            return Err(_git_error("reset", result.error, "git reset failed"))
        return Ok(None)

    def _run(
        self,
        args: list[str],
        *,
        config: Sequence[tuple[str, str]] = (),
    ) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        command = args[0] if args else ""
        timeout = (
            _GIT_NETWORK_TIMEOUT_SECONDS if command in _NETWORK_COMMANDS else _GIT_TIMEOUT_SECONDS
        )
        prefix: list[str] = []
        for key, value in config:
            prefix.extend(["-c", f"{key}={value}"])
        return run_process(
            ["git", "-C", str(self.path), *prefix, *args],
            cwd=self.path,
            env={"GIT_TERMINAL_PROMPT": "0"},
            timeout=timeout,
        )

    def _parse_status(self, output: str) -> GitStatus:
        lines = [ln for ln in output.splitlines() if ln.strip()]

        if not lines:
            return GitStatus(branch="")

        # First line is branch info: ## branch...upstream [ahead N, behind M]
        branch = self._parse_branch_line(lines[0])

        entries: list[StatusEntry] = []
        for line in lines[1:]:
            entry = self._parse_entry(line)
            if entry:
                entries.append(entry)

        return GitStatus(branch=branch, entries=tuple(entries))

    def _parse_branch_line(self, line: str) -> str:
        s = line.strip()
        if s.startswith("##"):
            s = s[2:].lstrip()

        s = s.split(" [", 1)[0]
        return s.split("...", 1)[0].strip()

    def _parse_entry(self, line: str) -> StatusEntry | None:
        if len(line) < 4:
            return None

        return StatusEntry(xy=line[:2], path=line[3:])


def _git_error(command: str, error: ProcessError, fallback: str) -> GitError:
    return GitError(
        command=command,
        message=error.output or fallback,
        returncode=error.returncode,
        timed_out=error.timed_out,
    )
