"""Git side of a release: commit, tag, push, and their inverses."""

from __future__ import annotations

from collections.abc import Sequence

from shipcrate.core.result import Err, Ok, Result
from shipcrate.git.repository import GitError as RepoGitError
from shipcrate.git.repository import GitIdentity, Repository
from shipcrate.release.domain.errors import (
    AuthFailed,
    CommitFailed,
    DirtyWorkingTree,
    GitCommandFailed,
    GitError,
    InputValidationError,
    InvalidBranch,
    NothingToCommit,
    PushInterrupted,
    PushRejected,
    TagAlreadyExists,
    TagFailed,
)
from shipcrate.release.domain.model import ReleasePlan
from shipcrate.release.flow.ports import Author, CommitRef
from shipcrate.release.infra.transient import looks_like_auth_failure, looks_transient

_MISSING_REMOTE_REF_MARKERS = ("remote ref does not exist",)


class RepositoryGitPublisher:
    def __init__(self, repo: Repository, *, remote: str, token: str | None = None) -> None:
        self._repo = repo
        self._remote = remote
        self._token = token

    def ensure_ready(self, branch: str) -> Result[str, InputValidationError | GitError]:
        if not self._repo.exists():
            return Err(GitCommandFailed("rev-parse", f"not a git repository: {self._repo.path}"))

        current = self._repo.current_branch()
        if current is None:
            return Err(InvalidBranch(branch=branch, reason="HEAD is detached"))
        if current != branch:
            return Err(InvalidBranch(branch=branch, reason=f"checked out branch is {current}"))

        status = self._repo.status()
        if isinstance(status, Err):
            return Err(GitCommandFailed("status", status.error.message))
        if not status.value.is_clean:
            return Err(DirtyWorkingTree(paths=tuple(status.value.changed_paths)))

        head = self._repo.head_sha()
        if isinstance(head, Err):
            return Err(GitCommandFailed("rev-parse", head.error.message))
        return Ok(head.value)

    def commit_and_tag(
        self,
        plan: ReleasePlan,
        author: Author,
        *,
        message: str,
        paths: Sequence[str],
    ) -> Result[CommitRef, GitError]:
        if self._repo.tag_exists(plan.tag_name):
            return Err(TagAlreadyExists(tag=plan.tag_name))
        # An unreachable remote is not a collision; the atomic push still
        # refuses to overwrite a tag that appears later.
        on_remote = self._repo.remote_tag_exists(self._remote, plan.tag_name, token=self._token)
        if isinstance(on_remote, Ok) and on_remote.value:
            return Err(TagAlreadyExists(tag=plan.tag_name, remote=True))

        identity = GitIdentity(name=author.name, email=author.email)

        added = self._repo.add(paths)
        if isinstance(added, Err):
            return Err(CommitFailed(added.error.message))
        if not self._repo.has_staged_changes():
            return Err(NothingToCommit())

        committed = self._repo.commit(message, identity=identity)
        if isinstance(committed, Err):
            return Err(CommitFailed(committed.error.message))

        tagged = self._repo.create_tag(
            plan.tag_name,
            message=f"{plan.package_name} {plan.new_version}",
            target=committed.value,
            identity=identity,
        )
        if isinstance(tagged, Err):
            return Err(TagFailed(tagged.error.message))

        return Ok(CommitRef(sha=committed.value, tag=plan.tag_name))

    def push(self, branch: str, tag: str, *, include_tags: bool) -> Result[None, GitError]:
        refspecs = [f"refs/heads/{branch}:refs/heads/{branch}"]
        if include_tags:
            refspecs.append(f"refs/tags/{tag}:refs/tags/{tag}")
        # Atomic: the remote gets both refs or neither, so a rejected tag
        # cannot leave the release commit on the branch.
        pushed = self._repo.push(self._remote, refspecs, atomic=True, token=self._token)
        if isinstance(pushed, Err):
            return Err(_classify_push_error(pushed.error))
        return Ok(None)

    def delete_tag(self, tag: str, *, remote: bool) -> Result[None, GitError]:
        if remote:
            deleted = self._repo.delete_remote_tag(self._remote, tag, token=self._token)
            if isinstance(deleted, Err):
                text = deleted.error.message.lower()
                if any(marker in text for marker in _MISSING_REMOTE_REF_MARKERS):
                    return Ok(None)
                return Err(GitCommandFailed("push --delete", deleted.error.message))
            return Ok(None)

        if not self._repo.tag_exists(tag):
            return Ok(None)
        deleted = self._repo.delete_tag(tag)
        if isinstance(deleted, Err):
            return Err(GitCommandFailed("tag -d", deleted.error.message))
        return Ok(None)

    def revert_commit(
        self,
        ref: str,
        author: Author,
        *,
        push_branch: str | None,
    ) -> Result[str, GitError]:
        identity = GitIdentity(name=author.name, email=author.email)
        reverted = self._repo.revert(ref, identity=identity)
        if isinstance(reverted, Err):
            return Err(GitCommandFailed("revert", reverted.error.message))

        if push_branch is not None:
            pushed = self._repo.push(
                self._remote,
                [f"refs/heads/{push_branch}:refs/heads/{push_branch}"],
                token=self._token,
            )
            if isinstance(pushed, Err):
                return Err(_classify_push_error(pushed.error))

        return Ok(reverted.value)

    def reset_to(self, ref: str) -> Result[None, GitError]:
        reset = self._repo.reset_hard(ref)
        if isinstance(reset, Err):
            return Err(GitCommandFailed("reset", reset.error.message))
        return Ok(None)


def _classify_push_error(error: RepoGitError) -> GitError:
    if looks_like_auth_failure(error.message):
        return AuthFailed(error.message)
    if error.timed_out or looks_transient(error.message):
        return PushInterrupted(error.message)
    return PushRejected(error.message)
