"""Release orchestration state machine.

    validating -> check_gating -> bumping -> local_validating -> committing
        -> dry_run_publishing -> [pushing -> publishing] -> done

Any state may end the run as aborted. Three stores are touched and none of
them can be updated atomically with the others: the working tree, the remote
git repository and the registry. Recovery therefore depends on how far the
run got:

- before bumping: nothing to undo
- bumping .. committing: reset the working tree to the starting commit
- after committing, before pushing: drop the local tag and commit
- after pushing: history is public, so delete the tag and push a revert
- delivery unknown (push or publish interrupted): touch nothing and ask a
  human, since automated cleanup of half-visible state can lose data

The calling environment must ensure a single run per branch/tag at a time;
nothing here takes a lock.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from shipcrate.core.config import ReleaseConfig
from shipcrate.core.result import Err, Ok, Result
from shipcrate.output.console import ConsoleProtocol, Style
from shipcrate.release.domain.errors import (
    InvalidInput,
    ManualInterventionRequired,
    NetworkError,
    PushInterrupted,
    ReleaseFailure,
)
from shipcrate.release.domain.model import (
    Outputs,
    ReleaseInputs,
    ReleaseOutcome,
    ReleasePlan,
    RunState,
    TerminalKind,
    render_tag,
)
from shipcrate.release.domain.version import BumpKind
from shipcrate.release.flow.check_gate import CheckGate
from shipcrate.release.flow.fsm import (
    StepFailure,
    StepOutcome,
    UnknownStep,
    advance,
    finish,
    run_state_machine,
)
from shipcrate.release.flow.ports import (
    Author,
    CommitRef,
    GitPublisher,
    ManifestEditor,
    RegistryPublisher,
    ValidationRunner,
)
from shipcrate.release.resolve.inputs import validate_inputs

_DESCRIPTIONS: dict[RunState, str] = {
    RunState.VALIDATING: "checking inputs and repository state",
    RunState.CHECK_GATING: "waiting for required status checks",
    RunState.BUMPING: "writing new version",
    RunState.LOCAL_VALIDATING: "validating bumped tree",
    RunState.COMMITTING: "committing and tagging",
    RunState.DRY_RUN_PUBLISHING: "registry dry-run",
    RunState.PUSHING: "pushing commit and tag",
    RunState.PUBLISHING: "publishing to registry",
    RunState.ROLLING_BACK: "rolling back",
}


@dataclass(frozen=True, slots=True)
class _Run:
    """Working state of one run. Replaced, never mutated, at each step."""

    state: RunState
    history: tuple[RunState, ...] = ()
    bump: BumpKind | None = None
    branch: str = ""
    base_sha: str | None = None
    plan: ReleasePlan | None = None
    commit_message: str = ""
    commit: CommitRef | None = None
    pushed: bool = False
    published: bool = False
    notes: tuple[str, ...] = ()

    def to(self, state: RunState, **changes: object) -> _Run:
        history = (*self.history, self.state)
        return replace(self, state=state, history=history, **changes)  # type: ignore[arg-type]


type _StepResult = Result[StepOutcome[_Run], ReleaseFailure]


@dataclass(frozen=True, slots=True)
class _Recovery:
    terminal: TerminalKind
    reason: ReleaseFailure
    actions: tuple[str, ...] = ()
    left_behind: tuple[str, ...] = ()
    rolled_back: bool = False


class ReleaseOrchestrator:
    def __init__(
        self,
        config: ReleaseConfig,
        inputs: ReleaseInputs,
        *,
        manifest: ManifestEditor,
        validation: ValidationRunner,
        git: GitPublisher,
        registry: RegistryPublisher,
        gate: CheckGate,
        console: ConsoleProtocol,
    ) -> None:
        self._config = config
        self._inputs = inputs
        self._manifest = manifest
        self._validation = validation
        self._git = git
        self._registry = registry
        self._gate = gate
        self._console = console
        self._author = Author(name=inputs.git_user_name, email=inputs.git_user_email)

    def run(self) -> ReleaseOutcome:
        """Run one release to a terminal state. Never raises for release failures."""
        handlers = {
            RunState.VALIDATING.value: self._validating,
            RunState.CHECK_GATING.value: self._check_gating,
            RunState.BUMPING.value: self._bumping,
            RunState.LOCAL_VALIDATING.value: self._local_validating,
            RunState.COMMITTING.value: self._committing,
            RunState.DRY_RUN_PUBLISHING.value: self._dry_run_publishing,
            RunState.PUSHING.value: self._pushing,
            RunState.PUBLISHING.value: self._publishing,
        }

        result = run_state_machine(
            initial_state=_Run(state=RunState.VALIDATING),
            get_step=lambda run: run.state.value,
            handlers=handlers,
            on_transition=self._announce,
        )

        if isinstance(result, Ok):
            return self._done(result.value)
        return self._abort(result.error)

    # -------------------------------------------------------------------------
    # States
    # -------------------------------------------------------------------------

    def _validating(self, run: _Run) -> _StepResult:
        validated = validate_inputs(self._inputs, publish_branch=self._config.publish_branch)
        if isinstance(validated, Err):
            return validated
        bump_kind = validated.value.bump
        branch = validated.value.branch

        head = self._git.ensure_ready(branch)
        if isinstance(head, Err):
            return head

        package = self._manifest.read()
        if isinstance(package, Err):
            return package

        old = package.value.version
        new = old.bump(bump_kind)
        name = package.value.name
        try:
            tag_name = render_tag(self._config.tag_format, name=name, version=new)
        except (AttributeError, KeyError, IndexError, ValueError) as e:
            return Err(InvalidInput(field="tag_format", reason=f"cannot render: {e!r}"))
        try:
            commit_message = self._config.commit_message.format(name=name, old=old, new=new)
        except (AttributeError, KeyError, IndexError, ValueError) as e:
            return Err(InvalidInput(field="commit_message", reason=f"cannot render: {e!r}"))
        plan = ReleasePlan(
            package_name=name,
            old_version=old,
            new_version=new,
            tag_name=tag_name,
            branch=branch,
            dry_run=self._inputs.dry_run,
        )
        self._console.info(
            f"{plan.package_name}: {old} -> {new} ({bump_kind}), tag {plan.tag_name}"
            + (" [dry run]" if plan.dry_run else "")
        )
        return Ok(
            advance(
                run.to(
                    RunState.CHECK_GATING,
                    bump=bump_kind,
                    branch=branch,
                    base_sha=head.value,
                    plan=plan,
                    commit_message=commit_message,
                )
            )
        )

    def _check_gating(self, run: _Run) -> _StepResult:
        assert run.base_sha is not None
        requirements = self._inputs.wait_for_checks
        if not requirements:
            self._console.print("no required checks configured", Style.DIM)
            return Ok(advance(run.to(RunState.BUMPING)))

        waited = self._gate.wait(
            requirements,
            ref=run.base_sha,
            interval=float(self._inputs.check_wait_interval),
            max_attempts=self._inputs.check_timeout_count,
        )
        if isinstance(waited, Err):
            return waited
        return Ok(advance(run.to(RunState.BUMPING)))

    def _bumping(self, run: _Run) -> _StepResult:
        plan = _require_plan(run)
        written = self._manifest.write_version(plan.new_version)
        if isinstance(written, Err):
            return written
        self._console.success(f"updated {', '.join(written.value)}")
        return Ok(advance(run.to(RunState.LOCAL_VALIDATING)))

    def _local_validating(self, run: _Run) -> _StepResult:
        checked = self._validation.run(self._config.validation)
        if isinstance(checked, Err):
            return checked
        return Ok(advance(run.to(RunState.COMMITTING)))

    def _committing(self, run: _Run) -> _StepResult:
        plan = _require_plan(run)
        committed = self._git.commit_and_tag(
            plan,
            self._author,
            message=run.commit_message,
            paths=self._manifest.paths(),
        )
        if isinstance(committed, Err):
            return committed
        self._console.success(f"commit {committed.value.sha[:8]} tagged {committed.value.tag}")
        return Ok(advance(run.to(RunState.DRY_RUN_PUBLISHING, commit=committed.value)))

    def _dry_run_publishing(self, run: _Run) -> _StepResult:
        plan = _require_plan(run)
        checked = self._registry.dry_run(plan)
        if isinstance(checked, Err):
            return checked
        self._console.success("registry dry-run passed")

        if plan.dry_run:
            discarded = self._discard_local_release(run)
            if isinstance(discarded, Err):
                return discarded
            return Ok(finish(replace(run, notes=("dry run: nothing was pushed or published",))))

        if plan.branch != self._config.publish_branch:
            note = (
                f"branch {plan.branch} is not the publish branch "
                f"({self._config.publish_branch}); commit and tag kept locally, not published"
            )
            return Ok(finish(replace(run, notes=(note,))))

        return Ok(advance(run.to(RunState.PUSHING)))

    def _pushing(self, run: _Run) -> _StepResult:
        plan = _require_plan(run)
        pushed = self._git.push(plan.branch, plan.tag_name, include_tags=True)
        if isinstance(pushed, Err):
            return pushed
        self._console.success(f"pushed {plan.branch} and {plan.tag_name}")
        return Ok(advance(run.to(RunState.PUBLISHING, pushed=True)))

    def _publishing(self, run: _Run) -> _StepResult:
        plan = _require_plan(run)
        published = self._registry.publish(plan)
        if isinstance(published, Err):
            return published
        self._console.success(f"published {plan.package_name} {plan.new_version}")
        return Ok(finish(replace(run, published=True)))

    # -------------------------------------------------------------------------
    # Terminals
    # -------------------------------------------------------------------------

    def _announce(self, run: _Run) -> None:
        self._console.header(f"[{run.state}] {_DESCRIPTIONS.get(run.state, '')}")

    def _done(self, run: _Run) -> ReleaseOutcome:
        plan = _require_plan(run)
        return ReleaseOutcome(
            terminal="done",
            outputs=Outputs.from_plan(plan, published=run.published),
            left_behind=run.notes,
            history=(*run.history, run.state, RunState.DONE),
        )

    def _abort(self, failure: StepFailure[_Run, ReleaseFailure | UnknownStep]) -> ReleaseOutcome:
        run = failure.session
        if isinstance(failure.error, UnknownStep):
            # Only reachable through a programming error in the handler table.
            raise AssertionError(failure.error.message)

        self._console.error(failure.error.message)
        recovery = self._recover(run, failure.error)

        history = (*run.history, run.state)
        if recovery.rolled_back:
            history = (*history, RunState.ROLLING_BACK)

        outputs = Outputs.from_plan(run.plan) if run.plan is not None else Outputs()
        return ReleaseOutcome(
            terminal=recovery.terminal,
            outputs=outputs,
            reason=recovery.reason,
            failed_in=run.state,
            rollback_actions=recovery.actions,
            left_behind=recovery.left_behind,
            history=(*history, RunState.ABORTED),
        )

    # -------------------------------------------------------------------------
    # Recovery
    # -------------------------------------------------------------------------

    def _recover(self, run: _Run, error: ReleaseFailure) -> _Recovery:
        match run.state:
            case RunState.VALIDATING | RunState.CHECK_GATING:
                return _Recovery(terminal="aborted", reason=error)
            case RunState.BUMPING | RunState.LOCAL_VALIDATING | RunState.COMMITTING:
                return self._reset_working_tree(run, error)
            case RunState.DRY_RUN_PUBLISHING:
                return self._rollback_local(run, error)
            case RunState.PUSHING:
                if isinstance(error, PushInterrupted):
                    return self._unknown_delivery(run, error, what="the push")
                return self._rollback_local(run, error)
            case RunState.PUBLISHING:
                if isinstance(error, NetworkError) and error.timed_out:
                    return self._unknown_delivery(run, error, what="the registry upload")
                return self._rollback_public(run, error)
            case _:
                return _Recovery(terminal="aborted", reason=error)

    def _reset_working_tree(self, run: _Run, error: ReleaseFailure) -> _Recovery:
        """Nothing durable exists yet; put the checkout back where it started."""
        assert run.base_sha is not None
        reset = self._git.reset_to(run.base_sha)
        if isinstance(reset, Err):
            self._console.warning(f"working tree reset failed: {reset.error.message}")
            return _Recovery(
                terminal="aborted",
                reason=error,
                left_behind=(f"local working tree may still be modified: {reset.error.message}",),
            )
        return _Recovery(
            terminal="aborted",
            reason=error,
            actions=(f"reset working tree to {run.base_sha[:8]}",),
        )

    def _rollback_local(self, run: _Run, error: ReleaseFailure) -> _Recovery:
        """Commit and tag exist only in this clone; remove both."""
        self._announce(run.to(RunState.ROLLING_BACK))
        discarded = self._discard_local_release(run)
        if isinstance(discarded, Err):
            return _Recovery(
                terminal="manual_intervention",
                reason=ManualInterventionRequired(
                    cause=error,
                    detail=f"local rollback failed ({discarded.error.message})",
                ),
                left_behind=(
                    f"local tag {run.commit.tag if run.commit else '?'} and release commit "
                    "may still exist in this clone; nothing was pushed",
                ),
                rolled_back=True,
            )
        return _Recovery(
            terminal="aborted",
            reason=error,
            actions=discarded.value,
            rolled_back=True,
        )

    def _discard_local_release(self, run: _Run) -> Result[tuple[str, ...], ReleaseFailure]:
        assert run.base_sha is not None
        actions: list[str] = []
        if run.commit is not None:
            deleted = self._git.delete_tag(run.commit.tag, remote=False)
            if isinstance(deleted, Err):
                return deleted
            actions.append(f"deleted local tag {run.commit.tag}")
        reset = self._git.reset_to(run.base_sha)
        if isinstance(reset, Err):
            return reset
        actions.append(f"reset branch to {run.base_sha[:8]}")
        return Ok(tuple(actions))

    def _rollback_public(self, run: _Run, error: ReleaseFailure) -> _Recovery:
        """Commit and tag are public; prefer additive correction over rewriting."""
        self._announce(run.to(RunState.ROLLING_BACK))
        assert run.commit is not None
        plan = _require_plan(run)
        tag = run.commit.tag

        actions: list[str] = []
        failures: list[str] = []
        left_behind: list[str] = []

        remote_deleted = self._git.delete_tag(tag, remote=True)
        if isinstance(remote_deleted, Err):
            failures.append(f"delete remote tag: {remote_deleted.error.message}")
            left_behind.append(f"tag {tag} still exists on {self._config.remote}")
        else:
            actions.append(f"deleted remote tag {tag}")

        local_deleted = self._git.delete_tag(tag, remote=False)
        if isinstance(local_deleted, Err):
            failures.append(f"delete local tag: {local_deleted.error.message}")
        else:
            actions.append(f"deleted local tag {tag}")

        reverted = self._git.revert_commit(run.commit.sha, self._author, push_branch=plan.branch)
        if isinstance(reverted, Err):
            failures.append(f"revert: {reverted.error.message}")
            left_behind.append(
                f"release commit {run.commit.sha[:8]} ({plan.new_version}) is on "
                f"{self._config.remote}/{plan.branch} without a revert"
            )
        else:
            actions.append(f"pushed revert {reverted.value[:8]} of {run.commit.sha[:8]}")
            left_behind.append(
                f"release commit {run.commit.sha[:8]} remains in {plan.branch} history, "
                f"reverted by {reverted.value[:8]}"
            )

        if failures:
            return _Recovery(
                terminal="manual_intervention",
                reason=ManualInterventionRequired(
                    cause=error,
                    detail="rollback after a public push was incomplete: " + "; ".join(failures),
                ),
                actions=tuple(actions),
                left_behind=tuple(left_behind),
                rolled_back=True,
            )
        return _Recovery(
            terminal="aborted",
            reason=error,
            actions=tuple(actions),
            left_behind=tuple(left_behind),
            rolled_back=True,
        )

    def _unknown_delivery(self, run: _Run, error: ReleaseFailure, *, what: str) -> _Recovery:
        plan = _require_plan(run)
        sha = run.commit.sha[:8] if run.commit else "?"
        left = [
            f"local commit {sha} and tag {plan.tag_name} kept for inspection",
            f"{self._config.remote} may or may not have {plan.branch} at {sha} "
            f"and tag {plan.tag_name}",
        ]
        if run.pushed:
            left.append(
                f"registry may or may not have {plan.package_name} {plan.new_version}"
            )
        return _Recovery(
            terminal="manual_intervention",
            reason=ManualInterventionRequired(
                cause=error,
                detail=f"cannot tell whether {what} reached the remote",
            ),
            left_behind=tuple(left),
        )


def _require_plan(run: _Run) -> ReleasePlan:
    if run.plan is None:
        raise AssertionError(f"state {run.state} reached without a release plan")
    return run.plan
