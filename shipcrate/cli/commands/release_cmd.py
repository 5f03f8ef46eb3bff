"""Release command - bump, validate, tag, push and publish one crate."""

from __future__ import annotations

from pathlib import Path

import typer

from shipcrate.cli.commands._helpers import cancel_on_signals, exit_on_error
from shipcrate.cli.context import CLIContext, build_context
from shipcrate.core.errors import ErrorCode
from shipcrate.core.result import Err
from shipcrate.git.repository import Repository
from shipcrate.output.console import Style
from shipcrate.release.domain.model import (
    DEFAULT_CHECK_TIMEOUT_COUNT,
    DEFAULT_CHECK_WAIT_INTERVAL,
    DEFAULT_GIT_USER_EMAIL,
    DEFAULT_GIT_USER_NAME,
    ReleaseInputs,
    ReleaseOutcome,
)
from shipcrate.release.flow.check_gate import CancelToken, CheckGate
from shipcrate.release.flow.orchestrator import ReleaseOrchestrator
from shipcrate.release.infra.git_publisher import RepositoryGitPublisher
from shipcrate.release.infra.github_checks import GitHubCheckSource
from shipcrate.release.infra.github_output import (
    output_path,
    summary_path,
    write_outputs,
    write_summary,
)
from shipcrate.release.infra.manifest import CargoManifestEditor
from shipcrate.release.infra.registry import CargoRegistryPublisher
from shipcrate.release.infra.validation import CommandValidationRunner
from shipcrate.release.resolve.inputs import parse_bool, parse_check_names
from shipcrate.release.view.report import exit_code_for, print_outcome


def release(
    branch: str = typer.Option(..., "--branch", envvar="INPUT_BRANCH", help="Branch to release"),
    bump_type: str = typer.Option(
        ..., "--bump-type", envvar="INPUT_BUMP_TYPE", help="patch, minor or major"
    ),
    dry_run: str = typer.Option(
        "false", "--dry-run", envvar="INPUT_DRY_RUN", help="true: stop after the registry dry-run"
    ),
    registry_token: str | None = typer.Option(
        None,
        "--registry-token",
        envvar=["INPUT_REGISTRY_TOKEN", "CARGO_REGISTRY_TOKEN"],
        help="crates.io API token",
        show_default=False,
    ),
    repo_token: str | None = typer.Option(
        None,
        "--repo-token",
        envvar=["INPUT_REPO_TOKEN", "GITHUB_TOKEN"],
        help="Token with push access",
        show_default=False,
    ),
    rust_toolchain: str | None = typer.Option(
        None, "--rust-toolchain", envvar="INPUT_RUST_TOOLCHAIN", show_default=False
    ),
    git_user_name: str = typer.Option(
        DEFAULT_GIT_USER_NAME, "--git-user-name", envvar="INPUT_GIT_USER_NAME"
    ),
    git_user_email: str = typer.Option(
        DEFAULT_GIT_USER_EMAIL, "--git-user-email", envvar="INPUT_GIT_USER_EMAIL"
    ),
    wait_for_checks: str = typer.Option(
        "",
        "--wait-for-checks",
        envvar="INPUT_WAIT_FOR_CHECKS",
        help="Comma-separated check names that must pass first",
    ),
    check_wait_interval: int = typer.Option(
        DEFAULT_CHECK_WAIT_INTERVAL,
        "--check-wait-interval",
        envvar="INPUT_CHECK_WAIT_INTERVAL",
        help="Seconds between status polls",
    ),
    check_timeout_count: int = typer.Option(
        DEFAULT_CHECK_TIMEOUT_COUNT,
        "--check-timeout-count",
        envvar="INPUT_CHECK_TIMEOUT_COUNT",
        help="Number of polls before giving up",
    ),
    root: Path | None = typer.Option(None, "--root", help="Crate repository root"),
    config: Path | None = typer.Option(None, "--config", help="Path to shipcrate.toml"),
) -> None:
    """Bump the crate version and publish it."""
    ctx = build_context(root=root, config_path=config)

    dry = parse_bool(dry_run, field_name="dry_run")
    if isinstance(dry, Err):
        exit_on_error(dry, ctx)
        return

    checks = parse_check_names(wait_for_checks)
    if checks and not ctx.config.repository:
        ctx.console.error("wait_for_checks needs a repository to query")
        ctx.console.print("hint: set GITHUB_REPOSITORY or [release].repository", Style.DIM)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    inputs = ReleaseInputs(
        branch=branch,
        bump_type=bump_type,
        dry_run=dry.value,
        registry_token=registry_token or None,
        repo_token=repo_token or None,
        rust_toolchain=rust_toolchain or None,
        git_user_name=git_user_name,
        git_user_email=git_user_email,
        wait_for_checks=checks,
        check_wait_interval=check_wait_interval,
        check_timeout_count=check_timeout_count,
    )

    token = CancelToken()
    orchestrator = build_orchestrator(ctx, inputs, token=token)
    with cancel_on_signals(token, ctx):
        outcome = orchestrator.run()

    report_outcome(ctx, outcome)
    code = exit_code_for(outcome)
    if code.is_error:
        raise typer.Exit(code=int(code))


def build_orchestrator(
    ctx: CLIContext,
    inputs: ReleaseInputs,
    *,
    token: CancelToken,
) -> ReleaseOrchestrator:
    cfg = ctx.config
    source = GitHubCheckSource(ctx.root, repository=cfg.repository or "", token=inputs.repo_token)
    return ReleaseOrchestrator(
        cfg,
        inputs,
        manifest=CargoManifestEditor(ctx.root, manifest=cfg.manifest, lockfile=cfg.lockfile),
        validation=CommandValidationRunner(
            ctx.root, console=ctx.console, toolchain=inputs.rust_toolchain
        ),
        git=RepositoryGitPublisher(
            Repository(ctx.root), remote=cfg.remote, token=inputs.repo_token
        ),
        registry=CargoRegistryPublisher(
            ctx.root,
            console=ctx.console,
            token=inputs.registry_token,
            toolchain=inputs.rust_toolchain,
        ),
        gate=CheckGate(source, console=ctx.console, token=token),
        console=ctx.console,
    )


def report_outcome(ctx: CLIContext, outcome: ReleaseOutcome) -> None:
    print_outcome(outcome, ctx.console)

    out = output_path()
    if out is not None:
        written = write_outputs(out, outcome.outputs.as_pairs())
        if isinstance(written, Err):
            ctx.console.warning(written.error)
        else:
            ctx.console.print(f"step outputs written to {out}", Style.DIM)

    summary = summary_path()
    if summary is not None:
        written = write_summary(summary, outcome)
        if isinstance(written, Err):
            ctx.console.warning(written.error)

