from __future__ import annotations

from pathlib import Path

import typer

from shipcrate.cli.commands._helpers import cancel_on_signals, exit_on_error
from shipcrate.cli.context import build_context
from shipcrate.core.errors import ErrorCode
from shipcrate.core.result import Err
from shipcrate.git.repository import Repository
from shipcrate.output.console import Style
from shipcrate.release.domain.errors import Cancelled
from shipcrate.release.domain.model import DEFAULT_CHECK_TIMEOUT_COUNT, DEFAULT_CHECK_WAIT_INTERVAL
from shipcrate.release.flow.check_gate import CancelToken, CheckGate
from shipcrate.release.infra.github_checks import GitHubCheckSource
from shipcrate.release.resolve.inputs import parse_check_names


def wait_checks(
    checks: str = typer.Option(
        ..., "--checks", envvar="INPUT_WAIT_FOR_CHECKS", help="Comma-separated check names"
    ),
    ref: str | None = typer.Option(
        None, "--ref", help="Commit to inspect (default: HEAD)", show_default=False
    ),
    interval: int = typer.Option(
        DEFAULT_CHECK_WAIT_INTERVAL,
        "--interval",
        envvar="INPUT_CHECK_WAIT_INTERVAL",
        help="Seconds between polls",
    ),
    count: int = typer.Option(
        DEFAULT_CHECK_TIMEOUT_COUNT,
        "--count",
        envvar="INPUT_CHECK_TIMEOUT_COUNT",
        help="Number of polls before giving up",
    ),
    repo_token: str | None = typer.Option(
        None,
        "--repo-token",
        envvar=["INPUT_REPO_TOKEN", "GITHUB_TOKEN"],
        show_default=False,
    ),
    root: Path | None = typer.Option(None, "--root", help="Crate repository root"),
    config: Path | None = typer.Option(None, "--config", help="Path to shipcrate.toml"),
) -> None:
    """Wait until the named status checks pass on a commit."""
    ctx = build_context(root=root, config_path=config)

    names = parse_check_names(checks)
    if not names:
        ctx.console.print("no checks requested", Style.DIM)
        return
    if interval < 0 or count < 1:
        ctx.console.error("--interval must be >= 0 and --count >= 1")
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    repository = ctx.config.repository
    if not repository:
        ctx.console.error("no repository to query")
        ctx.console.print("hint: set GITHUB_REPOSITORY or [release].repository", Style.DIM)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    sha = ref
    if sha is None:
        head = Repository(ctx.root).head_sha()
        if isinstance(head, Err):
            exit_on_error(head, ctx)
            return
        sha = head.value

    token = CancelToken()
    gate = CheckGate(
        GitHubCheckSource(ctx.root, repository=repository, token=repo_token or None),
        console=ctx.console,
        token=token,
    )
    with cancel_on_signals(token, ctx):
        result = gate.wait(names, ref=sha, interval=float(interval), max_attempts=count)

    if isinstance(result, Err):
        cancelled = isinstance(result.error, Cancelled)
        code = ErrorCode.CANCELLED if cancelled else ErrorCode.CHECKS_FAILED
        exit_on_error(result, ctx, code)
