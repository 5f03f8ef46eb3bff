from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer

from shipcrate.core.config import CONFIG_FILE_NAME, ReleaseConfig, load_config_or_default
from shipcrate.core.errors import ErrorCode
from shipcrate.core.result import Err
from shipcrate.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    root: Path
    config: ReleaseConfig
    console: ConsoleProtocol


def build_context(*, root: Path | None = None, config_path: Path | None = None) -> CLIContext:
    try:
        resolved = (root or Path.cwd()).expanduser().resolve()
    except OSError as e:
        typer.echo(f"error: invalid --root: {e}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    if not resolved.is_dir():
        typer.echo(f"error: not a directory: {resolved}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    path = config_path if config_path is not None else resolved / CONFIG_FILE_NAME
    config_result = load_config_or_default(path)
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    return CLIContext(root=resolved, config=config_result.value, console=RichConsole())
