from __future__ import annotations

from pathlib import Path

import typer

from shipcrate.cli.commands._helpers import exit_on_error
from shipcrate.cli.context import build_context
from shipcrate.core.result import Err
from shipcrate.release.domain.version import Version, parse_bump_kind, parse_tag_version
from shipcrate.release.infra.manifest import CargoManifestEditor


def next_version(
    bump_type: str = typer.Option(
        ..., "--bump", envvar="INPUT_BUMP_TYPE", help="patch, minor or major"
    ),
    current: str | None = typer.Option(
        None,
        "--current",
        help="Version to bump (e.g. 1.4.9 or v1.4.9); defaults to the manifest version",
        show_default=False,
    ),
    root: Path | None = typer.Option(None, "--root", help="Crate repository root"),
    config: Path | None = typer.Option(None, "--config", help="Path to shipcrate.toml"),
) -> None:
    """Print the version a release would produce. Changes nothing."""
    ctx = build_context(root=root, config_path=config)

    kind = parse_bump_kind(bump_type)
    if isinstance(kind, Err):
        exit_on_error(kind, ctx)
        return

    base: Version
    if current is not None:
        parsed = parse_tag_version(current)
        if isinstance(parsed, Err):
            exit_on_error(parsed, ctx)
            return
        base = parsed.value
    else:
        editor = CargoManifestEditor(
            ctx.root, manifest=ctx.config.manifest, lockfile=ctx.config.lockfile
        )
        package = editor.read()
        if isinstance(package, Err):
            exit_on_error(package, ctx)
            return
        base = package.value.version

    typer.echo(str(base.bump(kind.value)))
