from __future__ import annotations

import typer

from shipcrate import __version__
from shipcrate.cli.commands.next_version_cmd import next_version
from shipcrate.cli.commands.release_cmd import release
from shipcrate.cli.commands.wait_checks_cmd import wait_checks

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(release)
app.command("next-version")(next_version)
app.command("wait-checks")(wait_checks)


@app.callback(invoke_without_command=True)
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)


def main() -> None:
    app()
