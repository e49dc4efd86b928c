from __future__ import annotations

import typer

from relkit import __version__
from relkit.cli.commands.package import package, release
from relkit.cli.commands.publish import publish
from relkit.cli.commands.version_cmd import version

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(package)
app.command()(release)
app.command()(publish)
app.command("version")(version)


def _print_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    show_version: bool = typer.Option(
        False,
        "--version",
        callback=_print_version,
        is_eager=True,
        help="Show relkit version and exit.",
    ),
) -> None:
    """Package per-platform binaries into versioned release archives."""
    del show_version


def main() -> None:
    app()
