"""macappstore CLI -- Main Typer entry point.

Registers all subcommands and provides --version / --verbose global options.
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console

from macappstore import __version__

console = Console()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"macappstore v{__version__}", style="bold")
        raise typer.Exit()


app = typer.Typer(
    name="macappstore",
    help="Install Mac App Store apps by driving the App Store through the Accessibility API.",
    rich_markup_mode="rich",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show macappstore version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging.",
    ),
) -> None:
    """macappstore -- App Store installs for machines without a scriptable store."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s  %(message)s")


# ── Register subcommands ──────────────────────────────────────────────────

from macappstore.cli.install import install  # noqa: E402
from macappstore.cli.status import status  # noqa: E402
from macappstore.cli.upgrade import upgrade  # noqa: E402

app.command(name="install", help="Install a purchased app through the App Store UI.")(install)
app.command(name="upgrade", help="Install or upgrade an app with the mas command-line tool.")(upgrade)
app.command(name="status", help="Show whether an app is purchased, installing or installed.")(status)
