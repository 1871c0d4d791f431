"""macappstore status -- Report where an app stands."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from macappstore.cli.common import (
    CONFIG_OPTION,
    EXIT_FAILURE,
    console,
    error_panel,
    exit_code_for,
    make_orchestrator,
    resolve_config,
)
from macappstore.engine.errors import InstallError
from macappstore.engine.mas import MasCli, MasError
from macappstore.engine.orchestrator import AppState

_STATE_LABELS = {
    AppState.NOT_PURCHASED: "[red]not purchased[/red]",
    AppState.PURCHASED_NOT_INSTALLED: "[yellow]purchased, not installed[/yellow]",
    AppState.INSTALLING: "[cyan]installing[/cyan]",
    AppState.INSTALLED: "[green]installed[/green]",
    AppState.SIGNED_OUT: "[red]App Store signed out[/red]",
}


def status(
    app_name: str = typer.Argument(..., help="App name exactly as shown in Purchases."),
    show_version: bool = typer.Option(
        False,
        "--show-version",
        help="Also open the app page and read the version the App Store offers.",
    ),
    config_path: Optional[Path] = CONFIG_OPTION,
) -> None:
    """Show APP_NAME's install state and whether an update is pending."""
    config = resolve_config(config_path)
    orchestrator = make_orchestrator(config)

    try:
        state = orchestrator.status(app_name)
        upgradable = state is AppState.INSTALLED and MasCli(config.mas_path).upgradable(app_name)
        version = None
        if show_version and state not in (AppState.NOT_PURCHASED, AppState.SIGNED_OUT):
            version = orchestrator.latest_version(app_name)
    except InstallError as exc:
        console.print(error_panel("Status Failed", exc.message))
        raise typer.Exit(code=exit_code_for(exc))
    except MasError as exc:
        console.print(error_panel("mas Error", str(exc)))
        raise typer.Exit(code=EXIT_FAILURE)

    table = Table(show_header=False, box=None)
    table.add_row("[bold]App[/bold]", app_name)
    table.add_row("[bold]State[/bold]", _STATE_LABELS[state])
    if state is AppState.INSTALLED:
        table.add_row("[bold]Update[/bold]", "available" if upgradable else "none")
    if version is not None:
        table.add_row("[bold]Store version[/bold]", version)
    console.print(table)
