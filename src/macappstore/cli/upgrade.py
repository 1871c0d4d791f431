"""macappstore upgrade -- Install or upgrade an app with ``mas``.

The command-line path: no UI automation, just the ``mas`` tool.  Runs
nothing when the app is installed and current.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from macappstore.cli.common import (
    CONFIG_OPTION,
    EXIT_FAILURE,
    console,
    error_panel,
    resolve_config,
)
from macappstore.engine.errors import InstallError
from macappstore.engine.mas import MasCli, MasError


def upgrade(
    app_name: str = typer.Argument(..., help="App name as listed by mas."),
    config_path: Optional[Path] = CONFIG_OPTION,
) -> None:
    """Install APP_NAME if missing, or upgrade it if an update is available."""
    config = resolve_config(config_path)
    mas = MasCli(config.mas_path)

    try:
        changed = mas.upgrade(app_name)
    except InstallError as exc:
        console.print(error_panel("Unknown App", exc.message))
        raise typer.Exit(code=EXIT_FAILURE)
    except MasError as exc:
        console.print(error_panel("mas Error", str(exc)))
        raise typer.Exit(code=EXIT_FAILURE)

    if changed:
        console.print(f"[green]{app_name} installed or upgraded.[/green]")
    else:
        console.print(f"[dim]{app_name} is up to date -- nothing to do.[/dim]")
