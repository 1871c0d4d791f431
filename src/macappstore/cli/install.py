"""macappstore install -- Install a purchased app through the App Store UI.

Opens the App Store's Purchases list, follows the app's link, presses its
install button and waits for the install to finish.  Apps that are already
installed are left alone.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.panel import Panel

from macappstore.cli.common import (
    CONFIG_OPTION,
    EXIT_CONFIG,
    EXIT_FAILURE,
    EXIT_RETRYABLE,
    console,
    error_panel,
    make_orchestrator,
    resolve_config,
)
from macappstore.config import MacAppStoreConfigError
from macappstore.engine.mas import MasError

logger = logging.getLogger("macappstore.cli.install")


def install(
    app_name: str = typer.Argument(..., help="App name exactly as shown in Purchases."),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        "-t",
        help="Seconds to wait for the install to finish (default: install_timeout from config).",
    ),
    keep_open: bool = typer.Option(
        False,
        "--keep-open",
        help="Leave the App Store running even if this command launched it.",
    ),
    config_path: Optional[Path] = CONFIG_OPTION,
) -> None:
    """Install APP_NAME from the signed-in account's Purchases list."""
    config = resolve_config(config_path)
    orchestrator = make_orchestrator(config)

    try:
        outcome = orchestrator.install(
            app_name,
            timeout=timeout,
            quit_when_done=False if keep_open else None,
        )
    except MacAppStoreConfigError as exc:
        console.print(error_panel("Config Error", str(exc)))
        raise typer.Exit(code=EXIT_CONFIG)
    except MasError as exc:
        console.print(error_panel("mas Error", str(exc)))
        raise typer.Exit(code=EXIT_FAILURE)

    if not outcome.success:
        title = f"Install Failed ({outcome.reason.value if outcome.reason else 'unknown'})"
        message = outcome.message
        if outcome.changed:
            message += "\n\nThe install was started and may still be running in the App Store."
        if outcome.retryable:
            message += "\n\nThis may succeed if you run the command again."
        console.print(error_panel(title, message))
        raise typer.Exit(code=EXIT_RETRYABLE if outcome.retryable else EXIT_FAILURE)

    if outcome.changed:
        console.print(
            Panel(
                f"[green]Installed [bold]{app_name}[/bold][/green]",
                title="[bold green]Install Complete[/bold green]",
                border_style="green",
            )
        )
    else:
        console.print(f"[dim]{app_name} is already installed -- nothing to do.[/dim]")
