"""Helpers shared by the CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel

from macappstore.config import MacAppStoreConfig, MacAppStoreConfigError, load_config
from macappstore.engine.errors import InstallError
from macappstore.engine.mas import MasCli
from macappstore.engine.orchestrator import InstallOrchestrator

console = Console(stderr=True)

EXIT_FAILURE = 1
EXIT_CONFIG = 2
EXIT_RETRYABLE = 3

CONFIG_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    help="Path to a config.yaml (default: nearest .macappstore/config.yaml).",
)


def error_panel(title: str, message: str) -> Panel:
    return Panel(f"[red]{message}[/red]", title=f"[red]{title}[/red]", border_style="red")


def resolve_config(config_path: Optional[Path]) -> MacAppStoreConfig:
    """Load the config or exit with code 2."""
    try:
        return load_config(config_path)
    except MacAppStoreConfigError as exc:
        console.print(error_panel("Config Error", str(exc)))
        raise typer.Exit(code=EXIT_CONFIG)


def make_orchestrator(config: MacAppStoreConfig) -> InstallOrchestrator:
    """Build an orchestrator on the real accessibility client, or exit."""
    try:
        from macappstore.engine.ax_client import MacAccessibilityClient

        client = MacAccessibilityClient()
    except RuntimeError as exc:
        console.print(error_panel("Missing Dependency", str(exc)))
        raise typer.Exit(code=EXIT_CONFIG)
    except InstallError as exc:
        console.print(error_panel("Accessibility Error", exc.message))
        raise typer.Exit(code=EXIT_FAILURE)
    return InstallOrchestrator(client, MasCli(config.mas_path), config)


def exit_code_for(error: InstallError) -> int:
    return EXIT_RETRYABLE if error.retryable else EXIT_FAILURE
