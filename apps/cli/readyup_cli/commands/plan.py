"""Plan command for readyup CLI.

Prints the startup order and the waves of services that can start together,
without touching the runtime.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from apps.cli.readyup_cli.commands import EXIT_CONFIG_ERROR
from packages.common.factories import load_registry
from packages.core.errors import ConfigurationError
from packages.core.resolver import resolve, startup_waves

console = Console()


def plan_command(config_file: Path) -> None:
    """Print the startup order for a compose file.

    Raises:
        typer.Exit: Exit code 2 on configuration errors, including cycles.
    """
    try:
        project_name, registry = load_registry(config_file)
        order = resolve(registry)
        waves = startup_waves(registry)
    except ConfigurationError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(EXIT_CONFIG_ERROR) from None

    table = Table(title=f"Startup plan: {project_name}")
    table.add_column("Wave", justify="right")
    table.add_column("Service", style="cyan")
    table.add_column("Waits for")

    for index, wave in enumerate(waves, start=1):
        for name in wave:
            waits_for = ", ".join(str(edge) for edge in registry.dependencies_of(name))
            table.add_row(str(index), name, waits_for or "-")

    console.print(table)
    console.print(f"Order: {' -> '.join(order)}")


__all__ = ["plan_command"]
