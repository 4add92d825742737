"""CLI status command implementation.

Runs one probe attempt per service and shows the result in a table.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from apps.cli.readyup_cli.commands import EXIT_CONFIG_ERROR, EXIT_UNHEALTHY
from packages.common.factories import make_check_status_use_case
from packages.core.errors import ConfigurationError

console = Console()


async def status_command(config_file: Path, service: str | None = None) -> None:
    """Display the health of every service.

    Args:
        config_file: Path to the compose file.
        service: Optional single service to check.

    Raises:
        typer.Exit: Exit code 1 if any checked service is unhealthy, 2 on
            configuration errors.
    """
    try:
        use_case = make_check_status_use_case(config_file)
        status = await use_case.execute([service] if service else None)
    except ConfigurationError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(EXIT_CONFIG_ERROR) from None

    table = Table(title="Service Health")
    table.add_column("Service", style="cyan")
    table.add_column("Running")
    table.add_column("Healthy", style="bold")
    table.add_column("Probe")
    table.add_column("Message")

    for name, health in status.services.items():
        table.add_row(
            name,
            "yes" if health.running else "no",
            "[green]✓[/green]" if health.healthy else "[red]✗[/red]",
            health.probe or "-",
            health.message or "",
        )

    console.print(table)

    if not status.overall_healthy:
        raise typer.Exit(EXIT_UNHEALTHY)


__all__ = ["status_command"]
