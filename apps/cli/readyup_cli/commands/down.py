"""Down command for readyup CLI: stop services, dependents first."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from apps.cli.readyup_cli.commands import EXIT_CONFIG_ERROR, EXIT_UNHEALTHY
from packages.common.factories import make_tear_down_use_case
from packages.core.errors import ConfigurationError

console = Console()


async def down_command(config_file: Path) -> None:
    """Stop every service in reverse dependency order.

    Raises:
        typer.Exit: Exit code 1 if a service could not be stopped, 2 on
            configuration errors.
    """
    try:
        use_case = make_tear_down_use_case(config_file)
        results = await use_case.execute()
    except ConfigurationError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(EXIT_CONFIG_ERROR) from None

    for name, error in results.items():
        if error is None:
            console.print(f"[green]✓ {name} stopped[/green]")
        else:
            console.print(f"[red]✗ {name}: {error}[/red]")

    if any(error is not None for error in results.values()):
        raise typer.Exit(EXIT_UNHEALTHY)


__all__ = ["down_command"]
