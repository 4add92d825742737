"""Up command for readyup CLI.

Brings a deployment up using the core use-case:
1. Read the compose file into a service registry
2. Resolve the startup order (cycles are reported before anything starts)
3. Start, gate and probe every service
4. Print "all services healthy" or the first failing service and why
"""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from apps.cli.readyup_cli.commands import EXIT_CONFIG_ERROR, EXIT_UNHEALTHY
from packages.common.config import ReadyupConfig, get_config
from packages.common.factories import make_bring_up_use_case
from packages.core.errors import ConfigurationError, CoordinationError
from packages.schemas.readiness import ServiceState, StartupReport

console = Console()
logger = logging.getLogger(__name__)


def apply_overrides(config: ReadyupConfig, **overrides: object) -> ReadyupConfig:
    """Return ``config`` with every non-None override applied."""
    update = {key: value for key, value in overrides.items() if value is not None}
    return config.model_copy(update=update) if update else config


def render_report(report: StartupReport) -> Table:
    """Build a table of final service states."""
    table = Table(title="Services")
    table.add_column("Service", style="cyan")
    table.add_column("State", style="bold")
    table.add_column("Restarts", justify="right")

    for name in report.order or list(report.states):
        state = report.states.get(name, ServiceState.PENDING)
        color = "green" if state is ServiceState.HEALTHY else "red"
        table.add_row(name, f"[{color}]{state.value}[/{color}]", str(report.restarts.get(name, 0)))
    return table


async def up_command(
    config_file: Path,
    services: list[str] | None = None,
    supervise: bool = False,
    runtime: str | None = None,
    max_parallel: int | None = None,
    project_name: str | None = None,
) -> None:
    """Bring every service up in dependency order.

    Args:
        config_file: Path to the compose file.
        services: Only these services and their dependencies.
        supervise: Keep supervising after startup until interrupted.
        runtime: Runtime override (docker or subprocess).
        max_parallel: Start parallelism override.
        project_name: Project name override.

    Raises:
        typer.Exit: Exit code 1 if a service is unhealthy, 2 on
            configuration errors.
    """
    config = apply_overrides(
        get_config(),
        runtime=runtime,
        max_parallel_starts=max_parallel,
        project_name=project_name,
    )

    try:
        use_case = make_bring_up_use_case(config_file, services, config)
        console.print(
            f"[yellow]Bringing up {len(use_case.registry)} services from {config_file}[/yellow]"
        )
        report = await use_case.execute(supervise=supervise)

    except ConfigurationError as e:
        console.print(f"[red]✗ Configuration error: {e}[/red]")
        logger.error("Invalid configuration in %s: %s", config_file, e)
        raise typer.Exit(EXIT_CONFIG_ERROR) from None

    except CoordinationError as e:
        console.print(f"[red]✗ Coordination error: {e}[/red]")
        logger.exception("Coordination aborted for %s", config_file)
        raise typer.Exit(EXIT_UNHEALTHY) from None

    if report.healthy:
        console.print(f"[green]{report.summary()}[/green]")
        return

    console.print(render_report(report))
    console.print(f"[red]{report.summary()}[/red]")
    raise typer.Exit(EXIT_UNHEALTHY)


__all__ = ["apply_overrides", "render_report", "up_command"]
