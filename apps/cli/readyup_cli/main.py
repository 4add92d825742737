"""readyup CLI - Typer command-line interface for dependency-ordered startup."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

import typer

from apps.cli.readyup_cli.utils import async_command
from packages.common.logging import setup_logging

app = typer.Typer(
    name="readyup",
    help="readyup - start services in dependency order and report which one is unhealthy",
    add_completion=False,
)


class RuntimeKind(str, Enum):
    """Runtime adapters selectable on the command line."""

    DOCKER = "docker"
    SUBPROCESS = "subprocess"


ConfigFile = typer.Argument(
    ...,
    exists=True,
    dir_okay=False,
    readable=True,
    help="Path to a compose-style YAML file",
)


@app.callback()
def main(
    log_level: str | None = typer.Option(
        None, "--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR); logs go to stderr"
    ),
) -> None:
    """Configure logging before any command runs."""
    setup_logging(log_level)


@app.command()
@async_command
async def up(
    config_file: Path = ConfigFile,
    services: list[str] | None = typer.Option(
        None, "--service", "-s", help="Only this service and its dependencies (repeatable)"
    ),
    supervise: bool = typer.Option(
        False, "--supervise", help="Keep supervising services after startup until interrupted"
    ),
    runtime: RuntimeKind | None = typer.Option(
        None, "--runtime", help="Runtime adapter (docker or subprocess)"
    ),
    max_parallel: int | None = typer.Option(
        None, "--max-parallel", min=1, help="Maximum concurrent start actions"
    ),
    project_name: str | None = typer.Option(
        None, "--project-name", "-p", help="Project name (container name prefix)"
    ),
) -> None:
    """
    Bring services up in dependency order and wait until they are healthy.

    Prints "all services healthy" and exits 0, or names the first service
    that failed and why and exits 1. Configuration errors such as dependency
    cycles exit 2 before anything starts.

    Examples:
        readyup up docker-compose.yaml
        readyup up docker-compose.yaml --service backend --max-parallel 2
        readyup --log-level DEBUG up docker-compose.yaml --supervise
    """
    from apps.cli.readyup_cli.commands.up import up_command

    await up_command(
        config_file,
        services=services or None,
        supervise=supervise,
        runtime=runtime.value if runtime else None,
        max_parallel=max_parallel,
        project_name=project_name,
    )


@app.command()
def plan(config_file: Path = ConfigFile) -> None:
    """
    Print the startup order and the waves of services that start together.

    Examples:
        readyup plan docker-compose.yaml
    """
    from apps.cli.readyup_cli.commands.plan import plan_command

    plan_command(config_file)


@app.command()
@async_command
async def status(
    config_file: Path = ConfigFile,
    service: str | None = typer.Option(None, "--service", "-s", help="Service to check"),
) -> None:
    """
    Run one health probe per service and show the results.

    Examples:
        readyup status docker-compose.yaml
        readyup status docker-compose.yaml --service postgres
    """
    from apps.cli.readyup_cli.commands.status import status_command

    await status_command(config_file, service=service)


@app.command()
@async_command
async def down(config_file: Path = ConfigFile) -> None:
    """
    Stop services in reverse dependency order.

    Examples:
        readyup down docker-compose.yaml
    """
    from apps.cli.readyup_cli.commands.down import down_command

    await down_command(config_file)


if __name__ == "__main__":
    app()
