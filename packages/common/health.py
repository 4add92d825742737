"""Single-attempt health checks for managed services.

Provides the two probe kinds a service can declare:
- HTTP: GET a URL and compare the status code
- Command: run a command through the container runtime and check exit code 0

Each check returns a bool and logs the failure cause; timeouts are applied
by the caller (the probe runner bounds every attempt).
"""

from typing import TYPE_CHECKING

import httpx

from packages.common.logging import get_logger
from packages.schemas.readiness import HealthProbe

if TYPE_CHECKING:
    from packages.core.ports.container_runtime import ContainerRuntime

logger = get_logger(__name__)


async def check_http_health(
    service: str,
    url: str,
    expected_status: int = 200,
    timeout: float = 5.0,
) -> bool:
    """Check a service's HTTP health endpoint.

    Args:
        service: Service name, for logging.
        url: Endpoint requested with GET.
        expected_status: Status code that means healthy.
        timeout: httpx client timeout in seconds.

    Returns:
        bool: True if the endpoint answered with ``expected_status``.
    """
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.get(url)
            healthy = response.status_code == expected_status
            if healthy:
                logger.debug(f"{service} health check: OK", extra={"service": service})
            else:
                logger.debug(
                    f"{service} health check failed",
                    extra={"service": service, "status_code": response.status_code},
                )
            return healthy
    except httpx.HTTPError as e:
        logger.debug(
            f"{service} health check failed", extra={"service": service, "error": str(e)}
        )
        return False


async def check_command_health(
    runtime: "ContainerRuntime",
    service: str,
    command: list[str],
    shell: bool = False,
) -> bool:
    """Run a health command in the service's context.

    Args:
        runtime: Runtime used to execute the command.
        service: Service name.
        command: Command argv (or a single shell string when ``shell``).
        shell: Run through a shell.

    Returns:
        bool: True if the command exited with status 0.
    """
    exit_code = await runtime.exec(service, command, shell=shell)
    healthy = exit_code == 0
    if healthy:
        logger.debug(f"{service} health check: OK", extra={"service": service})
    else:
        logger.debug(
            f"{service} health check failed",
            extra={"service": service, "exit_code": exit_code},
        )
    return healthy


async def check_probe(runtime: "ContainerRuntime", service: str, probe: HealthProbe) -> bool:
    """Dispatch one attempt of ``probe`` to the matching check.

    Returns:
        bool: True if the attempt succeeded.
    """
    if probe.kind == "http":
        if probe.url is None:
            raise ValueError(f"http probe for {service} has no url")
        return await check_http_health(
            service, probe.url, expected_status=probe.expected_status, timeout=probe.timeout
        )
    if probe.command is None:
        raise ValueError(f"command probe for {service} has no command")
    return await check_command_health(runtime, service, probe.command, shell=probe.shell)


# Export public API
__all__ = ["check_command_health", "check_http_health", "check_probe"]
