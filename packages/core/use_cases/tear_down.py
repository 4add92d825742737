"""TearDownUseCase - stop a deployment in reverse dependency order."""

import logging

from packages.core.errors import RuntimeCommandError
from packages.core.ports.container_runtime import ContainerRuntime
from packages.core.registry import ServiceRegistry
from packages.core.resolver import resolve

logger = logging.getLogger(__name__)


class TearDownUseCase:
    """Use case for stopping services, dependents before their dependencies."""

    def __init__(
        self,
        registry: ServiceRegistry,
        runtime: ContainerRuntime,
        stop_timeout: float = 10.0,
    ) -> None:
        self.registry = registry
        self.runtime = runtime
        self.stop_timeout = stop_timeout

    async def execute(self) -> dict[str, str | None]:
        """Stop every service.

        A failing stop is recorded and the remaining services are still
        stopped.

        Returns:
            dict[str, str | None]: Service name to error message (None if
                stopped cleanly), in stop order.

        Raises:
            CycleDetected: If dependencies cycle.
        """
        results: dict[str, str | None] = {}
        for name in reversed(resolve(self.registry)):
            try:
                await self.runtime.stop(name, self.stop_timeout)
                results[name] = None
                logger.info(f"Stopped {name}", extra={"service": name})
            except RuntimeCommandError as e:
                results[name] = str(e)
                logger.error(f"Failed to stop {name}: {e}", extra={"service": name})
        return results


__all__ = ["TearDownUseCase"]
