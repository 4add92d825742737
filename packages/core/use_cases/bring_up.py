"""BringUpUseCase - start a deployment and report whether it became healthy.

Wires a StartupCoordinator for one run, tags the run with a run ID, and
optionally keeps supervising after startup.
"""

import asyncio
import logging

from packages.common.config import ReadyupConfig
from packages.common.resilience import SleepFn
from packages.common.tracing import TracingContext
from packages.core.coordinator import StartupCoordinator
from packages.core.ports.container_runtime import ContainerRuntime
from packages.core.registry import ServiceRegistry
from packages.schemas.readiness import StartupReport

logger = logging.getLogger(__name__)


class BringUpUseCase:
    """Use case for bringing every service of a registry up in order."""

    def __init__(
        self,
        registry: ServiceRegistry,
        runtime: ContainerRuntime,
        config: ReadyupConfig,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        """Initialize BringUpUseCase with dependencies.

        Args:
            registry: Services to bring up.
            runtime: Runtime adapter.
            config: Parallelism, restart and stop settings.
            sleep: Awaitable sleep (injectable for tests).
        """
        self.registry = registry
        self.runtime = runtime
        self.config = config
        self._sleep = sleep

    def make_coordinator(self) -> StartupCoordinator:
        """Create the coordinator for a single run."""
        return StartupCoordinator(
            self.registry,
            self.runtime,
            max_parallel_starts=self.config.max_parallel_starts,
            max_restarts=self.config.max_restarts,
            backoff_min=self.config.restart_backoff_min,
            backoff_max=self.config.restart_backoff_max,
            backoff_multiplier=self.config.restart_backoff_multiplier,
            stop_timeout=self.config.stop_timeout,
            sleep=self._sleep,
        )

    async def execute(self, supervise: bool = False) -> StartupReport:
        """Bring the deployment up.

        Args:
            supervise: Keep supervising healthy services after startup until
                they are all terminal or the caller cancels.

        Returns:
            StartupReport: Startup outcome (final state when supervising).

        Raises:
            CycleDetected: If dependencies cycle; nothing is started.
            DependencyUnmet: On an ordering invariant violation.
        """
        with TracingContext() as run_id:
            logger.info(
                "Bringing up services",
                extra={"run_id": run_id, "services": self.registry.names()},
            )
            coordinator = self.make_coordinator()
            report = await coordinator.start_all()
            if report.healthy and supervise:
                logger.info("Supervising services", extra={"run_id": run_id})
                await coordinator.supervise()
                report = coordinator.report()
            return report


__all__ = ["BringUpUseCase"]
