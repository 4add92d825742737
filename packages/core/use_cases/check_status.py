"""CheckStatusUseCase - one-shot health snapshot of a deployment.

For every service: is it running, and does a single probe attempt pass.
Returns partial data on failures: one service erroring never hides the
status of the others.
"""

import asyncio
import logging

from pydantic import BaseModel, Field

from packages.core.ports.container_runtime import ContainerRuntime
from packages.core.probe_runner import ProbeRunner
from packages.core.registry import ServiceRegistry
from packages.schemas.readiness import ServiceSpec

logger = logging.getLogger(__name__)


# ========== Models ==========


class ServiceHealth(BaseModel):
    """Health status for a single service.

    Attributes:
        name: Service name.
        running: True if the runtime reports the service running.
        healthy: True if running and a probe attempt passed.
        probe: Description of the probe, if any.
        message: Optional status message or error description.
    """

    name: str = Field(..., description="Service name")
    running: bool = Field(..., description="Runtime reports the service running")
    healthy: bool = Field(..., description="Health status")
    probe: str | None = Field(default=None, description="Probe description")
    message: str | None = Field(default=None, description="Status or error message")


class DeploymentStatus(BaseModel):
    """Aggregate deployment status.

    Attributes:
        overall_healthy: True if all checked services are healthy.
        services: Per-service health, in declaration order.
    """

    overall_healthy: bool = Field(..., description="Overall deployment health")
    services: dict[str, ServiceHealth] = Field(..., description="Per-service health status")


# ========== Use Case ==========


class CheckStatusUseCase:
    """Use case for a one-shot status check of every service."""

    def __init__(self, registry: ServiceRegistry, runtime: ContainerRuntime) -> None:
        self.registry = registry
        self.runtime = runtime
        self.probe_runner = ProbeRunner(runtime)

    async def execute(self, names: list[str] | None = None) -> DeploymentStatus:
        """Check the named services (all services when None).

        Raises:
            ConfigurationError: If a name is not in the registry.
        """
        specs = [self.registry.get(n) for n in names] if names else self.registry.specs()
        results = await asyncio.gather(*(self._check(spec) for spec in specs))
        services = {health.name: health for health in results}
        overall_healthy = all(health.healthy for health in results)

        logger.info(
            f"Deployment status: overall_healthy={overall_healthy}",
            extra={"unhealthy": [h.name for h in results if not h.healthy]},
        )
        return DeploymentStatus(overall_healthy=overall_healthy, services=services)

    async def _check(self, spec: ServiceSpec) -> ServiceHealth:
        probe = spec.probe.describe() if spec.probe else None
        try:
            running = await self.runtime.is_running(spec.name)
            if not running:
                return ServiceHealth(
                    name=spec.name, running=False, healthy=False, probe=probe,
                    message="not running",
                )
            healthy, error = await self.probe_runner.probe_once(spec)
            return ServiceHealth(
                name=spec.name, running=True, healthy=healthy, probe=probe, message=error
            )
        except Exception as e:
            logger.error(f"Status check failed for {spec.name}: {e}", exc_info=True)
            return ServiceHealth(
                name=spec.name, running=False, healthy=False, probe=probe,
                message=f"status check error: {e}",
            )


__all__ = ["CheckStatusUseCase", "DeploymentStatus", "ServiceHealth"]
