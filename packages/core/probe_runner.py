"""ProbeRunner - decides when a started service is healthy.

Algorithm (compose ``healthcheck`` semantics):
    1. wait ``start_period``
    2. up to ``retries`` attempts, each bounded by ``timeout``, with
       ``interval`` seconds between attempts
    3. the first successful attempt makes the service healthy; exhausting
       every attempt makes it unhealthy

An attempt that times out or raises counts as a failed attempt.
"""

import asyncio
import logging

from tenacity import RetryError

from packages.common.health import check_probe
from packages.common.resilience import SleepFn, probe_retrying
from packages.core.ports.container_runtime import ContainerRuntime
from packages.schemas.readiness import ProbeResult, ServiceSpec

logger = logging.getLogger(__name__)


class ProbeRunner:
    """Runs a service's health probe until success or budget exhaustion."""

    def __init__(self, runtime: ContainerRuntime, sleep: SleepFn = asyncio.sleep) -> None:
        """Initialize ProbeRunner.

        Args:
            runtime: Runtime used to execute command probes.
            sleep: Awaitable sleep for start period and intervals (injectable for tests).
        """
        self.runtime = runtime
        self._sleep = sleep

    async def probe_once(self, spec: ServiceSpec) -> tuple[bool, str | None]:
        """Run a single probe attempt bounded by the probe timeout.

        Args:
            spec: Service to probe. Services without a probe are healthy.

        Returns:
            tuple[bool, str | None]: Health and, on failure, a description.
        """
        probe = spec.probe
        if probe is None:
            return True, None
        try:
            healthy = await asyncio.wait_for(
                check_probe(self.runtime, spec.name, probe), timeout=probe.timeout
            )
        except TimeoutError:
            return False, f"probe timed out after {probe.timeout:g}s"
        except Exception as e:
            logger.debug(
                "Probe attempt raised", extra={"service": spec.name, "error": str(e)}
            )
            return False, f"probe error: {e}"
        if healthy:
            return True, None
        return False, f"probe failed: {probe.describe()}"

    async def run(self, spec: ServiceSpec) -> ProbeResult:
        """Probe ``spec`` until healthy or out of attempts.

        Args:
            spec: Service to probe.

        Returns:
            ProbeResult: ``healthy`` plus the number of attempts made.
        """
        probe = spec.probe
        if probe is None:
            return ProbeResult(healthy=True, attempts=0)

        if probe.start_period > 0:
            logger.debug(
                f"Waiting {probe.start_period:g}s start period",
                extra={"service": spec.name},
            )
            await self._sleep(probe.start_period)

        attempts = 0
        last_error: str | None = None
        try:
            async for attempt in probe_retrying(probe.retries, probe.interval, self._sleep):
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    healthy, last_error = await self.probe_once(spec)
                    if not healthy:
                        logger.debug(
                            f"{spec.name} probe attempt {attempts}/{probe.retries} failed",
                            extra={"service": spec.name, "attempt": attempts, "error": last_error},
                        )
                if not attempt.retry_state.outcome.failed:
                    attempt.retry_state.set_result(healthy)
        except RetryError:
            logger.warning(
                f"{spec.name} unhealthy after {attempts} attempts",
                extra={"service": spec.name, "attempts": attempts, "error": last_error},
            )
            return ProbeResult(healthy=False, attempts=attempts, last_error=last_error)

        logger.debug(
            f"{spec.name} healthy after {attempts} attempts",
            extra={"service": spec.name, "attempts": attempts},
        )
        return ProbeResult(healthy=True, attempts=attempts)


__all__ = ["ProbeRunner"]
