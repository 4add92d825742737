"""StartupCoordinator - brings services up in dependency order.

One asyncio task per service:
    Pending -> (WaitingOnDependencies) -> Starting -> ProbingHealth -> Healthy

A task only leaves Pending/WaitingOnDependencies once every dependency has
reached its required condition, so independent services start concurrently
while dependents are strictly ordered after their dependencies. Restarts
go through the same gate, so a dependent restarting together with its
dependency waits for it again. Start actions are bounded by a semaphore.
Failures go through the restart supervisor; a failure it will not restart
aborts the whole run.
"""

import asyncio
import logging

from packages.common.resilience import SleepFn
from packages.common.tracing import get_run_id
from packages.core.errors import (
    CoordinationError,
    DependencyStopped,
    DependencyUnmet,
    ProbeTimeout,
    ServiceFailure,
    StartError,
)
from packages.core.ports.container_runtime import ContainerRuntime
from packages.core.probe_runner import ProbeRunner
from packages.core.registry import ServiceRegistry
from packages.core.resolver import resolve
from packages.core.state_table import ServiceStateTable
from packages.core.supervisor import RestartSupervisor
from packages.schemas.readiness import ServiceSpec, ServiceState, StartupReport

logger = logging.getLogger(__name__)


class StartupCoordinator:
    """Drives a registry of services from Pending to Healthy."""

    def __init__(
        self,
        registry: ServiceRegistry,
        runtime: ContainerRuntime,
        max_parallel_starts: int = 4,
        max_restarts: int = 3,
        backoff_min: float = 1.0,
        backoff_max: float = 30.0,
        backoff_multiplier: float = 1.0,
        stop_timeout: float = 10.0,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        """Initialize StartupCoordinator.

        Args:
            registry: Services to bring up.
            runtime: Runtime that starts and stops services.
            max_parallel_starts: Start actions allowed to run at once.
            max_restarts: Default restart budget per service.
            backoff_min: Minimum seconds between restarts.
            backoff_max: Maximum seconds between restarts.
            backoff_multiplier: Exponential backoff multiplier.
            stop_timeout: Seconds the runtime waits before killing on stop.
            sleep: Awaitable sleep for probes and backoff (injectable for tests).
        """
        self.registry = registry
        self.runtime = runtime
        self.stop_timeout = stop_timeout
        self.states = ServiceStateTable(registry.names())
        self.probe_runner = ProbeRunner(runtime, sleep=sleep)
        self.supervisor = RestartSupervisor(
            runtime,
            self.states,
            max_restarts=max_restarts,
            backoff_min=backoff_min,
            backoff_max=backoff_max,
            backoff_multiplier=backoff_multiplier,
            sleep=sleep,
        )
        self._start_slots = asyncio.Semaphore(max_parallel_starts)
        self._tasks: dict[str, asyncio.Task[None]] = {}
        self.order: list[str] = []

    # ========== Startup ==========

    async def start_all(self) -> StartupReport:
        """Bring every service up in dependency order.

        Returns:
            StartupReport: ``healthy=True`` if every service became healthy,
                otherwise the first service that failed and why.

        Raises:
            CycleDetected: Before any service starts, if dependencies cycle.
            DependencyUnmet: If a service was about to start too early.
            InvalidTransition: If the lifecycle was violated.
        """
        self.order = resolve(self.registry)
        logger.info(
            f"Starting {len(self.order)} services",
            extra={"order": self.order},
        )

        self._tasks = {
            name: asyncio.create_task(self._bring_up(self.registry.get(name)), name=f"up:{name}")
            for name in self.order
        }

        failure: ServiceFailure | None = None
        pending: set[asyncio.Task[None]] = set(self._tasks.values())
        try:
            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_EXCEPTION)
                errors = [
                    task.exception()
                    for task in done
                    if not task.cancelled() and task.exception() is not None
                ]
                if not errors:
                    continue
                fatal = next((e for e in errors if not isinstance(e, ServiceFailure)), None)
                if fatal is not None:
                    raise fatal
                failure = errors[0]  # type: ignore[assignment]
                break
        finally:
            if pending:
                await self._abort(pending)

        if failure is not None:
            logger.error(
                f"Startup aborted: {failure}",
                extra={"service": failure.service, "reason": failure.reason.value},
            )
            return self.report(failure)

        report = self.report()
        if report.healthy:
            logger.info("All services healthy", extra={"order": self.order})
        else:
            logger.warning(
                "Startup finished with services not healthy",
                extra={"states": {name: state.value for name, state in report.states.items()}},
            )
        return report

    async def _abort(self, pending: set[asyncio.Task[None]]) -> None:
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        for name, state in self.states.snapshot().items():
            if state in (
                ServiceState.PENDING,
                ServiceState.WAITING_ON_DEPENDENCIES,
                ServiceState.STARTING,
                ServiceState.PROBING_HEALTH,
            ):
                await self.states.force_stopped(name)

    async def _bring_up(self, spec: ServiceSpec) -> None:
        try:
            await self.supervisor.launch_with_restarts(spec, self.gated_launch)
        except ServiceFailure:
            if self.states.get(spec.name) is ServiceState.FAILED:
                await self.states.force_stopped(spec.name)
            raise

    async def _await_dependencies(self, spec: ServiceSpec) -> None:
        edges = spec.depends_on
        if not self.states.unmet(edges):
            return
        await self.states.transition(spec.name, ServiceState.WAITING_ON_DEPENDENCIES)
        logger.info(
            f"{spec.name} waiting on dependencies",
            extra={
                "service": spec.name,
                "waiting_on": [str(e) for e in self.states.unmet(edges)],
            },
        )
        try:
            await self.states.wait_until_satisfied(edges)
        except DependencyStopped:
            await self.states.transition(spec.name, ServiceState.FAILED)
            raise

    def _check_dependencies(self, spec: ServiceSpec) -> None:
        for edge in spec.depends_on:
            if not self.states.is_satisfied(edge):
                raise DependencyUnmet(
                    spec.name, edge.dependency, edge.condition, self.states.get(edge.dependency)
                )

    async def gated_launch(self, spec: ServiceSpec) -> None:
        """Wait until ``spec``'s dependencies are ready, then launch it.

        Used for first starts and for every restart, so a service restarting
        alongside its dependencies waits for them again.

        Raises:
            DependencyStopped: If a dependency stopped for good while waiting.
        """
        await self._await_dependencies(spec)
        await self.launch(spec)

    async def launch(self, spec: ServiceSpec) -> None:
        """Start ``spec`` once and probe it until healthy.

        Expects the dependencies to be ready already; ``gated_launch`` waits
        for them first.

        Raises:
            DependencyUnmet: If a dependency condition does not hold.
            StartError: If the runtime could not start the service.
            ProbeTimeout: If the probe budget was exhausted.
        """
        self._check_dependencies(spec)
        await self.states.transition(spec.name, ServiceState.STARTING)

        async with self._start_slots:
            try:
                await self.runtime.start(spec)
            except (CoordinationError, OSError) as e:
                await self.states.transition(spec.name, ServiceState.FAILED)
                raise StartError(spec.name, f"'{spec.name}' failed to start: {e}") from e

        if spec.probe is not None:
            await self.states.transition(spec.name, ServiceState.PROBING_HEALTH)
            result = await self.probe_runner.run(spec)
            if not result.healthy:
                await self.states.transition(spec.name, ServiceState.FAILED)
                raise ProbeTimeout(spec.name, result.attempts, result.last_error)

        await self.states.transition(spec.name, ServiceState.HEALTHY)

    # ========== Post-startup ==========

    async def supervise(self) -> None:
        """Keep healthy services running per their restart policy.

        Runs until every supervised service is terminal or the caller
        cancels it (e.g. on Ctrl-C).
        """
        specs = [
            self.registry.get(name)
            for name in self.order
            if self.states.get(name) is ServiceState.HEALTHY
        ]
        self._tasks = {}
        await self.supervisor.supervise_all(specs, self.gated_launch, tasks=self._tasks)

    async def stop(self, name: str) -> None:
        """Operator stop: cancel pending probes and suppress restarts for ``name``.

        Args:
            name: Service to stop.
        """
        spec = self.registry.get(name)
        self.states.mark_operator_stopped(spec.name)
        task = self._tasks.get(spec.name)
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        await self.runtime.stop(spec.name, self.stop_timeout)
        await self.states.force_stopped(spec.name)
        logger.info(f"{spec.name} stopped by operator", extra={"service": spec.name})

    # ========== Reporting ==========

    def report(self, failure: ServiceFailure | None = None) -> StartupReport:
        """Build a report of the run's current state."""
        states = self.states.snapshot()
        return StartupReport(
            run_id=get_run_id() or "",
            healthy=failure is None and all(s is ServiceState.HEALTHY for s in states.values()),
            order=self.order,
            states=states,
            restarts=self.states.restarts(),
            failed_service=failure.service if failure else None,
            reason=failure.reason if failure else None,
            message=str(failure) if failure else None,
        )


__all__ = ["StartupCoordinator"]
