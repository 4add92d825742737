"""RestartSupervisor - applies restart policies to failing services.

Policies:
    always / unless-stopped: restart on any exit unless an operator stopped it
    on-failure:              restart only on a non-zero exit (start errors and
                             probe timeouts count as failures)
    never:                   leave the service Stopped

Restarts are spaced with exponential backoff so a crash-looping service
cannot cause a restart storm. During startup every policy is capped by the
restart budget; once running, only on-failure keeps that cap.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from tenacity import AsyncRetrying

from packages.common.resilience import SleepFn, restart_retrying
from packages.core.errors import DependencyStopped, ServiceExited, ServiceFailure
from packages.core.ports.container_runtime import ContainerRuntime
from packages.core.state_table import ServiceStateTable
from packages.schemas.readiness import RestartPolicy, ServiceSpec, ServiceState

logger = logging.getLogger(__name__)

LaunchFn = Callable[[ServiceSpec], Awaitable[None]]


def should_restart(
    policy: RestartPolicy,
    exit_code: int | None,
    stopped_by_operator: bool = False,
) -> bool:
    """Decide whether a service that stopped running gets restarted.

    Args:
        policy: The service's restart policy.
        exit_code: Exit status, or None when the service never got running
            (start error, probe timeout).
        stopped_by_operator: True if an operator explicitly stopped it.

    Returns:
        bool: True if the supervisor should restart the service.
    """
    if stopped_by_operator:
        return False
    if policy in (RestartPolicy.ALWAYS, RestartPolicy.UNLESS_STOPPED):
        return True
    if policy is RestartPolicy.ON_FAILURE:
        return exit_code != 0
    return False


class RestartSupervisor:
    """Keeps services running according to their restart policy."""

    def __init__(
        self,
        runtime: ContainerRuntime,
        states: ServiceStateTable,
        max_restarts: int = 3,
        backoff_min: float = 1.0,
        backoff_max: float = 30.0,
        backoff_multiplier: float = 1.0,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        """Initialize RestartSupervisor.

        Args:
            runtime: Runtime delivering exit notifications.
            states: Shared state table of the run.
            max_restarts: Default restart budget per service.
            backoff_min: Minimum seconds between restarts.
            backoff_max: Maximum seconds between restarts.
            backoff_multiplier: Exponential backoff multiplier.
            sleep: Awaitable sleep (injectable for tests).
        """
        self.runtime = runtime
        self.states = states
        self.max_restarts = max_restarts
        self.backoff_min = backoff_min
        self.backoff_max = backoff_max
        self.backoff_multiplier = backoff_multiplier
        self._sleep = sleep

    def _budget(self, spec: ServiceSpec) -> int:
        return spec.max_restarts if spec.max_restarts is not None else self.max_restarts

    def _permits(self, spec: ServiceSpec) -> Callable[[BaseException], bool]:
        def permits(exc: BaseException) -> bool:
            if not isinstance(exc, ServiceFailure) or isinstance(exc, DependencyStopped):
                return False
            return should_restart(
                spec.restart, exc.exit_code, self.states.stopped_by_operator(spec.name)
            )

        return permits

    def _retrying(self, spec: ServiceSpec, max_restarts: int | None) -> AsyncRetrying:
        return restart_retrying(
            self._permits(spec),
            max_restarts,
            min_wait=self.backoff_min,
            max_wait=self.backoff_max,
            multiplier=self.backoff_multiplier,
            sleep=self._sleep,
        )

    async def launch_with_restarts(self, spec: ServiceSpec, launch: LaunchFn) -> None:
        """Launch ``spec`` and re-launch it per policy until it is healthy.

        Every policy is capped by the restart budget here so startup always
        terminates.

        Args:
            spec: Service to launch.
            launch: Coroutine function that starts and probes the service,
                raising ServiceFailure on failure.

        Raises:
            ServiceFailure: The last failure once the policy forbids another
                restart or the restart budget is exhausted.
        """
        async for attempt in self._retrying(spec, self._budget(spec)):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    count = self.states.record_restart(spec.name)
                    logger.info(
                        f"Restarting {spec.name} (restart {count})",
                        extra={"service": spec.name, "restart": count},
                    )
                await launch(spec)

    def _remaining(self, spec: ServiceSpec) -> int | None:
        """Restarts left after startup; None means unbounded.

        ``always`` and ``unless-stopped`` are only rate limited. ``on-failure``
        keeps a hard cap shared with the restarts made during startup.
        """
        if spec.restart is not RestartPolicy.ON_FAILURE:
            return None
        return max(self._budget(spec) - self.states.restarts()[spec.name], 0)

    async def _relaunch(self, spec: ServiceSpec, launch: LaunchFn, remaining: int | None) -> None:
        # Fresh loop per exit: backoff grows across failed relaunches and
        # resets once the service is healthy again.
        await self._sleep(self.backoff_min)
        async for attempt in self._retrying(spec, None if remaining is None else remaining - 1):
            with attempt:
                count = self.states.record_restart(spec.name)
                logger.info(
                    f"Restarting {spec.name} after exit (restart {count})",
                    extra={"service": spec.name, "restart": count},
                )
                await launch(spec)

    async def supervise(self, spec: ServiceSpec, launch: LaunchFn) -> None:
        """Watch a running service and restart it per policy when it exits.

        Returns once the service is terminal: Stopped after a clean exit the
        policy does not restart, or Failed after an unrestartable failure.
        Operator stops end supervision quietly.

        Args:
            spec: Running service to watch.
            launch: Coroutine function that waits for dependencies, then
                starts and probes the service.
        """
        try:
            while True:
                exit_code = await self.runtime.wait(spec.name)
                if self.states.stopped_by_operator(spec.name):
                    return
                if self.states.get(spec.name) is ServiceState.HEALTHY and exit_code != 0:
                    await self.states.transition(spec.name, ServiceState.FAILED)
                exited = ServiceExited(spec.name, exit_code)
                remaining = self._remaining(spec)
                if not self._permits(spec)(exited):
                    raise exited
                if remaining == 0:
                    logger.warning(
                        f"{spec.name} restart budget exhausted",
                        extra={"service": spec.name, "restarts": self._budget(spec)},
                    )
                    raise exited
                await self._relaunch(spec, launch, remaining)
        except ServiceFailure as e:
            if self.states.stopped_by_operator(spec.name):
                return
            clean_exit = isinstance(e, ServiceExited) and e.exit_code == 0
            level = logging.INFO if clean_exit else logging.ERROR
            logger.log(
                level,
                f"{spec.name} will not be restarted: {e}",
                extra={"service": spec.name, "reason": e.reason.value},
            )
            if not clean_exit and self.states.get(spec.name) is not ServiceState.FAILED:
                await self.states.transition(spec.name, ServiceState.FAILED)
            await self.states.force_stopped(spec.name)

    async def supervise_all(
        self,
        specs: list[ServiceSpec],
        launch: LaunchFn,
        tasks: dict[str, asyncio.Task[None]] | None = None,
    ) -> None:
        """Supervise every service concurrently until all are terminal.

        Args:
            specs: Services to supervise.
            launch: Coroutine function used for restarts.
            tasks: Filled with the supervision task of each service so callers
                can cancel one of them.

        Raises:
            CoordinationError: The first error that ended a supervision task,
                unwrapped from the task group.
        """
        tasks = {} if tasks is None else tasks
        try:
            async with asyncio.TaskGroup() as group:
                for spec in specs:
                    tasks[spec.name] = group.create_task(
                        self.supervise(spec, launch), name=f"supervise:{spec.name}"
                    )
        except BaseExceptionGroup as group_error:
            first = group_error.exceptions[0]
            logger.error(
                f"Supervision aborted: {first}",
                extra={"errors": [str(e) for e in group_error.exceptions]},
            )
            raise first


__all__ = ["LaunchFn", "RestartSupervisor", "should_restart"]
