"""Shared service state table.

Each entry is written by the task that owns the service; dependents only
read. Every write notifies an ``asyncio.Condition`` so dependents blocked on
a readiness check wake up and re-evaluate it without polling.
"""

import asyncio
import logging
from collections.abc import Iterable

from packages.core.errors import DependencyStopped, InvalidTransition
from packages.schemas.readiness import (
    STARTED_STATES,
    DependencyCondition,
    ServiceDependency,
    ServiceState,
    can_transition,
)

logger = logging.getLogger(__name__)


class ServiceStateTable:
    """Lifecycle state of every service in a coordination run.

    Attributes:
        history: Every transition in the order it happened, as
            ``(service, state)`` pairs. Used for reporting and ordering checks.
    """

    def __init__(self, names: Iterable[str]) -> None:
        self._states: dict[str, ServiceState] = {name: ServiceState.PENDING for name in names}
        self._restarts: dict[str, int] = {name: 0 for name in self._states}
        self._operator_stopped: set[str] = set()
        self._condition = asyncio.Condition()
        self.history: list[tuple[str, ServiceState]] = []

    def get(self, name: str) -> ServiceState:
        """Current state of ``name``."""
        return self._states[name]

    def snapshot(self) -> dict[str, ServiceState]:
        """Copy of every service's current state."""
        return dict(self._states)

    def restarts(self) -> dict[str, int]:
        """Copy of the per-service restart counters."""
        return dict(self._restarts)

    def record_restart(self, name: str) -> int:
        """Increment and return the restart counter of ``name``."""
        self._restarts[name] += 1
        return self._restarts[name]

    def mark_operator_stopped(self, name: str) -> None:
        """Remember that an operator stopped ``name``; restarts are suppressed."""
        self._operator_stopped.add(name)

    def stopped_by_operator(self, name: str) -> bool:
        """True if an operator explicitly stopped ``name``."""
        return name in self._operator_stopped

    async def transition(self, name: str, target: ServiceState) -> None:
        """Move ``name`` to ``target`` and wake every waiter.

        Raises:
            InvalidTransition: If the lifecycle does not allow the change.
        """
        async with self._condition:
            current = self._states[name]
            if not can_transition(current, target):
                raise InvalidTransition(name, current, target)
            self._states[name] = target
            self.history.append((name, target))
            self._condition.notify_all()

        logger.info(
            f"{name}: {current.value} -> {target.value}",
            extra={"service": name, "from_state": current.value, "to_state": target.value},
        )

    async def force_stopped(self, name: str) -> None:
        """Mark ``name`` Stopped unless it already is.

        Used when a run is aborted or an operator stops a service.
        """
        if self._states[name] is not ServiceState.STOPPED:
            await self.transition(name, ServiceState.STOPPED)

    def is_satisfied(self, edge: ServiceDependency) -> bool:
        """True if ``edge.dependency`` currently meets ``edge.condition``."""
        state = self._states[edge.dependency]
        if edge.condition is DependencyCondition.HEALTHY:
            return state is ServiceState.HEALTHY
        return state in STARTED_STATES

    def unmet(self, edges: Iterable[ServiceDependency]) -> list[ServiceDependency]:
        """Edges whose condition does not hold right now."""
        return [edge for edge in edges if not self.is_satisfied(edge)]

    def stopped(self, edges: Iterable[ServiceDependency]) -> list[ServiceDependency]:
        """Unmet edges whose dependency is Stopped and so can never satisfy them."""
        return [
            edge
            for edge in self.unmet(edges)
            if self._states[edge.dependency] is ServiceState.STOPPED
        ]

    async def wait_until_satisfied(self, edges: Iterable[ServiceDependency]) -> None:
        """Suspend until every edge's condition holds at the same time.

        Raises:
            DependencyStopped: If a dependency that is still needed reaches
                Stopped while waiting.
        """
        edges = list(edges)
        async with self._condition:
            await self._condition.wait_for(lambda: not self.unmet(edges) or self.stopped(edges))
            lost = self.stopped(edges)
            if lost:
                raise DependencyStopped(lost[0].dependent, lost[0].dependency)


__all__ = ["ServiceStateTable"]
