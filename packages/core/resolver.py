"""Dependency graph resolution.

Orders services so every dependency comes before its dependents. Uses a
depth-first traversal with three marks; reaching a node that is still in
progress means the graph has a cycle, and resolution fails without
producing any order.
"""

import logging
from enum import Enum

from packages.core.errors import CycleDetected
from packages.core.registry import ServiceRegistry

logger = logging.getLogger(__name__)


class _Mark(Enum):
    UNVISITED = 0
    IN_PROGRESS = 1
    DONE = 2


def resolve(registry: ServiceRegistry) -> list[str]:
    """Return a topological startup order for ``registry``.

    Mutually independent services keep their declaration order.

    Args:
        registry: Services to order.

    Returns:
        list[str]: Service names, dependencies first.

    Raises:
        CycleDetected: If the dependencies form a cycle. ``cycle`` lists the
            services on it, e.g. ``["A", "B", "A"]``.
    """
    marks = {name: _Mark.UNVISITED for name in registry.names()}
    order: list[str] = []
    path: list[str] = []

    def visit(name: str) -> None:
        mark = marks[name]
        if mark is _Mark.DONE:
            return
        if mark is _Mark.IN_PROGRESS:
            cycle = path[path.index(name) :] + [name]
            raise CycleDetected(cycle)

        marks[name] = _Mark.IN_PROGRESS
        path.append(name)
        for dependency in registry.get(name).dependency_names():
            visit(dependency)
        path.pop()
        marks[name] = _Mark.DONE
        order.append(name)

    for name in registry.names():
        visit(name)

    logger.debug("Resolved startup order", extra={"order": order})
    return order


def startup_waves(registry: ServiceRegistry) -> list[list[str]]:
    """Group the startup order into waves of mutually independent services.

    A service lands in the wave after the latest wave of its dependencies,
    so every wave can start concurrently once the previous one is ready.

    Raises:
        CycleDetected: If the dependencies form a cycle.
    """
    depth: dict[str, int] = {}
    for name in resolve(registry):
        deps = registry.get(name).dependency_names()
        depth[name] = 1 + max((depth[dep] for dep in deps), default=-1)

    waves: list[list[str]] = [[] for _ in range(max(depth.values(), default=-1) + 1)]
    for name in registry.names():
        waves[depth[name]].append(name)
    return waves


__all__ = ["resolve", "startup_waves"]
