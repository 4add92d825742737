"""Service lifecycle state and restart policy enums.

The transition table below is the single source of truth for which state
changes the coordinator and supervisor are allowed to make.
"""

from enum import Enum


class ServiceState(str, Enum):
    """Lifecycle states for a managed service."""

    PENDING = "pending"
    WAITING_ON_DEPENDENCIES = "waiting_on_dependencies"
    STARTING = "starting"
    PROBING_HEALTH = "probing_health"
    HEALTHY = "healthy"
    FAILED = "failed"
    STOPPED = "stopped"


class RestartPolicy(str, Enum):
    """Restart policies understood by the supervisor.

    Compose spells ``never`` as ``"no"``; both are accepted by the loader.
    """

    ALWAYS = "always"
    UNLESS_STOPPED = "unless-stopped"
    ON_FAILURE = "on-failure"
    NEVER = "never"


class DependencyCondition(str, Enum):
    """State a dependency must reach before its dependent may start."""

    HEALTHY = "healthy"
    STARTED = "started"


class FailureReason(str, Enum):
    """Why a coordination run did not end with every service healthy."""

    START_ERROR = "start_error"
    PROBE_TIMEOUT = "probe_timeout"
    DEPENDENCY_UNMET = "dependency_unmet"
    EXITED = "exited"
    CYCLE_DETECTED = "cycle_detected"


# Stopped is reachable from every non-terminal state (operator stop, abort).
ALLOWED_TRANSITIONS: dict[ServiceState, frozenset[ServiceState]] = {
    ServiceState.PENDING: frozenset(
        {ServiceState.WAITING_ON_DEPENDENCIES, ServiceState.STARTING, ServiceState.STOPPED}
    ),
    ServiceState.WAITING_ON_DEPENDENCIES: frozenset(
        {ServiceState.STARTING, ServiceState.FAILED, ServiceState.STOPPED}
    ),
    ServiceState.STARTING: frozenset(
        {
            ServiceState.PROBING_HEALTH,
            ServiceState.HEALTHY,
            ServiceState.FAILED,
            ServiceState.STOPPED,
        }
    ),
    ServiceState.PROBING_HEALTH: frozenset(
        {ServiceState.HEALTHY, ServiceState.FAILED, ServiceState.STOPPED}
    ),
    ServiceState.HEALTHY: frozenset(
        {
            ServiceState.FAILED,
            ServiceState.WAITING_ON_DEPENDENCIES,
            ServiceState.STARTING,
            ServiceState.STOPPED,
        }
    ),
    ServiceState.FAILED: frozenset(
        {ServiceState.WAITING_ON_DEPENDENCIES, ServiceState.STARTING, ServiceState.STOPPED}
    ),
    ServiceState.STOPPED: frozenset(),
}

# States that satisfy a ``started`` dependency condition.
STARTED_STATES = frozenset(
    {ServiceState.STARTING, ServiceState.PROBING_HEALTH, ServiceState.HEALTHY}
)


def can_transition(current: ServiceState, target: ServiceState) -> bool:
    """Return True if ``current -> target`` is a legal lifecycle transition."""
    return target in ALLOWED_TRANSITIONS[current]


__all__ = [
    "ALLOWED_TRANSITIONS",
    "STARTED_STATES",
    "DependencyCondition",
    "FailureReason",
    "RestartPolicy",
    "ServiceState",
    "can_transition",
]
