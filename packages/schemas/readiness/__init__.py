"""Readiness coordination schemas.

Models:
- ServiceSpec: Static description of a managed service
- HealthProbe: Command or HTTP readiness probe
- ServiceDependency: Dependency edge with required condition
- ServiceState / RestartPolicy / DependencyCondition / FailureReason: Enums
- ProbeResult / StartupReport: Run outcomes
"""

from packages.schemas.readiness.health_probe import HealthProbe
from packages.schemas.readiness.service_dependency import ServiceDependency
from packages.schemas.readiness.service_spec import ServiceSpec
from packages.schemas.readiness.service_state import (
    ALLOWED_TRANSITIONS,
    STARTED_STATES,
    DependencyCondition,
    FailureReason,
    RestartPolicy,
    ServiceState,
    can_transition,
)
from packages.schemas.readiness.startup_report import ProbeResult, StartupReport

__all__ = [
    "ALLOWED_TRANSITIONS",
    "STARTED_STATES",
    "DependencyCondition",
    "FailureReason",
    "HealthProbe",
    "ProbeResult",
    "RestartPolicy",
    "ServiceDependency",
    "ServiceSpec",
    "ServiceState",
    "StartupReport",
    "can_transition",
]
