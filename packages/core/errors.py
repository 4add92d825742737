"""Error kinds raised during readiness coordination.

Configuration errors and invariant violations abort a whole run.
ServiceFailure subclasses are local to one service and are handed to the
restart supervisor before they can abort anything.
"""

from packages.schemas.readiness import DependencyCondition, FailureReason, ServiceState


class CoordinationError(Exception):
    """Base exception for readiness coordination errors."""


class ConfigurationError(CoordinationError):
    """Raised when the service configuration is invalid."""


class CycleDetected(ConfigurationError):
    """Raised when service dependencies form a cycle.

    Attributes:
        cycle: Services on the cycle, first service repeated at the end.
    """

    def __init__(self, cycle: list[str]) -> None:
        self.cycle = cycle
        super().__init__(f"Dependency cycle detected: {' -> '.join(cycle)}")


class DependencyUnmet(CoordinationError):
    """Raised when a service is about to start before a dependency is ready.

    Indicates a coordinator bug rather than a service problem.
    """

    reason = FailureReason.DEPENDENCY_UNMET

    def __init__(
        self,
        service: str,
        dependency: str,
        condition: DependencyCondition,
        actual: ServiceState,
    ) -> None:
        self.service = service
        self.dependency = dependency
        self.condition = condition
        self.actual = actual
        super().__init__(
            f"'{service}' cannot start: dependency '{dependency}' must be "
            f"{condition.value} but is {actual.value}"
        )


class InvalidTransition(CoordinationError):
    """Raised when a service state change is not in the lifecycle table."""

    def __init__(self, service: str, current: ServiceState, target: ServiceState) -> None:
        self.service = service
        self.current = current
        self.target = target
        super().__init__(
            f"Illegal state transition for '{service}': {current.value} -> {target.value}"
        )


class RuntimeCommandError(CoordinationError):
    """Raised by runtime adapters when a runtime operation fails."""


class ServiceFailure(CoordinationError):
    """A single service failed to start, become healthy, or keep running.

    Attributes:
        service: Name of the failing service.
        reason: Failure category reported to operators.
        exit_code: Process exit code when the failure is an exit, else None.
    """

    reason: FailureReason = FailureReason.START_ERROR

    def __init__(self, service: str, message: str, exit_code: int | None = None) -> None:
        self.service = service
        self.exit_code = exit_code
        super().__init__(message)


class StartError(ServiceFailure):
    """The runtime could not start the service."""

    reason = FailureReason.START_ERROR


class ProbeTimeout(ServiceFailure):
    """The service did not become healthy within its retry budget."""

    reason = FailureReason.PROBE_TIMEOUT

    def __init__(self, service: str, attempts: int, last_error: str | None = None) -> None:
        self.attempts = attempts
        self.last_error = last_error
        detail = f" (last error: {last_error})" if last_error else ""
        super().__init__(
            service, f"'{service}' not healthy after {attempts} probe attempts{detail}"
        )


class DependencyStopped(ServiceFailure):
    """A dependency the service was waiting on stopped for good.

    Attributes:
        dependency: Name of the stopped dependency.
    """

    reason = FailureReason.DEPENDENCY_UNMET

    def __init__(self, service: str, dependency: str) -> None:
        self.dependency = dependency
        super().__init__(
            service, f"'{service}' cannot start: dependency '{dependency}' is stopped"
        )


class ServiceExited(ServiceFailure):
    """A running service exited."""

    reason = FailureReason.EXITED

    def __init__(self, service: str, exit_code: int) -> None:
        super().__init__(service, f"'{service}' exited with status {exit_code}", exit_code)


__all__ = [
    "ConfigurationError",
    "CoordinationError",
    "CycleDetected",
    "DependencyStopped",
    "DependencyUnmet",
    "InvalidTransition",
    "ProbeTimeout",
    "RuntimeCommandError",
    "ServiceExited",
    "ServiceFailure",
    "StartError",
]
