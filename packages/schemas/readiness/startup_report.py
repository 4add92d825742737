"""Result models returned by probe and coordination runs."""

from pydantic import BaseModel, Field

from packages.schemas.readiness.service_state import FailureReason, ServiceState


class ProbeResult(BaseModel):
    """Outcome of a probe run.

    Attributes:
        healthy: True if an attempt succeeded within the retry budget.
        attempts: Number of attempts made.
        last_error: Description of the last failed attempt, if any.
    """

    healthy: bool
    attempts: int = Field(..., ge=0)
    last_error: str | None = None


class StartupReport(BaseModel):
    """Outcome of a coordination run.

    Attributes:
        run_id: Correlation id shared by every log record of the run.
        healthy: True only if every service reached Healthy.
        order: Topological order the run followed.
        states: Final state per service.
        restarts: Restart count per service.
        failed_service: First service that failed terminally.
        reason: Why it failed.
        message: Detail for operators.
    """

    run_id: str
    healthy: bool
    order: list[str] = Field(default_factory=list)
    states: dict[str, ServiceState] = Field(default_factory=dict)
    restarts: dict[str, int] = Field(default_factory=dict)
    failed_service: str | None = None
    reason: FailureReason | None = None
    message: str | None = None

    def summary(self) -> str:
        """One-line summary printed by the CLI."""
        if self.healthy:
            return "all services healthy"
        if self.failed_service is None:
            unhealthy = [
                name for name, state in self.states.items() if state is not ServiceState.HEALTHY
            ]
            return f"services not healthy: {', '.join(unhealthy)}"
        reason = self.reason.value if self.reason else "unknown"
        detail = f": {self.message}" if self.message else ""
        return f"service '{self.failed_service}' failed ({reason}){detail}"


__all__ = ["ProbeResult", "StartupReport"]
