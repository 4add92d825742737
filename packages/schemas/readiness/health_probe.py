"""HealthProbe schema.

Represents the readiness check declared for a service: either a command
whose exit code decides health, or an HTTP request whose status code does.
"""

from typing import Literal

from pydantic import BaseModel, Field, model_validator


class HealthProbe(BaseModel):
    """Health probe configuration for a managed service.

    All durations are in seconds.

    Examples:
        >>> probe = HealthProbe(kind="command", command=["pg_isready", "-U", "postgres"])
        >>> probe.retries
        3
        >>> HealthProbe(kind="http", url="http://localhost:8000/health").expected_status
        200
    """

    kind: Literal["command", "http"] = Field(
        ...,
        description="Probe kind: command exit-code check or HTTP status check",
    )

    # Command probes
    command: list[str] | None = Field(
        None,
        description="Command argv; a single shell string when shell=True",
        examples=[["pg_isready", "-U", "postgres"], ["curl -f http://localhost/ || exit 1"]],
    )
    shell: bool = Field(
        False,
        description="Run the command through a shell (compose CMD-SHELL)",
    )

    # HTTP probes
    url: str | None = Field(
        None,
        description="URL requested with GET",
        examples=["http://localhost:8000/health"],
    )
    expected_status: int = Field(
        200,
        ge=100,
        le=599,
        description="Status code that marks the service healthy",
    )

    # Timing
    interval: float = Field(30.0, ge=0.0, description="Seconds between attempts")
    timeout: float = Field(30.0, gt=0.0, description="Seconds allowed per attempt")
    retries: int = Field(3, ge=1, description="Attempts before the service is unhealthy")
    start_period: float = Field(0.0, ge=0.0, description="Grace delay before the first attempt")

    @model_validator(mode="after")
    def _check_kind_fields(self) -> "HealthProbe":
        if self.kind == "command" and not self.command:
            raise ValueError("command probes require a non-empty command")
        if self.kind == "http" and not self.url:
            raise ValueError("http probes require a url")
        return self

    def describe(self) -> str:
        """Human readable one-liner for tables and log messages."""
        if self.kind == "http":
            return f"GET {self.url} -> {self.expected_status}"
        if self.command is None:
            raise ValueError("command probe has no command")
        return " ".join(self.command)


__all__ = ["HealthProbe"]
