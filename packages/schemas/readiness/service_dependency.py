"""ServiceDependency schema.

A directed edge: ``dependent`` may not start until ``dependency`` reaches
``condition``.
"""

from pydantic import BaseModel, ConfigDict, Field

from packages.schemas.readiness.service_state import DependencyCondition


class ServiceDependency(BaseModel):
    """Dependency edge between two services.

    Examples:
        >>> edge = ServiceDependency(dependent="backend", dependency="postgres")
        >>> edge.condition
        <DependencyCondition.HEALTHY: 'healthy'>
    """

    model_config = ConfigDict(frozen=True)

    dependent: str = Field(..., min_length=1, examples=["backend", "kafka"])
    dependency: str = Field(..., min_length=1, examples=["postgres", "zookeeper"])
    condition: DependencyCondition = Field(
        DependencyCondition.HEALTHY,
        description="Required state of the dependency (healthy or started)",
    )

    def __str__(self) -> str:
        return f"{self.dependent} -> {self.dependency} ({self.condition.value})"


__all__ = ["ServiceDependency"]
