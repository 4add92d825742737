"""Ports for driving the container runtime.

Core defines this interface; adapters (packages/clients) implement it on top
of the docker CLI or plain local processes. The coordinator never talks to a
runtime any other way.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from packages.schemas.readiness import ServiceSpec


class ContainerRuntime(ABC):
    """Runtime interface for starting, stopping and observing services."""

    @abstractmethod
    async def start(self, spec: ServiceSpec) -> None:
        """Start the service described by ``spec``.

        Returns once the runtime accepted the start request; readiness is
        decided separately by the probe runner.

        Raises:
            RuntimeCommandError: If the runtime could not start the service.
        """

    @abstractmethod
    async def stop(self, name: str, timeout: float) -> None:
        """Stop a service, escalating to a kill after ``timeout`` seconds."""

    @abstractmethod
    async def is_running(self, name: str) -> bool:
        """Return True if the service is currently running."""

    @abstractmethod
    async def wait(self, name: str) -> int:
        """Block until the service exits and return its exit status."""

    @abstractmethod
    async def exec(self, name: str, command: list[str], shell: bool = False) -> int:
        """Run a probe command in the service's context and return its exit code."""


__all__ = ["ContainerRuntime"]
