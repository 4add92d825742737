"""Ports for core use-cases."""

from __future__ import annotations

from packages.core.ports.container_runtime import ContainerRuntime

__all__ = ["ContainerRuntime"]
