"""Runtime adapters for the ContainerRuntime port.

Anything that talks to a container engine or spawns processes belongs here,
not in packages/core.
"""

from packages.clients.docker_runtime import DockerRuntime
from packages.clients.subprocess_runtime import SubprocessRuntime

__all__ = ["DockerRuntime", "SubprocessRuntime"]
