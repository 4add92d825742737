"""Docker CLI runtime adapter.

Implements the ContainerRuntime port by shelling out to the ``docker`` CLI
with asyncio subprocesses. Containers are named ``<project>-<service>`` and
labelled with the project and service so they can be found again.

Docker's own restart policy is never set: restarts are decided by the
readyup supervisor so that dependency gating also applies to restarts.
"""

import asyncio
import logging

from packages.common.resilience import resilient_async_call
from packages.core.errors import RuntimeCommandError
from packages.core.ports.container_runtime import ContainerRuntime
from packages.schemas.readiness import ServiceSpec

logger = logging.getLogger(__name__)

PROJECT_LABEL = "io.readyup.project"
SERVICE_LABEL = "io.readyup.service"


class DockerRuntime(ContainerRuntime):
    """Runs services as Docker containers via the docker CLI."""

    def __init__(self, project_name: str, docker_binary: str = "docker") -> None:
        """Initialize DockerRuntime.

        Args:
            project_name: Prefix for container names.
            docker_binary: Path or name of the docker executable.
        """
        self.project_name = project_name
        self.docker_binary = docker_binary
        logger.info(
            "Initialized DockerRuntime",
            extra={"project": project_name, "docker_binary": docker_binary},
        )

    def container_name(self, service: str) -> str:
        """Container name used for ``service``."""
        return f"{self.project_name}-{service}"

    async def _docker(self, *args: str, check: bool = True) -> tuple[int, str, str]:
        """Run a docker CLI command.

        Returns:
            tuple[int, str, str]: Exit code, stdout and stderr.

        Raises:
            RuntimeCommandError: If ``check`` is set and the command failed,
                or the docker binary cannot be executed.
        """
        try:
            proc = await asyncio.create_subprocess_exec(
                self.docker_binary,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise RuntimeCommandError(f"cannot run {self.docker_binary}: {e}") from e

        try:
            stdout, stderr = await proc.communicate()
        except asyncio.CancelledError:
            if proc.returncode is None:
                proc.kill()
            raise
        returncode = proc.returncode if proc.returncode is not None else -1
        out = stdout.decode(errors="replace")
        err = stderr.decode(errors="replace")
        if check and returncode != 0:
            raise RuntimeCommandError(
                f"docker {args[0]} exited with {returncode}: {err.strip() or out.strip()}"
            )
        return returncode, out, err

    async def _exists(self, container: str) -> bool:
        returncode, _, _ = await self._docker("container", "inspect", container, check=False)
        return returncode == 0

    async def start(self, spec: ServiceSpec) -> None:
        container = self.container_name(spec.name)
        if await self._exists(container):
            logger.debug("Starting existing container", extra={"container": container})
            await self._docker("start", container)
            return

        if not spec.image:
            raise RuntimeCommandError(f"service '{spec.name}' has no image to run")

        args = [
            "run",
            "--detach",
            "--name",
            container,
            "--label",
            f"{PROJECT_LABEL}={self.project_name}",
            "--label",
            f"{SERVICE_LABEL}={spec.name}",
        ]
        for key, value in spec.environment.items():
            args.extend(["--env", f"{key}={value}"])
        args.append(spec.image)
        args.extend(spec.command or [])

        logger.debug("Creating container", extra={"container": container, "image": spec.image})
        await self._docker(*args)

    @resilient_async_call(max_attempts=3, min_wait=1, max_wait=5, retry_on=(RuntimeCommandError,))
    async def stop(self, name: str, timeout: float) -> None:
        container = self.container_name(name)
        if not await self._exists(container):
            return
        await self._docker("stop", "--time", str(int(timeout)), container)

    async def is_running(self, name: str) -> bool:
        returncode, out, _ = await self._docker(
            "container",
            "inspect",
            "--format",
            "{{.State.Running}}",
            self.container_name(name),
            check=False,
        )
        return returncode == 0 and out.strip() == "true"

    async def wait(self, name: str) -> int:
        _, out, _ = await self._docker("wait", self.container_name(name))
        try:
            return int(out.strip().splitlines()[-1])
        except (ValueError, IndexError) as e:
            raise RuntimeCommandError(f"unexpected docker wait output: {out!r}") from e

    async def exec(self, name: str, command: list[str], shell: bool = False) -> int:
        argv = ["sh", "-c", " ".join(command)] if shell else list(command)
        returncode, _, _ = await self._docker(
            "exec", self.container_name(name), *argv, check=False
        )
        return returncode


__all__ = ["PROJECT_LABEL", "SERVICE_LABEL", "DockerRuntime"]
