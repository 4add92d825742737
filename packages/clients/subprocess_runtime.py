"""Local process runtime adapter.

Implements the ContainerRuntime port with plain child processes, one per
service ``command``. Probe commands run on the host. Useful for running the
coordinator without a container engine, and in tests.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import IO

from packages.core.errors import RuntimeCommandError
from packages.core.ports.container_runtime import ContainerRuntime
from packages.schemas.readiness import ServiceSpec

logger = logging.getLogger(__name__)


class SubprocessRuntime(ContainerRuntime):
    """Runs each service's command as a local process."""

    def __init__(self, cwd: str | Path | None = None, log_dir: str | Path | None = None) -> None:
        """Initialize SubprocessRuntime.

        Args:
            cwd: Working directory for service processes.
            log_dir: Directory receiving ``<service>.log`` files; output is
                discarded when None.
        """
        self.cwd = str(cwd) if cwd is not None else None
        self.log_dir = Path(log_dir) if log_dir is not None else None
        self._processes: dict[str, asyncio.subprocess.Process] = {}
        self._logs: dict[str, IO[bytes]] = {}

    def _process(self, name: str) -> asyncio.subprocess.Process:
        try:
            return self._processes[name]
        except KeyError:
            raise RuntimeCommandError(f"service '{name}' was never started") from None

    def _open_log(self, name: str) -> IO[bytes] | int:
        if self.log_dir is None:
            return asyncio.subprocess.DEVNULL
        self.log_dir.mkdir(parents=True, exist_ok=True)
        handle = (self.log_dir / f"{name}.log").open("ab")
        self._logs[name] = handle
        return handle

    def _close_log(self, name: str) -> None:
        handle = self._logs.pop(name, None)
        if handle is not None:
            handle.close()

    async def start(self, spec: ServiceSpec) -> None:
        existing = self._processes.get(spec.name)
        if existing is not None and existing.returncode is None:
            raise RuntimeCommandError(f"service '{spec.name}' is already running")
        if not spec.command:
            raise RuntimeCommandError(f"service '{spec.name}' has no command to run")

        self._close_log(spec.name)
        output = self._open_log(spec.name)
        try:
            proc = await asyncio.create_subprocess_exec(
                *spec.command,
                cwd=self.cwd,
                env={**os.environ, **spec.environment},
                stdin=asyncio.subprocess.DEVNULL,
                stdout=output,
                stderr=output,
            )
        except OSError as e:
            self._close_log(spec.name)
            raise RuntimeCommandError(f"cannot run {spec.command[0]}: {e}") from e

        self._processes[spec.name] = proc
        logger.debug("Spawned process", extra={"service": spec.name, "pid": proc.pid})

    async def stop(self, name: str, timeout: float) -> None:
        proc = self._processes.get(name)
        if proc is None or proc.returncode is not None:
            self._close_log(name)
            return
        proc.terminate()
        try:
            await asyncio.wait_for(proc.wait(), timeout=timeout)
        except TimeoutError:
            logger.warning(
                f"{name} did not stop within {timeout:g}s, killing",
                extra={"service": name, "pid": proc.pid},
            )
            proc.kill()
            await proc.wait()
        finally:
            self._close_log(name)

    async def is_running(self, name: str) -> bool:
        proc = self._processes.get(name)
        return proc is not None and proc.returncode is None

    async def wait(self, name: str) -> int:
        return await self._process(name).wait()

    async def exec(self, name: str, command: list[str], shell: bool = False) -> int:
        try:
            if shell:
                proc = await asyncio.create_subprocess_shell(
                    " ".join(command),
                    cwd=self.cwd,
                    stdout=asyncio.subprocess.DEVNULL,
                    stderr=asyncio.subprocess.DEVNULL,
                )
            else:
                proc = await asyncio.create_subprocess_exec(
                    *command,
                    cwd=self.cwd,
                    stdout=asyncio.subprocess.DEVNULL,
                    stderr=asyncio.subprocess.DEVNULL,
                )
        except OSError as e:
            raise RuntimeCommandError(f"cannot run probe for '{name}': {e}") from e
        try:
            return await proc.wait()
        except asyncio.CancelledError:
            if proc.returncode is None:
                proc.kill()
            raise


__all__ = ["SubprocessRuntime"]
