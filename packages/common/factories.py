"""Factory functions for creating fully-wired use cases and dependencies.

Centralizes dependency injection to keep CLI commands thin.
"""

from pathlib import Path

from packages.clients.docker_runtime import DockerRuntime
from packages.clients.subprocess_runtime import SubprocessRuntime
from packages.common.config import ReadyupConfig, get_config
from packages.core.ports.container_runtime import ContainerRuntime
from packages.core.registry import ServiceRegistry
from packages.core.use_cases.bring_up import BringUpUseCase
from packages.core.use_cases.check_status import CheckStatusUseCase
from packages.core.use_cases.tear_down import TearDownUseCase
from packages.loaders.docker_compose import ComposeServiceReader


def make_runtime(
    project_name: str,
    config: ReadyupConfig | None = None,
    working_dir: Path | None = None,
) -> ContainerRuntime:
    """Create the runtime adapter selected by ``config.runtime``.

    Args:
        project_name: Compose project name (prefixes container names).
        config: Settings; defaults to get_config().
        working_dir: Working directory for subprocess services.

    Returns:
        ContainerRuntime: Docker or subprocess adapter.
    """
    config = config or get_config()
    if config.runtime == "subprocess":
        return SubprocessRuntime(cwd=working_dir)
    return DockerRuntime(project_name, docker_binary=config.docker_binary)


def load_registry(
    compose_file: str | Path,
    services: list[str] | None = None,
    config: ReadyupConfig | None = None,
) -> tuple[str, ServiceRegistry]:
    """Read a compose file into a registry.

    Args:
        compose_file: Path to docker-compose.yaml.
        services: Restrict to these services and their dependencies.
        config: Settings; defaults to get_config().

    Returns:
        tuple[str, ServiceRegistry]: Project name (``config.project_name``
            wins over the file) and registry.

    Raises:
        ConfigurationError: If the file or its services are invalid.
    """
    config = config or get_config()
    project_name, specs = ComposeServiceReader(config=config).load_data(compose_file)
    registry = ServiceRegistry(specs)
    if services:
        registry = registry.subset(services)
    return config.project_name or project_name, registry


def make_bring_up_use_case(
    compose_file: str | Path,
    services: list[str] | None = None,
    config: ReadyupConfig | None = None,
) -> BringUpUseCase:
    """Create a fully-wired BringUpUseCase.

    Example:
        use_case = make_bring_up_use_case("docker-compose.yaml")
        report = await use_case.execute()
    """
    config = config or get_config()
    project_name, registry = load_registry(compose_file, services, config)
    runtime = make_runtime(project_name, config, Path(compose_file).resolve().parent)
    return BringUpUseCase(registry=registry, runtime=runtime, config=config)


def make_check_status_use_case(
    compose_file: str | Path,
    config: ReadyupConfig | None = None,
) -> CheckStatusUseCase:
    """Create a fully-wired CheckStatusUseCase."""
    config = config or get_config()
    project_name, registry = load_registry(compose_file, config=config)
    runtime = make_runtime(project_name, config, Path(compose_file).resolve().parent)
    return CheckStatusUseCase(registry=registry, runtime=runtime)


def make_tear_down_use_case(
    compose_file: str | Path,
    config: ReadyupConfig | None = None,
) -> TearDownUseCase:
    """Create a fully-wired TearDownUseCase."""
    config = config or get_config()
    project_name, registry = load_registry(compose_file, config=config)
    runtime = make_runtime(project_name, config, Path(compose_file).resolve().parent)
    return TearDownUseCase(registry=registry, runtime=runtime, stop_timeout=config.stop_timeout)


__all__ = [
    "load_registry",
    "make_bring_up_use_case",
    "make_check_status_use_case",
    "make_runtime",
    "make_tear_down_use_case",
]
