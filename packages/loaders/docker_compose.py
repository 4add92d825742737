"""Docker Compose YAML reader for readyup.

Reads the coordination-relevant subset of a docker-compose.yaml file and
turns every service into a ServiceSpec:
1. image / command / environment  -> start action
2. healthcheck                    -> HealthProbe
3. depends_on                     -> ServiceDependency edges
4. restart                        -> RestartPolicy (+ on-failure:N budget)

Variable interpolation follows compose: ``${VAR}``, ``${VAR:-default}``,
``${VAR-default}``, ``$VAR`` and ``$$`` for a literal dollar sign.
"""

import logging
import os
import re
import shlex
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from packages.common.config import ReadyupConfig, get_config
from packages.common.durations import DurationError, parse_duration
from packages.core.errors import ConfigurationError
from packages.schemas.readiness import (
    DependencyCondition,
    HealthProbe,
    RestartPolicy,
    ServiceDependency,
    ServiceSpec,
)

logger = logging.getLogger(__name__)

_CONDITIONS = {
    "service_healthy": DependencyCondition.HEALTHY,
    "service_started": DependencyCondition.STARTED,
}

_RESTART_POLICIES = {
    "no": RestartPolicy.NEVER,
    "never": RestartPolicy.NEVER,
    "always": RestartPolicy.ALWAYS,
    "unless-stopped": RestartPolicy.UNLESS_STOPPED,
    "on-failure": RestartPolicy.ON_FAILURE,
}

_VARIABLE = re.compile(
    r"\$(?:(?P<escaped>\$)|\{(?P<braced>[A-Za-z_][A-Za-z0-9_]*)(?:(?P<sep>:?-)(?P<default>[^}]*))?\}"
    r"|(?P<named>[A-Za-z_][A-Za-z0-9_]*))"
)


class InvalidComposeFileError(ConfigurationError):
    """Raised when a compose file is missing, malformed, or unsupported."""


def interpolate(value: Any, environ: Mapping[str, str]) -> Any:
    """Substitute compose variables in every string of ``value``.

    Args:
        value: Parsed YAML value (str, list, dict, or scalar).
        environ: Variables available for substitution.

    Returns:
        Any: ``value`` with variables replaced.

    Examples:
        >>> interpolate("${HOST:-localhost}:$PORT", {"PORT": "5432"})
        'localhost:5432'
    """
    if isinstance(value, str):

        def substitute(match: re.Match[str]) -> str:
            if match.group("escaped"):
                return "$"
            name = match.group("braced") or match.group("named")
            current = environ.get(name)
            sep = match.group("sep")
            if sep == ":-" and not current:
                return match.group("default")
            if sep == "-" and current is None:
                return match.group("default")
            return current or ""

        return _VARIABLE.sub(substitute, value)
    if isinstance(value, list):
        return [interpolate(item, environ) for item in value]
    if isinstance(value, dict):
        return {key: interpolate(item, environ) for key, item in value.items()}
    return value


class ComposeServiceReader:
    """Docker Compose YAML reader producing ServiceSpecs."""

    def __init__(
        self,
        config: ReadyupConfig | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize ComposeServiceReader.

        Args:
            config: Supplies healthcheck defaults; defaults to get_config().
            environ: Interpolation variables; defaults to os.environ.
        """
        self.config = config or get_config()
        self.environ = environ if environ is not None else os.environ

    def load_data(self, file_path: str | Path) -> tuple[str, list[ServiceSpec]]:
        """Load and parse a docker-compose.yaml file.

        Args:
            file_path: Path to the compose file.

        Returns:
            tuple[str, list[ServiceSpec]]: Project name (top-level ``name`` or
                the file's directory name) and services in declaration order.

        Raises:
            InvalidComposeFileError: If the file is missing, is not valid
                YAML, or declares something readyup cannot coordinate.
        """
        path = Path(file_path)
        if not path.is_file():
            raise InvalidComposeFileError(f"File not found: {file_path}")

        logger.info(f"Loading compose file from {file_path}")

        try:
            with path.open("r") as f:
                compose_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise InvalidComposeFileError(f"Invalid YAML in {file_path}: {e}") from e

        if not compose_data or not isinstance(compose_data, dict):
            raise InvalidComposeFileError(f"Invalid compose file structure: {file_path}")

        compose_data = interpolate(compose_data, self.environ)

        services_data = compose_data.get("services")
        if not isinstance(services_data, dict) or not services_data:
            raise InvalidComposeFileError("'services' must be a non-empty mapping")

        project_name = compose_data.get("name") or path.resolve().parent.name or "default"

        specs: list[ServiceSpec] = []
        for service_name, service_config in services_data.items():
            if not isinstance(service_config, dict):
                raise InvalidComposeFileError(f"Service '{service_name}' must be a mapping")
            specs.append(self._create_service_spec(str(service_name), service_config))

        logger.info(
            f"Loaded {len(specs)} services from {file_path}",
            extra={"project": project_name, "services": [s.name for s in specs]},
        )
        return str(project_name), specs

    def _create_service_spec(self, name: str, service_config: dict[str, Any]) -> ServiceSpec:
        restart, max_restarts = self._parse_restart(name, service_config.get("restart"))
        try:
            return ServiceSpec(
                name=name,
                image=service_config.get("image"),
                command=self._parse_command(service_config.get("command")),
                environment=self._parse_environment(name, service_config.get("environment")),
                probe=self._create_health_probe(name, service_config.get("healthcheck")),
                depends_on=self._parse_depends_on(name, service_config.get("depends_on")),
                restart=restart,
                max_restarts=max_restarts,
            )
        except ValidationError as e:
            raise InvalidComposeFileError(f"Invalid service '{name}': {e}") from e

    def _parse_command(self, command: Any) -> list[str] | None:
        if command is None:
            return None
        if isinstance(command, str):
            return shlex.split(command)
        return [str(part) for part in command]

    def _parse_environment(self, name: str, environment: Any) -> dict[str, str]:
        if environment is None:
            return {}
        if isinstance(environment, dict):
            # Dict format: {KEY: VALUE}; a null value inherits from the host
            return {
                str(key): str(value) if value is not None else self.environ.get(str(key), "")
                for key, value in environment.items()
            }
        if isinstance(environment, list):
            # List format: ["KEY=VALUE", "KEY2"]
            result: dict[str, str] = {}
            for item in environment:
                key, sep, value = str(item).partition("=")
                result[key] = value if sep else self.environ.get(key, "")
            return result
        raise InvalidComposeFileError(f"Service '{name}': environment must be a list or mapping")

    def _parse_depends_on(self, name: str, depends_on: Any) -> list[ServiceDependency]:
        if depends_on is None:
            return []
        if isinstance(depends_on, list):
            # Short syntax waits for the container to start, as compose does
            return [
                ServiceDependency(
                    dependent=name, dependency=str(target), condition=DependencyCondition.STARTED
                )
                for target in depends_on
            ]
        if isinstance(depends_on, dict):
            edges = []
            for target, dep_config in depends_on.items():
                raw = "service_started"
                if isinstance(dep_config, dict):
                    raw = dep_config.get("condition", raw)
                condition = _CONDITIONS.get(raw)
                if condition is None:
                    raise InvalidComposeFileError(
                        f"Service '{name}': unsupported depends_on condition '{raw}' "
                        f"for '{target}' (use service_healthy or service_started)"
                    )
                edges.append(
                    ServiceDependency(dependent=name, dependency=str(target), condition=condition)
                )
            return edges
        raise InvalidComposeFileError(f"Service '{name}': depends_on must be a list or mapping")

    def _parse_restart(self, name: str, restart: Any) -> tuple[RestartPolicy, int | None]:
        if restart is None or restart is False:
            return RestartPolicy.NEVER, None
        raw, _, limit = str(restart).partition(":")
        policy = _RESTART_POLICIES.get(raw.strip())
        if policy is None:
            raise InvalidComposeFileError(f"Service '{name}': unknown restart policy '{restart}'")
        if not limit:
            return policy, None
        if policy is not RestartPolicy.ON_FAILURE or not limit.strip().isdigit():
            raise InvalidComposeFileError(f"Service '{name}': invalid restart policy '{restart}'")
        return policy, int(limit)

    def _create_health_probe(self, name: str, healthcheck: Any) -> HealthProbe | None:
        if healthcheck is None:
            return None
        if not isinstance(healthcheck, dict):
            raise InvalidComposeFileError(f"Service '{name}': healthcheck must be a mapping")
        if healthcheck.get("disable"):
            return None

        try:
            timing = {
                "interval": parse_duration(healthcheck.get("interval"), self.config.probe_interval),
                "timeout": parse_duration(healthcheck.get("timeout"), self.config.probe_timeout),
                "start_period": parse_duration(
                    healthcheck.get("start_period"), self.config.probe_start_period
                ),
                "retries": int(healthcheck.get("retries", self.config.probe_retries)),
            }
        except (DurationError, TypeError, ValueError) as e:
            raise InvalidComposeFileError(f"Service '{name}': invalid healthcheck: {e}") from e

        http = healthcheck.get("http")
        if http is not None:
            if isinstance(http, str):
                http = {"url": http}
            return HealthProbe(
                kind="http",
                url=http.get("url"),
                expected_status=int(http.get("status", 200)),
                **timing,
            )

        test = healthcheck.get("test")
        if test is None:
            return None
        if isinstance(test, str):
            return HealthProbe(kind="command", command=[test], shell=True, **timing)
        if not isinstance(test, list) or not test:
            raise InvalidComposeFileError(f"Service '{name}': invalid healthcheck test")

        head, args = str(test[0]), [str(part) for part in test[1:]]
        if head == "NONE":
            return None
        if head == "CMD":
            return HealthProbe(kind="command", command=args, **timing)
        if head == "CMD-SHELL":
            return HealthProbe(kind="command", command=[" ".join(args)], shell=True, **timing)
        raise InvalidComposeFileError(
            f"Service '{name}': healthcheck test must start with CMD, CMD-SHELL or NONE"
        )


__all__ = ["ComposeServiceReader", "InvalidComposeFileError", "interpolate"]
