"""ServiceRegistry - validated, ordered collection of service specs.

The registry is the static half of coordination: it knows every service,
its dependencies and its dependents, and refuses configurations that refer
to services it does not know.
"""

import logging
from collections.abc import Iterable, Iterator

from packages.core.errors import ConfigurationError
from packages.schemas.readiness import ServiceDependency, ServiceSpec

logger = logging.getLogger(__name__)


class ServiceRegistry:
    """Registry of managed services keyed by name, in declaration order."""

    def __init__(self, specs: Iterable[ServiceSpec]) -> None:
        """Build the registry and validate dependency targets.

        Args:
            specs: Service specs in declaration order.

        Raises:
            ConfigurationError: On duplicate names or dependencies on
                undeclared services.
        """
        self._specs: dict[str, ServiceSpec] = {}
        for spec in specs:
            if spec.name in self._specs:
                raise ConfigurationError(f"Duplicate service name: {spec.name}")
            self._specs[spec.name] = spec

        for spec in self._specs.values():
            for edge in spec.depends_on:
                if edge.dependency not in self._specs:
                    raise ConfigurationError(
                        f"Service '{spec.name}' depends on undeclared service "
                        f"'{edge.dependency}'"
                    )

        self._dependents: dict[str, list[str]] = {name: [] for name in self._specs}
        for spec in self._specs.values():
            for edge in spec.depends_on:
                self._dependents[edge.dependency].append(spec.name)

        logger.debug("Built service registry", extra={"services": list(self._specs)})

    def __len__(self) -> int:
        return len(self._specs)

    def __contains__(self, name: object) -> bool:
        return name in self._specs

    def __iter__(self) -> Iterator[ServiceSpec]:
        return iter(self._specs.values())

    def get(self, name: str) -> ServiceSpec:
        """Return the ServiceSpec for ``name``.

        Raises:
            ConfigurationError: If the service is not registered.
        """
        try:
            return self._specs[name]
        except KeyError:
            raise ConfigurationError(f"Unknown service: {name}") from None

    def names(self) -> list[str]:
        """Service names in declaration order."""
        return list(self._specs)

    def specs(self) -> list[ServiceSpec]:
        """Service specs in declaration order."""
        return list(self._specs.values())

    def edges(self) -> list[ServiceDependency]:
        """All dependency edges of the registry."""
        return [edge for spec in self._specs.values() for edge in spec.depends_on]

    def dependencies_of(self, name: str) -> list[ServiceDependency]:
        """Dependency edges declared by ``name``."""
        return list(self.get(name).depends_on)

    def dependents_of(self, name: str) -> list[str]:
        """Services that declare a dependency on ``name``."""
        self.get(name)
        return list(self._dependents[name])

    def subset(self, names: Iterable[str]) -> "ServiceRegistry":
        """Registry restricted to ``names`` plus everything they depend on.

        Args:
            names: Services the caller wants to bring up.

        Returns:
            ServiceRegistry: Closed sub-registry, still in declaration order.
        """
        wanted: set[str] = set()
        stack = list(names)
        while stack:
            name = stack.pop()
            if name in wanted:
                continue
            wanted.add(name)
            stack.extend(self.get(name).dependency_names())
        return ServiceRegistry(spec for spec in self._specs.values() if spec.name in wanted)


__all__ = ["ServiceRegistry"]
