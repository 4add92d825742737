"""Tests for dependency graph resolution."""

import random

import pytest

from packages.core.errors import ConfigurationError, CycleDetected
from packages.core.registry import ServiceRegistry
from packages.core.resolver import resolve, startup_waves
from tests.utils.fakes import make_service


def _assert_dependencies_first(registry: ServiceRegistry, order: list[str]) -> None:
    position = {name: index for index, name in enumerate(order)}
    for edge in registry.edges():
        assert position[edge.dependency] < position[edge.dependent], str(edge)


def _random_dag(seed: int, size: int = 12) -> ServiceRegistry:
    rng = random.Random(seed)
    names = [f"svc{i}" for i in range(size)]
    specs = []
    for index, name in enumerate(names):
        candidates = names[:index]
        deps = rng.sample(candidates, k=min(len(candidates), rng.randint(0, 3)))
        specs.append(make_service(name, *deps))
    rng.shuffle(specs)
    return ServiceRegistry(specs)


@pytest.mark.unit
class TestResolve:
    """Test topological ordering."""

    def test_scenario_order(self) -> None:
        registry = ServiceRegistry(
            [
                make_service("backend", "postgres", "kafka"),
                make_service("kafka", "zookeeper"),
                make_service("postgres"),
                make_service("zookeeper"),
            ]
        )
        assert resolve(registry) == ["postgres", "zookeeper", "kafka", "backend"]

    def test_independent_services_keep_declaration_order(self) -> None:
        registry = ServiceRegistry([make_service("c"), make_service("a"), make_service("b")])
        assert resolve(registry) == ["c", "a", "b"]

    @pytest.mark.parametrize("seed", range(20))
    def test_random_graphs_put_dependencies_first(self, seed: int) -> None:
        registry = _random_dag(seed)
        order = resolve(registry)
        assert sorted(order) == sorted(registry.names())
        _assert_dependencies_first(registry, order)

    def test_two_node_cycle(self) -> None:
        registry = ServiceRegistry([make_service("A", "B"), make_service("B", "A")])
        with pytest.raises(CycleDetected) as exc_info:
            resolve(registry)
        assert exc_info.value.cycle == ["A", "B", "A"]
        assert "A -> B -> A" in str(exc_info.value)

    def test_cycle_reports_only_the_cycle(self) -> None:
        registry = ServiceRegistry(
            [
                make_service("web", "api"),
                make_service("api", "worker"),
                make_service("worker", "queue"),
                make_service("queue", "api"),
            ]
        )
        with pytest.raises(CycleDetected) as exc_info:
            resolve(registry)
        assert exc_info.value.cycle == ["api", "worker", "queue", "api"]

    def test_cycle_is_a_configuration_error(self) -> None:
        registry = ServiceRegistry([make_service("A", "B"), make_service("B", "A")])
        with pytest.raises(ConfigurationError):
            resolve(registry)


@pytest.mark.unit
class TestStartupWaves:
    """Test wave grouping."""

    def test_scenario_waves(self) -> None:
        registry = ServiceRegistry(
            [
                make_service("postgres"),
                make_service("zookeeper"),
                make_service("kafka", "zookeeper"),
                make_service("backend", "postgres", "kafka"),
            ]
        )
        assert startup_waves(registry) == [["postgres", "zookeeper"], ["kafka"], ["backend"]]

    def test_empty_registry(self) -> None:
        assert startup_waves(ServiceRegistry([])) == []
        assert resolve(ServiceRegistry([])) == []

    def test_cycle_raises(self) -> None:
        registry = ServiceRegistry([make_service("A", "B"), make_service("B", "A")])
        with pytest.raises(CycleDetected):
            startup_waves(registry)
