"""Tests for TearDownUseCase."""

import pytest

from packages.core.registry import ServiceRegistry
from packages.core.use_cases.tear_down import TearDownUseCase
from tests.utils.fakes import FakeRuntime, make_service


@pytest.fixture
def registry() -> ServiceRegistry:
    return ServiceRegistry(
        [
            make_service("postgres"),
            make_service("zookeeper"),
            make_service("kafka", "zookeeper"),
            make_service("backend", "postgres", "kafka"),
        ]
    )


@pytest.mark.unit
class TestTearDownUseCase:
    """Test reverse-order shutdown."""

    @pytest.mark.asyncio
    async def test_stops_dependents_first(self, registry: ServiceRegistry) -> None:
        runtime = FakeRuntime()

        results = await TearDownUseCase(registry, runtime).execute()

        assert runtime.stopped == ["backend", "kafka", "zookeeper", "postgres"]
        assert list(results) == runtime.stopped
        assert all(error is None for error in results.values())

    @pytest.mark.asyncio
    async def test_continues_after_stop_error(self, registry: ServiceRegistry) -> None:
        runtime = FakeRuntime()
        runtime.stop_errors.add("kafka")

        results = await TearDownUseCase(registry, runtime).execute()

        assert results["kafka"] == "cannot stop kafka"
        assert runtime.stopped == ["backend", "zookeeper", "postgres"]
