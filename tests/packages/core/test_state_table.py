"""Tests for the shared service state table."""

import asyncio

import pytest

from packages.core.errors import DependencyStopped, InvalidTransition
from packages.core.state_table import ServiceStateTable
from packages.schemas.readiness import DependencyCondition, ServiceDependency, ServiceState

HEALTHY_EDGE = ServiceDependency(dependent="api", dependency="db")
STARTED_EDGE = ServiceDependency(
    dependent="api", dependency="cache", condition=DependencyCondition.STARTED
)


@pytest.mark.unit
class TestServiceStateTable:
    """Test transitions and readiness checks."""

    @pytest.mark.asyncio
    async def test_records_history(self) -> None:
        table = ServiceStateTable(["db"])
        await table.transition("db", ServiceState.STARTING)
        await table.transition("db", ServiceState.HEALTHY)
        assert table.get("db") is ServiceState.HEALTHY
        assert table.history == [("db", ServiceState.STARTING), ("db", ServiceState.HEALTHY)]

    @pytest.mark.asyncio
    async def test_rejects_illegal_transition(self) -> None:
        table = ServiceStateTable(["db"])
        with pytest.raises(InvalidTransition, match="pending -> healthy"):
            await table.transition("db", ServiceState.HEALTHY)
        assert table.get("db") is ServiceState.PENDING

    @pytest.mark.asyncio
    async def test_started_condition(self) -> None:
        table = ServiceStateTable(["api", "cache"])
        assert not table.is_satisfied(STARTED_EDGE)
        await table.transition("cache", ServiceState.STARTING)
        assert table.is_satisfied(STARTED_EDGE)
        await table.transition("cache", ServiceState.PROBING_HEALTH)
        assert table.is_satisfied(STARTED_EDGE)

    @pytest.mark.asyncio
    async def test_healthy_condition(self) -> None:
        table = ServiceStateTable(["api", "db"])
        await table.transition("db", ServiceState.STARTING)
        await table.transition("db", ServiceState.PROBING_HEALTH)
        assert table.unmet([HEALTHY_EDGE]) == [HEALTHY_EDGE]
        await table.transition("db", ServiceState.HEALTHY)
        assert table.unmet([HEALTHY_EDGE]) == []

    @pytest.mark.asyncio
    async def test_waiters_wake_when_condition_holds(self) -> None:
        table = ServiceStateTable(["api", "db", "cache"])
        waiter = asyncio.create_task(table.wait_until_satisfied([HEALTHY_EDGE, STARTED_EDGE]))

        await table.transition("cache", ServiceState.STARTING)
        await asyncio.sleep(0)
        assert not waiter.done()

        await table.transition("db", ServiceState.STARTING)
        await table.transition("db", ServiceState.HEALTHY)
        await asyncio.wait_for(waiter, timeout=1)

    @pytest.mark.asyncio
    async def test_waiter_fails_when_dependency_stops(self) -> None:
        table = ServiceStateTable(["api", "db"])
        waiter = asyncio.create_task(table.wait_until_satisfied([HEALTHY_EDGE]))
        await table.transition("db", ServiceState.STARTING)
        await asyncio.sleep(0)
        assert not waiter.done()

        await table.force_stopped("db")

        with pytest.raises(DependencyStopped, match="dependency 'db' is stopped") as exc_info:
            await asyncio.wait_for(waiter, timeout=1)
        assert exc_info.value.service == "api"
        assert table.stopped([HEALTHY_EDGE]) == [HEALTHY_EDGE]

    @pytest.mark.asyncio
    async def test_force_stopped_is_idempotent(self) -> None:
        table = ServiceStateTable(["db"])
        await table.force_stopped("db")
        await table.force_stopped("db")
        assert table.get("db") is ServiceState.STOPPED
        assert table.history == [("db", ServiceState.STOPPED)]

    def test_restart_counters_and_operator_stop(self) -> None:
        table = ServiceStateTable(["db"])
        assert table.record_restart("db") == 1
        assert table.record_restart("db") == 2
        assert table.restarts() == {"db": 2}
        assert not table.stopped_by_operator("db")
        table.mark_operator_stopped("db")
        assert table.stopped_by_operator("db")
