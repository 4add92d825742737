"""Shared pytest fixtures for the readyup test suite.

Provides test configuration, a fake runtime, a no-op sleep and a sample
compose file used across test modules.
"""

import os
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from packages.common.config import ReadyupConfig, get_config
from packages.common.tracing import clear_run_id
from tests.utils.fakes import FakeRuntime

SCENARIO_COMPOSE = """
name: shop
services:
  postgres:
    image: postgres:16
    healthcheck:
      test: ["CMD", "pg_isready", "-U", "postgres"]
      interval: 0s
      retries: 3
  zookeeper:
    image: bitnami/zookeeper:3.9
    healthcheck:
      test: ["CMD-SHELL", "echo ruok | nc localhost 2181"]
      interval: 0s
  kafka:
    image: bitnami/kafka:3.7
    depends_on:
      zookeeper:
        condition: service_healthy
    healthcheck:
      test: ["CMD", "kafka-topics.sh", "--list"]
      interval: 0s
  backend:
    image: example/backend:1.4
    restart: on-failure:2
    depends_on:
      postgres:
        condition: service_healthy
      kafka:
        condition: service_healthy
"""

# ========== Test Environment Setup ==========


@pytest.fixture(scope="session", autouse=True)
def setup_test_env() -> Iterator[None]:
    """Pin environment variables so get_config() is deterministic in tests."""
    os.environ["READYUP_RUNTIME"] = "docker"
    os.environ["READYUP_RESTART_BACKOFF_MIN"] = "0"
    os.environ["READYUP_RESTART_BACKOFF_MAX"] = "0"
    os.environ["READYUP_LOG_LEVEL"] = "WARNING"
    os.environ.pop("READYUP_PROJECT_NAME", None)
    get_config.cache_clear()
    yield
    get_config.cache_clear()


@pytest.fixture(autouse=True)
def reset_run_id() -> Iterator[None]:
    """Keep run IDs from leaking between tests."""
    yield
    clear_run_id()


# ========== Configuration Fixtures ==========


@pytest.fixture
def test_config() -> ReadyupConfig:
    """Provide configuration with instant backoff and probes.

    Returns:
        ReadyupConfig: Configuration instance for testing.
    """
    return ReadyupConfig(
        runtime="docker",
        max_parallel_starts=4,
        max_restarts=2,
        restart_backoff_min=0,
        restart_backoff_max=0,
        probe_interval=0,
        probe_timeout=1,
        probe_retries=3,
        stop_timeout=1,
        log_level="DEBUG",
    )


# ========== Runtime Fixtures ==========


@pytest.fixture
def fake_runtime() -> FakeRuntime:
    """Runtime double where every start and probe succeeds."""
    return FakeRuntime()


@pytest.fixture
def fake_sleep() -> AsyncMock:
    """Sleep replacement that returns immediately and records delays."""
    return AsyncMock(return_value=None)


# ========== Compose Fixtures ==========


@pytest.fixture
def compose_file(tmp_path: Path) -> Path:
    """Write the postgres/zookeeper/kafka/backend scenario to a compose file."""
    path = tmp_path / "docker-compose.yaml"
    path.write_text(SCENARIO_COMPOSE)
    return path
