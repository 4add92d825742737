"""Tests for use case factories."""

from pathlib import Path

import pytest

from packages.clients.docker_runtime import DockerRuntime
from packages.clients.subprocess_runtime import SubprocessRuntime
from packages.common.config import ReadyupConfig
from packages.common.factories import (
    load_registry,
    make_bring_up_use_case,
    make_check_status_use_case,
    make_runtime,
    make_tear_down_use_case,
)


@pytest.mark.unit
class TestFactories:
    """Test dependency wiring."""

    def test_make_runtime_docker(self, test_config: ReadyupConfig) -> None:
        runtime = make_runtime("shop", test_config)
        assert isinstance(runtime, DockerRuntime)
        assert runtime.container_name("db") == "shop-db"

    def test_make_runtime_subprocess(self, test_config: ReadyupConfig, tmp_path: Path) -> None:
        config = test_config.model_copy(update={"runtime": "subprocess"})
        runtime = make_runtime("shop", config, tmp_path)
        assert isinstance(runtime, SubprocessRuntime)
        assert runtime.cwd == str(tmp_path)

    def test_load_registry(self, compose_file: Path, test_config: ReadyupConfig) -> None:
        project, registry = load_registry(compose_file, config=test_config)
        assert project == "shop"
        assert registry.names() == ["postgres", "zookeeper", "kafka", "backend"]

    def test_load_registry_subset(self, compose_file: Path, test_config: ReadyupConfig) -> None:
        _, registry = load_registry(compose_file, ["kafka"], test_config)
        assert registry.names() == ["zookeeper", "kafka"]

    def test_project_name_override(self, compose_file: Path, test_config: ReadyupConfig) -> None:
        config = test_config.model_copy(update={"project_name": "staging"})
        project, _ = load_registry(compose_file, config=config)
        assert project == "staging"

    def test_use_cases_are_wired(self, compose_file: Path, test_config: ReadyupConfig) -> None:
        bring_up = make_bring_up_use_case(compose_file, config=test_config)
        status = make_check_status_use_case(compose_file, config=test_config)
        tear_down = make_tear_down_use_case(compose_file, config=test_config)

        assert isinstance(bring_up.runtime, DockerRuntime)
        assert bring_up.config is test_config
        assert len(status.registry) == 4
        assert tear_down.stop_timeout == test_config.stop_timeout
