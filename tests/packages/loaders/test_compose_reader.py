"""Tests for ComposeServiceReader."""

from pathlib import Path

import pytest

from packages.common.config import ReadyupConfig
from packages.loaders.docker_compose import (
    ComposeServiceReader,
    InvalidComposeFileError,
    interpolate,
)
from packages.schemas.readiness import DependencyCondition, RestartPolicy


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "docker-compose.yaml"
    path.write_text(text)
    return path


@pytest.fixture
def reader(test_config: ReadyupConfig) -> ComposeServiceReader:
    return ComposeServiceReader(config=test_config, environ={"PG_TAG": "16", "API_PORT": "8080"})


@pytest.mark.unit
class TestInterpolate:
    """Test compose variable interpolation."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("${PG_TAG}", "16"),
            ("$PG_TAG", "16"),
            ("${MISSING:-fallback}", "fallback"),
            ("${EMPTY:-fallback}", "fallback"),
            ("${EMPTY-fallback}", ""),
            ("${MISSING-fallback}", "fallback"),
            ("${MISSING}", ""),
            ("cost: $$5", "cost: $5"),
            ("postgres:${PG_TAG}-alpine", "postgres:16-alpine"),
        ],
    )
    def test_strings(self, value: str, expected: str) -> None:
        assert interpolate(value, {"PG_TAG": "16", "EMPTY": ""}) == expected

    def test_nested(self) -> None:
        value = {"image": "pg:${T}", "command": ["run", "$T"], "retries": 3}
        assert interpolate(value, {"T": "1"}) == {
            "image": "pg:1",
            "command": ["run", "1"],
            "retries": 3,
        }


@pytest.mark.unit
class TestComposeServiceReader:
    """Test compose file parsing."""

    def test_scenario(self, compose_file: Path, reader: ComposeServiceReader) -> None:
        project, specs = reader.load_data(compose_file)

        assert project == "shop"
        assert [s.name for s in specs] == ["postgres", "zookeeper", "kafka", "backend"]

        postgres = specs[0]
        assert postgres.image == "postgres:16"
        assert postgres.probe is not None
        assert postgres.probe.command == ["pg_isready", "-U", "postgres"]
        assert postgres.probe.shell is False
        assert postgres.probe.interval == 0.0

        zookeeper = specs[1]
        assert zookeeper.probe is not None
        assert zookeeper.probe.shell is True
        assert zookeeper.probe.command == ["echo ruok | nc localhost 2181"]

        kafka = specs[2]
        assert [(e.dependency, e.condition) for e in kafka.depends_on] == [
            ("zookeeper", DependencyCondition.HEALTHY)
        ]

        backend = specs[3]
        assert backend.probe is None
        assert backend.restart is RestartPolicy.ON_FAILURE
        assert backend.max_restarts == 2
        assert backend.dependency_names() == ["postgres", "kafka"]

    def test_project_name_defaults_to_directory(
        self, tmp_path: Path, reader: ComposeServiceReader
    ) -> None:
        path = _write(tmp_path, "services:\n  web:\n    image: nginx\n")
        project, _ = reader.load_data(path)
        assert project == tmp_path.name

    def test_healthcheck_defaults_come_from_config(
        self, tmp_path: Path, test_config: ReadyupConfig
    ) -> None:
        config = test_config.model_copy(update={"probe_interval": 7.0, "probe_retries": 9})
        path = _write(
            tmp_path,
            "services:\n  web:\n    image: nginx\n    healthcheck:\n      test: curl -f localhost\n",
        )
        _, specs = ComposeServiceReader(config=config, environ={}).load_data(path)
        probe = specs[0].probe
        assert probe is not None
        assert (probe.interval, probe.retries, probe.shell) == (7.0, 9, True)

    def test_durations(self, tmp_path: Path, reader: ComposeServiceReader) -> None:
        path = _write(
            tmp_path,
            """
services:
  db:
    image: postgres
    healthcheck:
      test: ["CMD", "pg_isready"]
      interval: 1m30s
      timeout: 500ms
      start_period: 2s
      retries: 5
""",
        )
        probe = reader.load_data(path)[1][0].probe
        assert probe is not None
        assert (probe.interval, probe.timeout, probe.start_period, probe.retries) == (
            90.0,
            0.5,
            2.0,
            5,
        )

    def test_http_probe_extension(self, tmp_path: Path, reader: ComposeServiceReader) -> None:
        path = _write(
            tmp_path,
            """
services:
  api:
    image: example/api
    healthcheck:
      http:
        url: http://localhost:${API_PORT}/health
        status: 204
  web:
    image: example/web
    healthcheck:
      http: http://localhost/
""",
        )
        _, specs = reader.load_data(path)
        api_probe, web_probe = specs[0].probe, specs[1].probe
        assert api_probe is not None and web_probe is not None
        assert (api_probe.kind, api_probe.url, api_probe.expected_status) == (
            "http",
            "http://localhost:8080/health",
            204,
        )
        assert web_probe.expected_status == 200

    def test_disabled_and_none_healthchecks(
        self, tmp_path: Path, reader: ComposeServiceReader
    ) -> None:
        path = _write(
            tmp_path,
            """
services:
  a:
    image: x
    healthcheck:
      disable: true
  b:
    image: x
    healthcheck:
      test: ["NONE"]
""",
        )
        _, specs = reader.load_data(path)
        assert [s.probe for s in specs] == [None, None]

    def test_short_depends_on_means_started(
        self, tmp_path: Path, reader: ComposeServiceReader
    ) -> None:
        path = _write(
            tmp_path,
            "services:\n  db:\n    image: pg\n  api:\n    image: api\n    depends_on: [db]\n",
        )
        _, specs = reader.load_data(path)
        assert specs[1].depends_on[0].condition is DependencyCondition.STARTED

    def test_environment_and_command(self, tmp_path: Path, reader: ComposeServiceReader) -> None:
        path = _write(
            tmp_path,
            """
services:
  a:
    image: pg:${PG_TAG}
    command: postgres -c 'max_connections=200'
    environment:
      - POSTGRES_DB=shop
      - PG_TAG
  b:
    command: ["python", "-m", "worker"]
    environment:
      MODE: fast
      RETRIES: 3
""",
        )
        _, specs = reader.load_data(path)
        assert specs[0].image == "pg:16"
        assert specs[0].command == ["postgres", "-c", "max_connections=200"]
        assert specs[0].environment == {"POSTGRES_DB": "shop", "PG_TAG": "16"}
        assert specs[1].command == ["python", "-m", "worker"]
        assert specs[1].environment == {"MODE": "fast", "RETRIES": "3"}

    @pytest.mark.parametrize(
        ("restart", "policy", "budget"),
        [
            ('"no"', RestartPolicy.NEVER, None),
            ("always", RestartPolicy.ALWAYS, None),
            ("unless-stopped", RestartPolicy.UNLESS_STOPPED, None),
            ("on-failure", RestartPolicy.ON_FAILURE, None),
            ("on-failure:5", RestartPolicy.ON_FAILURE, 5),
        ],
    )
    def test_restart_policies(
        self,
        tmp_path: Path,
        reader: ComposeServiceReader,
        restart: str,
        policy: RestartPolicy,
        budget: int | None,
    ) -> None:
        path = _write(tmp_path, f"services:\n  a:\n    image: x\n    restart: {restart}\n")
        spec = reader.load_data(path)[1][0]
        assert (spec.restart, spec.max_restarts) == (policy, budget)

    @pytest.mark.parametrize(
        ("text", "message"),
        [
            ("services: {}\n", "non-empty mapping"),
            ("- a\n- b\n", "Invalid compose file structure"),
            ("services:\n  a: [\n", "Invalid YAML"),
            ("services:\n  a:\n    image: x\n    restart: sometimes\n", "unknown restart policy"),
            ("services:\n  a:\n    image: x\n    restart: always:3\n", "invalid restart policy"),
            (
                "services:\n  a:\n    image: x\n  b:\n    image: x\n    depends_on:\n"
                "      a:\n        condition: service_completed_successfully\n",
                "unsupported depends_on condition",
            ),
            (
                "services:\n  a:\n    image: x\n    healthcheck:\n      test: [CMD]\n"
                "      interval: soon\n",
                "invalid healthcheck",
            ),
            ("services:\n  a:\n    healthcheck:\n      test: [\"FOO\"]\n", "CMD, CMD-SHELL or NONE"),
            ("services:\n  a:\n    environment: {}\n", "needs an image or a command"),
        ],
    )
    def test_invalid_files(
        self, tmp_path: Path, reader: ComposeServiceReader, text: str, message: str
    ) -> None:
        with pytest.raises(InvalidComposeFileError, match=message):
            reader.load_data(_write(tmp_path, text))

    def test_missing_file(self, tmp_path: Path, reader: ComposeServiceReader) -> None:
        with pytest.raises(InvalidComposeFileError, match="File not found"):
            reader.load_data(tmp_path / "nope.yaml")
