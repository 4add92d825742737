"""Tests for ReadyupConfig environment loading and validation."""

import pytest
from pydantic import ValidationError

from packages.common.config import ReadyupConfig, get_config


@pytest.mark.unit
class TestReadyupConfig:
    """Test configuration defaults and overrides."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for var in (
            "READYUP_RUNTIME",
            "READYUP_RESTART_BACKOFF_MIN",
            "READYUP_RESTART_BACKOFF_MAX",
            "READYUP_LOG_LEVEL",
        ):
            monkeypatch.delenv(var, raising=False)

        config = ReadyupConfig(_env_file=None)

        assert config.runtime == "docker"
        assert config.max_parallel_starts == 4
        assert config.max_restarts == 3
        assert config.restart_backoff_min == 1.0
        assert config.restart_backoff_max == 30.0
        assert config.probe_interval == 30.0
        assert config.probe_timeout == 30.0
        assert config.probe_retries == 3
        assert config.probe_start_period == 0.0
        assert config.log_level == "INFO"

    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("READYUP_MAX_PARALLEL_STARTS", "8")
        monkeypatch.setenv("READYUP_RUNTIME", "subprocess")
        config = ReadyupConfig(_env_file=None)
        assert config.max_parallel_starts == 8
        assert config.runtime == "subprocess"

    def test_log_level_is_normalized(self) -> None:
        assert ReadyupConfig(log_level="debug").log_level == "DEBUG"

    def test_rejects_unknown_log_level(self) -> None:
        with pytest.raises(ValidationError, match="unknown log level"):
            ReadyupConfig(log_level="chatty")

    def test_rejects_unknown_runtime(self) -> None:
        with pytest.raises(ValidationError):
            ReadyupConfig(runtime="podman")

    def test_rejects_inverted_backoff(self) -> None:
        with pytest.raises(ValidationError, match="restart_backoff_max"):
            ReadyupConfig(restart_backoff_min=10, restart_backoff_max=1)

    def test_parallelism_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            ReadyupConfig(max_parallel_starts=0)

    def test_get_config_is_cached(self) -> None:
        assert get_config() is get_config()
