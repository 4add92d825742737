"""Configuration management for readyup.

Loads environment variables using pydantic-settings for type-safe configuration.
Runtime selection, probe defaults, start parallelism and restart backoff are
defined here. Values given on the command line override these.
"""

import os
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENV_LOADED = False
_ENV_LOCK = Lock()


def _resolve_env_file() -> str | None:
    """Locate the .env file regardless of the current working directory.

    Preference order:
        1. READYUP_ENV_FILE environment variable (explicit override)
        2. Current working directory (common for local runs)
        3. Ancestors of this file (covers running from a source checkout)
    """
    override = os.getenv("READYUP_ENV_FILE")
    if override:
        override_path = Path(override).expanduser()
        if override_path.is_file():
            return str(override_path)

    cwd_candidate = Path.cwd() / ".env"
    if cwd_candidate.is_file():
        return str(cwd_candidate)

    for parent in Path(__file__).resolve().parents:
        candidate = parent / ".env"
        if candidate.is_file():
            return str(candidate)

    return None


_DEFAULT_ENV_FILE = _resolve_env_file()


def ensure_env_loaded() -> None:
    """Load environment variables from disk exactly once."""
    global _ENV_LOADED

    with _ENV_LOCK:
        if _ENV_LOADED:
            return

        env_path = _DEFAULT_ENV_FILE or _resolve_env_file()
        if env_path:
            load_dotenv(env_path, override=False)

        _ENV_LOADED = True


ensure_env_loaded()


class ReadyupConfig(BaseSettings):
    """Main configuration class for readyup.

    Every field maps to a ``READYUP_``-prefixed environment variable, e.g.
    ``READYUP_MAX_PARALLEL_STARTS=8``.
    """

    model_config = SettingsConfigDict(
        env_prefix="READYUP_",
        env_file=_DEFAULT_ENV_FILE,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========== Runtime ==========
    runtime: Literal["docker", "subprocess"] = "docker"
    docker_binary: str = "docker"
    project_name: str | None = None
    stop_timeout: float = Field(default=10.0, ge=0.0)

    # ========== Startup Coordination ==========
    max_parallel_starts: int = Field(default=4, ge=1, le=256)

    # ========== Restart Supervision ==========
    max_restarts: int = Field(default=3, ge=0)
    restart_backoff_min: float = Field(default=1.0, ge=0.0)
    restart_backoff_max: float = Field(default=30.0, ge=0.0)
    restart_backoff_multiplier: float = Field(default=1.0, ge=0.0)

    # ========== Probe Defaults (compose defaults) ==========
    probe_interval: float = Field(default=30.0, ge=0.0)
    probe_timeout: float = Field(default=30.0, gt=0.0)
    probe_retries: int = Field(default=3, ge=1)
    probe_start_period: float = Field(default=0.0, ge=0.0)

    # ========== Observability ==========
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {value}")
        return level

    @model_validator(mode="after")
    def _validate_backoff(self) -> "ReadyupConfig":
        if self.restart_backoff_max < self.restart_backoff_min:
            raise ValueError("restart_backoff_max must be >= restart_backoff_min")
        return self


@lru_cache(maxsize=1)
def get_config() -> ReadyupConfig:
    """Return cached Settings instance (thread-safe, process-local).

    Uses lru_cache to ensure a single instance is created and reused.

    Returns:
        ReadyupConfig: The configuration instance loaded from environment variables.
    """
    return ReadyupConfig()


# Export convenience accessors
__all__ = ["ReadyupConfig", "ensure_env_loaded", "get_config"]
