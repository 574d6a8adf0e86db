"""TOOLEXEC_* environment variables, read once through pydantic-settings.

Each concern has its own prefix (TOOLEXEC_EXEC_, TOOLEXEC_TELEMETRY_,
TOOLEXEC_LOG_); a ``.env`` file in the working directory is read as well.

    >>> from toolexec.foundation.config import get_settings
    >>> get_settings().telemetry.capacity
    1000

With TOOLEXEC_EXEC_TIMEOUT_MS=5000 every call that passes no options gets a
five second deadline per attempt.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, NonNegativeFloat, PositiveFloat, PositiveInt
from pydantic_settings import BaseSettings, SettingsConfigDict

_CPU_COUNT = os.cpu_count() or 1


class ExecutionSettings(BaseSettings):
    """Default execution options applied when a call passes none."""

    model_config = SettingsConfigDict(
        env_prefix="TOOLEXEC_EXEC_",
        extra="ignore",
    )

    timeout_ms: PositiveFloat | None = Field(default=None, description="Per-attempt deadline; unset means no deadline")
    max_retries: Annotated[int, Field(ge=0, le=10)] = 0
    retry_delay_ms: NonNegativeFloat = Field(default=0.0, description="Delay between attempts")
    max_parallel: PositiveInt | None = Field(default=None, description="Concurrency cap for parallel batches")
    worker_threads: PositiveInt = Field(default=min(32, _CPU_COUNT + 4), description="Threads for sync handlers")


class TelemetrySettings(BaseSettings):
    """Size of the in-memory result history."""

    model_config = SettingsConfigDict(
        env_prefix="TOOLEXEC_TELEMETRY_",
        extra="ignore",
    )

    capacity: PositiveInt = Field(default=1000, description="Max results kept in history")


class LoggingSettings(BaseSettings):
    """Renderer and threshold used by configure_from_settings()."""

    model_config = SettingsConfigDict(
        env_prefix="TOOLEXEC_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"


class ToolexecSettings(BaseSettings):
    """All toolexec settings. Nested fields can also be set as e.g. TOOLEXEC_EXECUTION__MAX_RETRIES=2."""

    model_config = SettingsConfigDict(
        env_prefix="TOOLEXEC_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    debug: bool = False
    execution: ExecutionSettings = Field(default_factory=ExecutionSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache(maxsize=1)
def get_settings() -> ToolexecSettings:
    """Get cached settings instance. Call reset_settings() to reload from the environment."""
    return ToolexecSettings()


def reset_settings() -> None:
    """Clear cached settings (for tests or after changing the environment)."""
    get_settings.cache_clear()
