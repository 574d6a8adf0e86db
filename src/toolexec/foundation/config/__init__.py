"""Configuration management via pydantic-settings."""

from .settings import (
    ExecutionSettings,
    LoggingSettings,
    TelemetrySettings,
    ToolexecSettings,
    get_settings,
    reset_settings,
)

__all__ = [
    "ToolexecSettings",
    "ExecutionSettings",
    "TelemetrySettings",
    "LoggingSettings",
    "get_settings",
    "reset_settings",
]
