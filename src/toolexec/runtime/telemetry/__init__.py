"""Execution telemetry: bounded history and aggregate statistics."""

from .store import TelemetrySnapshot, TelemetryStore, ToolStats

__all__ = ["TelemetryStore", "TelemetrySnapshot", "ToolStats"]
