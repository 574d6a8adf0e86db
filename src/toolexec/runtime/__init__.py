"""Runtime - Execution flow, control, and monitoring.

Contains: execution engine, batch coordinator, retry backoff, telemetry,
observability, concurrency helpers.
"""

from __future__ import annotations

__all__ = [
    # Execution
    "ExecutionEngine", "ExecutionOptions", "ExecutionResult", "DEFAULT_OPTIONS",
    "format_duration", "format_result", "format_results",
    # Batch
    "ConcurrencyCoordinator", "ToolCall",
    # Retry
    "Backoff", "ConstantBackoff", "LinearBackoff", "ExponentialBackoff",
    # Telemetry
    "TelemetryStore", "TelemetrySnapshot", "ToolStats",
    # Observability
    "get_logger", "configure_logging", "EventSink", "ExecutionEvent", "LoggingSink",
    # Concurrency
    "ThreadPool", "run_sync",
]


def __getattr__(name: str):
    """Lazy imports to avoid circular dependencies."""
    if name in ("ExecutionEngine", "ExecutionOptions", "ExecutionResult", "DEFAULT_OPTIONS",
                "format_duration", "format_result", "format_results"):
        from . import execution
        return getattr(execution, name)

    if name in ("ConcurrencyCoordinator", "ToolCall"):
        from . import batch
        return getattr(batch, name)

    if name in ("Backoff", "ConstantBackoff", "LinearBackoff", "ExponentialBackoff"):
        from . import retry
        return getattr(retry, name)

    if name in ("TelemetryStore", "TelemetrySnapshot", "ToolStats"):
        from . import telemetry
        return getattr(telemetry, name)

    if name in ("get_logger", "configure_logging", "EventSink", "ExecutionEvent", "LoggingSink"):
        from . import observability
        return getattr(observability, name)

    if name in ("ThreadPool", "run_sync"):
        from . import concurrency
        return getattr(concurrency, name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
