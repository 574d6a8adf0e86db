"""Observability: structured logging and execution event sinks."""

from .events import CollectingSink, EventKind, EventSink, ExecutionEvent, LoggingSink
from .logging import (
    BoundLogger,
    CollectingRenderer,
    ConsoleRenderer,
    JsonRenderer,
    LogEntry,
    LogRenderer,
    NoOpRenderer,
    configure_from_settings,
    configure_logging,
    get_logger,
    log_context,
    set_renderer,
)

__all__ = [
    # Logging
    "BoundLogger", "LogEntry", "LogRenderer", "ConsoleRenderer", "JsonRenderer", "NoOpRenderer",
    "CollectingRenderer", "configure_logging", "configure_from_settings", "set_renderer", "get_logger",
    "log_context",
    # Events
    "EventKind", "ExecutionEvent", "EventSink", "LoggingSink", "CollectingSink",
]
