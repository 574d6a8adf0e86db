"""Toolexec - Execution engine for agent tool calls.

Runs named, schema-validated tools on behalf of an agent loop: argument
validation, per-attempt timeouts, retry with backoff, bounded parallel
batches and an in-memory execution history with aggregate statistics.

Quick Start:
    >>> from toolexec import Dispatcher, ToolRegistry, tool
    >>>
    >>> @tool(description="Add two numbers", category="computation")
    ... def add(a: float, b: float) -> float:
    ...     '''Add numbers.
    ...
    ...     Args:
    ...         a: First operand
    ...         b: Second operand
    ...     '''
    ...     return a + b
    >>>
    >>> registry = ToolRegistry([add])
    >>> dispatcher = Dispatcher(registry)
    >>> results = await dispatcher.dispatch_output(
    ...     {"tool_calls": [{"id": "1", "name": "add", "args": {"a": 2, "b": 2}}]}
    ... )
    >>> results[0].result
    4.0

Options (timeouts, retries, concurrency):
    >>> from toolexec import ExecutionOptions
    >>> opts = ExecutionOptions(timeout_ms=5_000, max_retries=2, retry_delay_ms=200, max_parallel=4)
    >>> results = await dispatcher.dispatch_parallel(descriptors, options=opts)

Telemetry:
    >>> dispatcher.telemetry.statistics().by_tool["add"].success_rate
    1.0
"""

from __future__ import annotations

__version__ = "0.1.0"

# Core abstractions
from .foundation.core import EMPTY_CONTEXT, ExecutionContext, ProgressKind, ToolDefinition, ToolProgress, tool

# Errors
from .foundation.errors import (
    ArgumentValidationError,
    CallParseError,
    EngineMisuseError,
    ErrorCode,
    FieldIssue,
    ToolError,
    ToolException,
    ToolexecError,
)

# Configuration
from .foundation.config import ToolexecSettings, get_settings, reset_settings

# Registry
from .foundation.registry import ToolRegistry

# Execution
from .runtime.execution import (
    DEFAULT_OPTIONS,
    ExecutionEngine,
    ExecutionOptions,
    ExecutionResult,
    format_duration,
    format_result,
    format_results,
)

# Batches
from .runtime.batch import ConcurrencyCoordinator, ToolCall

# Retry backoff
from .runtime.retry import Backoff, ConstantBackoff, ExponentialBackoff, LinearBackoff

# Telemetry
from .runtime.telemetry import TelemetrySnapshot, TelemetryStore, ToolStats

# Observability
from .runtime.observability import (
    CollectingSink,
    EventKind,
    EventSink,
    ExecutionEvent,
    LoggingSink,
    configure_logging,
    get_logger,
)

# Concurrency
from .runtime.concurrency import run_sync

# Dispatch
from .dispatch import ArgsCheck, CallDescriptor, Dispatcher, parse_call_descriptors

__all__ = [
    # Version
    "__version__",
    # Core
    "ToolDefinition",
    "tool",
    "ExecutionContext",
    "EMPTY_CONTEXT",
    "ToolProgress",
    "ProgressKind",
    # Errors
    "ErrorCode",
    "ToolError",
    "FieldIssue",
    "ToolexecError",
    "EngineMisuseError",
    "CallParseError",
    "ArgumentValidationError",
    "ToolException",
    # Config
    "ToolexecSettings",
    "get_settings",
    "reset_settings",
    # Registry
    "ToolRegistry",
    # Execution
    "ExecutionEngine",
    "ExecutionOptions",
    "ExecutionResult",
    "DEFAULT_OPTIONS",
    "format_duration",
    "format_result",
    "format_results",
    # Batches
    "ConcurrencyCoordinator",
    "ToolCall",
    # Retry backoff
    "Backoff",
    "ConstantBackoff",
    "LinearBackoff",
    "ExponentialBackoff",
    # Telemetry
    "TelemetryStore",
    "TelemetrySnapshot",
    "ToolStats",
    # Observability
    "configure_logging",
    "get_logger",
    "EventSink",
    "EventKind",
    "ExecutionEvent",
    "LoggingSink",
    "CollectingSink",
    # Concurrency
    "run_sync",
    # Dispatch
    "Dispatcher",
    "CallDescriptor",
    "ArgsCheck",
    "parse_call_descriptors",
]
