"""Core tool abstractions: definitions, the @tool decorator and execution context."""

from .context import EMPTY_CONTEXT, ExecutionContext, ProgressKind, ProgressSink, ToolProgress
from .decorator import tool
from .definition import (
    MAX_DESCRIPTION_LENGTH,
    MAX_NAME_LENGTH,
    NAME_PATTERN,
    RESERVED_NAMES,
    Handler,
    ToolDefinition,
    Validator,
)

__all__ = [
    # Definitions
    "ToolDefinition", "Handler", "Validator", "tool",
    "NAME_PATTERN", "MAX_NAME_LENGTH", "MAX_DESCRIPTION_LENGTH", "RESERVED_NAMES",
    # Context & progress
    "ExecutionContext", "EMPTY_CONTEXT", "ProgressKind", "ProgressSink", "ToolProgress",
]
