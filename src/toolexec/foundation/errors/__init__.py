"""Unified error handling for toolexec.

- ErrorCode: failure kinds carried by ExecutionResult
- ToolError: structured error fed back to the calling agent
- Exceptions: EngineMisuseError, ArgumentValidationError, ToolException, CallParseError
"""

from .errors import (
    RETRYABLE_CODES,
    ArgumentValidationError,
    CallParseError,
    EngineMisuseError,
    ErrorCode,
    FieldIssue,
    ToolError,
    ToolException,
    ToolexecError,
)
from .types import JsonDict, JsonPrimitive, JsonValue

__all__ = [
    # Codes & structured errors
    "ErrorCode", "RETRYABLE_CODES", "ToolError", "FieldIssue",
    # Exceptions
    "ToolexecError", "EngineMisuseError", "ArgumentValidationError", "ToolException", "CallParseError",
    # JSON aliases
    "JsonDict", "JsonPrimitive", "JsonValue",
]
