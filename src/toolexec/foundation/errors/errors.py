"""Failures as data, and the exceptions callers can catch.

A failed tool call never raises out of the engine. It becomes a ToolError
inside an ExecutionResult, which the agent loop sends back to the model.
Exceptions are reserved for mistakes by the code driving the engine
(EngineMisuseError, CallParseError) and for signalling from validators and
handlers (ArgumentValidationError, ToolException).
"""

from __future__ import annotations

import traceback
from enum import StrEnum
from typing import Annotated, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError, computed_field, field_validator


class ErrorCode(StrEnum):
    VALIDATION_ERROR = "ValidationError"
    HANDLER_ERROR = "HandlerError"
    TIMEOUT = "TimeoutError"
    TOOL_NOT_FOUND = "ToolNotFoundError"
    ENGINE_MISUSE = "EngineMisuseError"


# Only these are worth another attempt; bad arguments or a missing tool fail the same way twice.
RETRYABLE_CODES: frozenset[ErrorCode] = frozenset({ErrorCode.HANDLER_ERROR, ErrorCode.TIMEOUT})


class FieldIssue(BaseModel):
    """A single rejected argument, e.g. ``path="filters.0.op"``."""

    model_config = ConfigDict(frozen=True)

    path: str = ""
    message: str

    def __str__(self) -> str:
        if not self.path:
            return self.message
        return f"{self.path}: {self.message}"


class ToolError(BaseModel):
    """What went wrong with one call, phrased for the model that made it.

    ``recoverable=False`` tells the engine not to retry even when the code
    would normally allow it; handlers set it through ToolException.
    ``issues`` is filled for validation failures only.
    """

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        validate_default=True,
        json_schema_extra={"examples": [{
            "tool_name": "search",
            "message": "Tool 'search' timed out after 5000ms",
            "code": "TimeoutError",
            "recoverable": True,
        }]},
    )

    tool_name: Annotated[str, Field(min_length=1)]
    message: Annotated[str, Field(min_length=1)]
    code: ErrorCode = ErrorCode.HANDLER_ERROR
    recoverable: bool = True
    details: str | None = Field(default=None, description="Traceback or other diagnostics")
    issues: tuple[FieldIssue, ...] = ()

    @field_validator("message", mode="before")
    @classmethod
    def _message_text(cls, value: object) -> object:
        if isinstance(value, BaseException):
            return str(value) or type(value).__name__
        return value or "unknown error"

    @computed_field
    @property
    def is_retryable(self) -> bool:
        return self.recoverable and self.code in RETRYABLE_CODES

    @classmethod
    def create(
        cls,
        tool_name: str,
        message: str,
        code: ErrorCode = ErrorCode.HANDLER_ERROR,
        *,
        recoverable: bool = True,
        details: str | None = None,
    ) -> Self:
        return cls(tool_name=tool_name, message=message, code=code, recoverable=recoverable, details=details)

    @classmethod
    def from_exception(cls, tool_name: str, exc: Exception, *, include_trace: bool = False) -> Self:
        """HANDLER_ERROR for whatever a handler raised.

        A ToolException contributes its own error, relabelled with ``tool_name``.
        """
        if isinstance(exc, ToolException):
            own = exc.error
            return own if own.tool_name == tool_name else own.model_copy(update={"tool_name": tool_name})
        text = str(exc)
        return cls(
            tool_name=tool_name,
            message=f"{type(exc).__name__}: {text}" if text else type(exc).__name__,
            details="".join(traceback.format_exception(exc)) if include_trace else None,
        )

    @classmethod
    def timeout(cls, tool_name: str, timeout_ms: float) -> Self:
        return cls(tool_name=tool_name, code=ErrorCode.TIMEOUT,
                   message=f"Tool '{tool_name}' timed out after {timeout_ms:g}ms")

    @classmethod
    def not_found(cls, tool_name: str, available: list[str] | None = None) -> Self:
        message = f"Tool '{tool_name}' not found in registry."
        if available:
            message += f" Available tools: {', '.join(sorted(available))}"
        return cls(tool_name=tool_name or "<missing>", message=message,
                   code=ErrorCode.TOOL_NOT_FOUND, recoverable=False)

    @classmethod
    def invalid_args(cls, tool_name: str, issues: tuple[FieldIssue, ...]) -> Self:
        summary = "; ".join(map(str, issues)) or "arguments rejected"
        return cls(tool_name=tool_name, message=f"Invalid arguments for '{tool_name}': {summary}",
                   code=ErrorCode.VALIDATION_ERROR, recoverable=False, issues=issues)

    def render(self) -> str:
        """Markdown text for a tool-result message."""
        text = f"**Tool Error ({self.tool_name}) [{self.code}]:** {self.message}"
        if self.code is ErrorCode.VALIDATION_ERROR:
            text += "\n_Fix the arguments and call the tool again._"
        elif self.is_retryable:
            text += "\n_This error may be recoverable; retrying or another approach could work._"
        if self.details:
            text += f"\n\nDetails:\n```\n{self.details}\n```"
        return text

    def __str__(self) -> str:
        return self.render()


class ToolexecError(Exception):
    """Root of every exception raised by toolexec."""


class EngineMisuseError(ToolexecError, ValueError):
    """The engine was called with something it cannot work with (no definition, bad options)."""

    code = ErrorCode.ENGINE_MISUSE


class CallParseError(ToolexecError, ValueError):
    """Model output that does not describe tool calls."""


class ArgumentValidationError(ToolexecError):
    """Raised from a validator to reject arguments.

    Accepts issues or a single message:

        >>> raise ArgumentValidationError("expected a list of ids")
    """

    def __init__(self, issues: list[FieldIssue] | tuple[FieldIssue, ...] | str) -> None:
        if isinstance(issues, str):
            issues = (FieldIssue(message=issues),)
        self.issues: tuple[FieldIssue, ...] = tuple(issues)
        super().__init__("; ".join(map(str, self.issues)))

    @classmethod
    def from_pydantic(cls, exc: ValidationError) -> Self:
        return cls([
            FieldIssue(path=".".join(map(str, detail["loc"])), message=detail["msg"])
            for detail in exc.errors()
        ])


class ToolException(ToolexecError):
    """Raised from a handler to report a specific ToolError.

        >>> raise ToolException.create("search", "quota exhausted", recoverable=False)
    """

    def __init__(self, error: ToolError) -> None:
        self.error = error
        super().__init__(error.message)

    @classmethod
    def create(cls, tool_name: str, message: str, *, recoverable: bool = True, details: str | None = None) -> Self:
        return cls(ToolError.create(tool_name, message, recoverable=recoverable, details=details))
