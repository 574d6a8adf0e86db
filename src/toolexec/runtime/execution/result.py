"""Execution results and call identifiers."""

from __future__ import annotations

import itertools
import uuid
from dataclasses import dataclass
from typing import Any

import orjson

from toolexec.foundation.errors import EngineMisuseError, ErrorCode, JsonDict, ToolError

_call_counter = itertools.count(1)


def to_json(value: Any) -> str:
    """Serialize a handler value; pydantic models are dumped, anything else falls back to str()."""
    return orjson.dumps(value, default=_json_default, option=orjson.OPT_NON_STR_KEYS).decode()


def _json_default(o: Any) -> Any:
    return o.model_dump(mode="json") if hasattr(o, "model_dump") else str(o)


def new_call_id() -> str:
    """Unique call id: process-wide monotonic counter plus a random suffix."""
    return f"call_{next(_call_counter)}_{uuid.uuid4().hex[:8]}"


@dataclass(frozen=True, slots=True)
class ExecutionResult:
    """Outcome of one call. Exactly one of ``result`` / ``error`` is meaningful.

    ``success`` is True iff ``error`` is None; a failed result never carries a
    value. ``elapsed_ms`` spans first attempt start to final attempt end, retry
    delays included. ``retry_count`` is attempts consumed minus one. ``args`` are
    the raw arguments as the caller sent them, kept so a failed call can be
    shown back with its input.
    """

    call_id: str
    tool_name: str
    success: bool
    result: Any = None
    error: ToolError | None = None
    elapsed_ms: float = 0.0
    retry_count: int = 0
    args: Any = None

    def __post_init__(self) -> None:
        if self.success and self.error is not None:
            raise EngineMisuseError("successful result cannot carry an error")
        if not self.success and (self.error is None or self.result is not None):
            raise EngineMisuseError("failed result must carry an error and no value")

    @classmethod
    def ok(cls, call_id: str, tool_name: str, value: Any, *, elapsed_ms: float, retry_count: int = 0,
           args: Any = None) -> ExecutionResult:
        return cls(call_id, tool_name, True, value, None, elapsed_ms, retry_count, args)

    @classmethod
    def fail(cls, call_id: str, tool_name: str, error: ToolError, *, elapsed_ms: float, retry_count: int = 0,
             args: Any = None) -> ExecutionResult:
        return cls(call_id, tool_name, False, None, error, elapsed_ms, retry_count, args)

    @property
    def error_code(self) -> ErrorCode | None:
        return self.error.code if self.error else None

    @property
    def attempts(self) -> int:
        return self.retry_count + 1

    def unwrap(self) -> Any:
        """Return the value or raise the ToolException for the error."""
        if self.error is not None:
            from toolexec.foundation.errors import ToolException
            raise ToolException(self.error)
        return self.result

    def render(self) -> str:
        """Text suitable as a tool-result message to an LLM."""
        if self.error is not None:
            return self.error.render()
        if isinstance(self.result, str):
            return self.result
        return to_json(self.result)

    def to_message(self) -> JsonDict:
        """Tool-result message for an agent loop, correlated by call id."""
        return {
            "role": "tool",
            "tool_call_id": self.call_id,
            "name": self.tool_name,
            "content": self.render(),
            "is_error": not self.success,
        }
