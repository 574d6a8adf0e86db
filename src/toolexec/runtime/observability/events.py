"""Execution events for external observability sinks.

The engine emits one event per failed attempt and one per finished call.
Sinks are optional: the engine behaves identically without one, and a sink
that raises is logged and ignored.

Example:
    >>> class StatsdSink:
    ...     def emit(self, event: ExecutionEvent) -> None:
    ...         statsd.timing(f"tool.{event.tool_name}.ms", event.elapsed_ms)
    ...
    >>> engine = ExecutionEngine(sink=StatsdSink())
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol, runtime_checkable

from toolexec.foundation.errors import ErrorCode

from .logging import BoundLogger, get_logger


class EventKind(StrEnum):
    ATTEMPT_FAILED = "attempt_failed"
    COMPLETED = "completed"


@dataclass(frozen=True, slots=True)
class ExecutionEvent:
    """Structured record of something the engine did."""

    kind: EventKind
    tool_name: str
    call_id: str
    elapsed_ms: float
    success: bool
    attempt: int = 1
    error_code: ErrorCode | None = None
    message: str | None = None


@runtime_checkable
class EventSink(Protocol):
    """Protocol for observability backends."""

    def emit(self, event: ExecutionEvent) -> None: ...


@dataclass(slots=True)
class LoggingSink:
    """Sink that writes events through the structured logger."""

    log: BoundLogger = field(default_factory=lambda: get_logger("toolexec.events"))

    def emit(self, event: ExecutionEvent) -> None:
        fields = {
            "tool": event.tool_name, "call_id": event.call_id, "attempt": event.attempt,
            "elapsed_ms": round(event.elapsed_ms, 2), "success": event.success,
        }
        if event.error_code:
            fields["error_code"] = event.error_code.value
        if event.success:
            self.log.info(f"tool.{event.kind}", **fields)
        else:
            self.log.warning(f"tool.{event.kind}", **fields, message=event.message)


@dataclass(slots=True)
class CollectingSink:
    """In-memory sink, mainly for tests."""

    events: list[ExecutionEvent] = field(default_factory=list)

    def emit(self, event: ExecutionEvent) -> None:
        self.events.append(event)

    def of_kind(self, kind: EventKind) -> list[ExecutionEvent]:
        return [e for e in self.events if e.kind is kind]
