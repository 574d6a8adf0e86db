"""Bounded execution history with derived statistics.

Telemetry is purely observational: evicting old entries never changes how a
call executes. Statistics are recomputed from the retained history on every
request, so after eviction they describe only the most recent results.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import TYPE_CHECKING, Annotated

from pydantic import BaseModel, ConfigDict, Field, NonNegativeFloat, NonNegativeInt

from toolexec.foundation.errors import EngineMisuseError

if TYPE_CHECKING:
    from toolexec.runtime.execution.result import ExecutionResult


class ToolStats(BaseModel):
    """Per-tool aggregate."""

    model_config = ConfigDict(frozen=True)

    count: NonNegativeInt = 0
    successes: NonNegativeInt = 0
    success_rate: Annotated[float, Field(ge=0.0, le=1.0)] = 0.0
    mean_elapsed_ms: NonNegativeFloat = 0.0


class TelemetrySnapshot(BaseModel):
    """Aggregate statistics over the retained history."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={"examples": [{
            "total": 3, "successes": 2, "failures": 1, "mean_elapsed_ms": 12.5,
            "by_tool": {"add": {"count": 3, "successes": 2, "success_rate": 0.667, "mean_elapsed_ms": 12.5}},
        }]},
    )

    total: NonNegativeInt = 0
    successes: NonNegativeInt = 0
    failures: NonNegativeInt = 0
    mean_elapsed_ms: NonNegativeFloat = 0.0
    by_tool: dict[str, ToolStats] = Field(default_factory=dict)

    @property
    def success_rate(self) -> float:
        return self.successes / self.total if self.total else 0.0


class TelemetryStore:
    """Ring buffer of ExecutionResults, oldest evicted first.

    Example:
        >>> store = TelemetryStore(capacity=2)
        >>> for r in (r1, r2, r3):
        ...     store.record(r)
        >>> [r.call_id for r in store.history()]
        ['2', '3']
    """

    __slots__ = ("_buffer", "_lock")

    def __init__(self, capacity: int | None = None) -> None:
        if capacity is None:
            from toolexec.foundation.config import get_settings
            capacity = get_settings().telemetry.capacity
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
            raise EngineMisuseError(f"telemetry capacity must be a positive int, got {capacity!r}")
        self._buffer: deque[ExecutionResult] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._buffer.maxlen  # type: ignore[return-value]

    def record(self, result: ExecutionResult) -> None:
        """Append a result; the oldest entry is dropped when full."""
        with self._lock:
            self._buffer.append(result)

    def history(self) -> list[ExecutionResult]:
        """Oldest-first copy; mutating it does not affect the store."""
        with self._lock:
            return list(self._buffer)

    def history_for(self, tool_name: str) -> list[ExecutionResult]:
        return [r for r in self.history() if r.tool_name == tool_name]

    def clear(self) -> None:
        with self._lock:
            self._buffer.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)

    def statistics(self) -> TelemetrySnapshot:
        """Full scan of the retained history."""
        entries = self.history()
        if not entries:
            return TelemetrySnapshot()

        per_tool: dict[str, list[ExecutionResult]] = {}
        for r in entries:
            per_tool.setdefault(r.tool_name, []).append(r)

        def _stats(rs: list[ExecutionResult]) -> ToolStats:
            ok = sum(1 for r in rs if r.success)
            return ToolStats(
                count=len(rs), successes=ok, success_rate=ok / len(rs),
                mean_elapsed_ms=sum(r.elapsed_ms for r in rs) / len(rs),
            )

        successes = sum(1 for r in entries if r.success)
        return TelemetrySnapshot(
            total=len(entries),
            successes=successes,
            failures=len(entries) - successes,
            mean_elapsed_ms=sum(r.elapsed_ms for r in entries) / len(entries),
            by_tool={name: _stats(rs) for name, rs in per_tool.items()},
        )
