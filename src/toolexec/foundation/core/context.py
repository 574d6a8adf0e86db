"""Execution context handed to tool handlers.

Carries read-only ambient values (caller identity, session, ...) and an
optional progress sink that long-running handlers may report through.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, Annotated, Callable

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

if TYPE_CHECKING:
    from collections.abc import Mapping


class ProgressKind(StrEnum):
    STATUS = "status"
    STEP = "step"
    DATA = "data"
    COMPLETE = "complete"
    ERROR = "error"


class ToolProgress(BaseModel):
    """One progress update from a running handler.

    When ``step`` and ``total_steps`` are both given and ``percentage`` is not,
    the percentage is derived from them (``step=2, total_steps=5`` gives 40.0).
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    kind: ProgressKind = ProgressKind.STATUS
    message: str = ""
    step: Annotated[int, Field(ge=1)] | None = None
    total_steps: Annotated[int, Field(ge=1)] | None = None
    percentage: Annotated[float, Field(ge=0.0, le=100.0)] | None = None
    data: dict[str, object] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _derive_percentage(cls, values: object) -> object:
        if not isinstance(values, dict) or values.get("percentage") is not None:
            return values
        step, total = values.get("step"), values.get("total_steps")
        if isinstance(step, int) and isinstance(total, int) and step > 0 and total > 0:
            return {**values, "percentage": min(100.0, 100.0 * step / total)}
        return values

    @computed_field
    @property
    def is_terminal(self) -> bool:
        return self.kind is ProgressKind.COMPLETE or self.kind is ProgressKind.ERROR


ProgressSink = Callable[[ToolProgress], None]

_EMPTY: Mapping[str, object] = MappingProxyType({})


@dataclass(frozen=True, slots=True)
class ExecutionContext:
    """Ambient data passed by reference to every handler invocation.

    ``values`` is exposed read-only. ``progress`` may be absent, e.g. when a tool
    runs outside a live dispatch, so handlers should go through ``report()`` or
    check ``has_progress`` first.

    Example:
        >>> ctx = ExecutionContext({"user_id": "u-42"}, progress=print)
        >>> ctx["user_id"]
        'u-42'
        >>> ctx.report("halfway", step=1, total_steps=2)
        True
    """

    values: Mapping[str, object] = field(default_factory=lambda: _EMPTY)
    progress: ProgressSink | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.values, MappingProxyType):
            object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def __getitem__(self, key: str) -> object:
        return self.values[key]

    def __contains__(self, key: object) -> bool:
        return key in self.values

    def get(self, key: str, default: object = None) -> object:
        return self.values.get(key, default)

    @property
    def has_progress(self) -> bool:
        return self.progress is not None

    def with_values(self, **kw: object) -> ExecutionContext:
        """New context with additional values; the progress sink is kept."""
        return ExecutionContext({**self.values, **kw}, self.progress)

    def with_progress(self, sink: ProgressSink | None) -> ExecutionContext:
        return ExecutionContext(self.values, sink)

    def report(
        self,
        message: str | ToolProgress = "",
        *,
        kind: ProgressKind = ProgressKind.STATUS,
        step: int | None = None,
        total_steps: int | None = None,
        **data: object,
    ) -> bool:
        """Emit a progress event if a sink is attached. Returns whether it was delivered."""
        if self.progress is None:
            return False
        event = message if isinstance(message, ToolProgress) else ToolProgress(
            kind=kind, message=message, step=step, total_steps=total_steps, data=data,
        )
        self.progress(event)
        return True


EMPTY_CONTEXT = ExecutionContext()
