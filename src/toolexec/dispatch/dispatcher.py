"""Dispatch of model-produced tool calls.

Turns the ``tool_calls`` an agent's model emits into CallDescriptors,
resolves each tool name against a ToolRegistry, runs the calls through the
engine and returns exactly one ExecutionResult per descriptor, correlated by
call id and in input order. Unknown tools become TOOL_NOT_FOUND results; the
dispatcher never raises for anything a model can get wrong.

Accepted input shapes:
    {"tool_calls": [...]}                                   # message dict
    message.tool_calls                                      # LangChain-style object
    [{"id": "1", "name": "add", "args": {...}}, ...]        # plain list
    {"id": "1", "function": {"name": "add", "arguments": "{...}"}}  # OpenAI
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

import orjson

from toolexec.foundation.core import ExecutionContext
from toolexec.foundation.errors import ArgumentValidationError, CallParseError, EngineMisuseError, ToolError
from toolexec.foundation.registry import ToolRegistry
from toolexec.runtime.batch import ConcurrencyCoordinator, ToolCall
from toolexec.runtime.concurrency import run_sync
from toolexec.runtime.execution import ExecutionEngine, ExecutionOptions, ExecutionResult, new_call_id
from toolexec.runtime.observability import get_logger
from toolexec.runtime.telemetry import TelemetryStore

log = get_logger("toolexec.dispatch")

_ID_KEYS = ("id", "call_id", "tool_call_id")
_NAME_KEYS = ("name", "tool", "tool_name")
_ARGS_KEYS = ("args", "arguments", "input")


@dataclass(frozen=True, slots=True)
class CallDescriptor:
    """One identified request to invoke a tool."""
    id: str
    tool_name: str
    raw_args: Any = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ArgsCheck:
    """Outcome of a dry-run argument validation."""
    valid: bool
    errors: tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return self.valid


# ─────────────────────────────────────────────────────────────────────────────
# Parsing
# ─────────────────────────────────────────────────────────────────────────────


def parse_call_descriptors(output: Any) -> list[CallDescriptor]:
    """Extract call descriptors from model output.

    String arguments are JSON-decoded; a string that is not valid JSON is kept
    as-is so argument validation reports it. Missing ids are generated.

    Raises:
        CallParseError: An entry has no tool name or the input shape is unknown.
    """
    if output is None:
        return []
    if isinstance(output, Mapping):
        entries = output["tool_calls"] if "tool_calls" in output else [output]
    elif isinstance(output, (list, tuple)):
        entries = output
    elif hasattr(output, "tool_calls"):
        entries = output.tool_calls
    else:
        raise CallParseError(f"Cannot read tool calls from {type(output).__name__}")
    return [_parse_entry(i, e) for i, e in enumerate(entries or ())]


def _parse_entry(index: int, entry: Any) -> CallDescriptor:
    if isinstance(entry, CallDescriptor):
        return entry
    if not isinstance(entry, Mapping):
        raise CallParseError(f"tool call {index} must be a mapping, got {type(entry).__name__}")

    source: Mapping[str, Any] = entry
    if isinstance(fn := entry.get("function"), Mapping):
        source = fn
    name = _first(source, _NAME_KEYS)
    if not name or not isinstance(name, str):
        raise CallParseError(f"tool call {index} has no tool name: {dict(entry)!r}")

    call_id = _first(entry, _ID_KEYS)
    return CallDescriptor(
        id=str(call_id) if call_id not in (None, "") else new_call_id(),
        tool_name=name,
        raw_args=_decode_args(_first(source, _ARGS_KEYS)),
    )


def _first(m: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    return next((m[k] for k in keys if m.get(k) is not None), None)


def _decode_args(raw: Any) -> Any:
    if raw is None:
        return {}
    if isinstance(raw, (str, bytes)):
        if not raw.strip():
            return {}
        try:
            return orjson.loads(raw)
        except orjson.JSONDecodeError:
            return raw
    return raw


# ─────────────────────────────────────────────────────────────────────────────
# Dispatcher
# ─────────────────────────────────────────────────────────────────────────────


class Dispatcher:
    """Resolves call descriptors against a registry and executes them.

    Example:
        >>> dispatcher = Dispatcher(registry)
        >>> results = await dispatcher.dispatch([CallDescriptor("1", "add", {"a": 2, "b": 2})])
        >>> results[0].call_id, results[0].result
        ('1', 4.0)
    """

    __slots__ = ("registry", "engine", "coordinator")

    def __init__(self, registry: ToolRegistry | None = None, engine: ExecutionEngine | None = None) -> None:
        self.registry = registry if registry is not None else ToolRegistry()
        self.engine = engine or ExecutionEngine()
        self.coordinator = ConcurrencyCoordinator(self.engine)

    @property
    def telemetry(self) -> TelemetryStore:
        return self.engine.telemetry

    @staticmethod
    def parse_call_descriptors(output: Any) -> list[CallDescriptor]:
        return parse_call_descriptors(output)

    async def dispatch(
        self,
        descriptors: Iterable[CallDescriptor],
        context: ExecutionContext | None = None,
        options: ExecutionOptions | None = None,
    ) -> list[ExecutionResult]:
        """Execute calls one after another; result i answers descriptor i.

        Every descriptor is executed, so ``stop_on_error`` does not apply here.
        """
        results: list[ExecutionResult] = []
        for d in _check(descriptors):
            definition = self.registry.get(d.tool_name)
            if definition is None:
                results.append(self._not_found(d))
                continue
            results.append(await self.engine.execute(definition, d.raw_args, context, options, call_id=d.id))
        return results

    async def dispatch_parallel(
        self,
        descriptors: Iterable[CallDescriptor],
        context: ExecutionContext | None = None,
        options: ExecutionOptions | None = None,
    ) -> list[ExecutionResult]:
        """Execute calls concurrently (honours ``max_parallel``); same ordering contract as dispatch()."""
        items = _check(descriptors)
        results: list[ExecutionResult | None] = [None] * len(items)
        positions: list[int] = []
        calls: list[ToolCall] = []
        for i, d in enumerate(items):
            definition = self.registry.get(d.tool_name)
            if definition is None:
                results[i] = self._not_found(d)
            else:
                positions.append(i)
                calls.append(ToolCall(definition, d.raw_args, call_id=d.id, context=context))

        for i, r in zip(positions, await self.coordinator.execute_parallel(calls, options)):
            results[i] = r
        return results  # type: ignore[return-value]

    async def dispatch_output(
        self,
        output: Any,
        context: ExecutionContext | None = None,
        *,
        parallel: bool = False,
        options: ExecutionOptions | None = None,
    ) -> list[ExecutionResult]:
        """Parse model output and dispatch every call it contains."""
        descriptors = parse_call_descriptors(output)
        run = self.dispatch_parallel if parallel else self.dispatch
        return await run(descriptors, context, options)

    def dispatch_sync(self, descriptors: Iterable[CallDescriptor], context: ExecutionContext | None = None,
                      options: ExecutionOptions | None = None) -> list[ExecutionResult]:
        """Synchronous dispatch. Wraps the async dispatcher for sync contexts."""
        return run_sync(self.dispatch(descriptors, context, options))

    def dispatch_parallel_sync(self, descriptors: Iterable[CallDescriptor], context: ExecutionContext | None = None,
                               options: ExecutionOptions | None = None) -> list[ExecutionResult]:
        return run_sync(self.dispatch_parallel(descriptors, context, options))

    def validate_args(self, tool_name: str, raw_args: Any) -> ArgsCheck:
        """Dry-run validation without executing or recording anything."""
        definition = self.registry.get(tool_name)
        if definition is None:
            return ArgsCheck(False, (f"Tool '{tool_name}' not found",))
        try:
            definition.validate_args(raw_args)
        except ArgumentValidationError as e:
            return ArgsCheck(False, tuple(str(i) for i in e.issues) or ("arguments rejected",))
        except Exception as e:
            return ArgsCheck(False, (f"{type(e).__name__}: {e}",))
        return ArgsCheck(True)

    def _not_found(self, d: CallDescriptor) -> ExecutionResult:
        log.warning("unknown tool requested", tool=d.tool_name, call_id=d.id)
        error = ToolError.not_found(d.tool_name, self.registry.names())
        return self.engine.record_failure(d.id, error.tool_name, error, d.raw_args)


def _check(descriptors: Iterable[CallDescriptor]) -> list[CallDescriptor]:
    items = list(descriptors)
    for i, d in enumerate(items):
        if not isinstance(d, CallDescriptor):
            raise EngineMisuseError(f"descriptor {i} must be a CallDescriptor, got {type(d).__name__}")
    return items
