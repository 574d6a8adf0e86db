"""Tests for parsing model output and dispatching tool calls."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest

from toolexec.dispatch import CallDescriptor, Dispatcher, parse_call_descriptors
from toolexec.foundation.core import ExecutionContext, ToolDefinition
from toolexec.foundation.errors import CallParseError, EngineMisuseError, ErrorCode
from toolexec.foundation.registry import ToolRegistry
from toolexec.runtime.execution import ExecutionEngine, ExecutionOptions


@pytest.fixture
def dispatcher(registry: ToolRegistry, engine: ExecutionEngine) -> Dispatcher:
    return Dispatcher(registry, engine)


# ═════════════════════════════════════════════════════════════════════════════
# Parsing
# ═════════════════════════════════════════════════════════════════════════════


def test_parse_message_mapping() -> None:
    output = {"tool_calls": [
        {"id": "1", "name": "add", "args": {"a": 2, "b": 2}},
        {"call_id": "2", "tool": "search", "input": {"q": "x"}},
    ]}

    assert parse_call_descriptors(output) == [
        CallDescriptor("1", "add", {"a": 2, "b": 2}),
        CallDescriptor("2", "search", {"q": "x"}),
    ]


def test_parse_openai_function_shape() -> None:
    output = [{"id": "call_abc", "type": "function", "function": {"name": "add", "arguments": '{"a": 1, "b": 2}'}}]

    assert parse_call_descriptors(output) == [CallDescriptor("call_abc", "add", {"a": 1, "b": 2})]


def test_parse_object_with_tool_calls_attribute() -> None:
    message = SimpleNamespace(content="", tool_calls=[{"id": "7", "name": "add", "args": {}}])

    assert parse_call_descriptors(message) == [CallDescriptor("7", "add", {})]


def test_parse_single_call_and_empty_inputs() -> None:
    assert parse_call_descriptors({"name": "add", "id": 3})[0].id == "3"
    assert parse_call_descriptors(None) == []
    assert parse_call_descriptors({"tool_calls": None}) == []
    assert parse_call_descriptors(SimpleNamespace(tool_calls=[])) == []


def test_parse_generates_missing_ids() -> None:
    [first, second] = parse_call_descriptors([{"name": "add"}, {"name": "add", "id": ""}])

    assert first.id.startswith("call_")
    assert second.id.startswith("call_")
    assert first.id != second.id
    assert first.raw_args == {}


def test_parse_keeps_undecodable_arguments() -> None:
    [call] = parse_call_descriptors([{"id": "1", "name": "add", "arguments": "{not json"}])

    assert call.raw_args == "{not json"


@pytest.mark.parametrize("output", [
    [{"id": "1", "args": {}}],
    [{"id": "1", "function": {"arguments": "{}"}}],
    ["add"],
    42,
])
def test_parse_rejects_malformed_output(output: object) -> None:
    with pytest.raises(CallParseError):
        parse_call_descriptors(output)


# ═════════════════════════════════════════════════════════════════════════════
# Dispatch
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_dispatch_known_tool(dispatcher: Dispatcher) -> None:
    [result] = await dispatcher.dispatch([CallDescriptor("1", "add", {"a": 2, "b": 2})])

    assert result.success
    assert result.result == 4
    assert result.call_id == "1"


@pytest.mark.asyncio
async def test_dispatch_unknown_tool_yields_not_found(dispatcher: Dispatcher) -> None:
    results = await dispatcher.dispatch([CallDescriptor("9", "ghost", {})])

    assert len(results) == 1
    [result] = results
    assert not result.success
    assert result.call_id == "9"
    assert result.tool_name == "ghost"
    assert result.error_code is ErrorCode.TOOL_NOT_FOUND
    assert not result.error.recoverable
    assert result.args == {}
    assert "Available tools: add" in result.error.message
    assert dispatcher.telemetry.statistics().failures == 1


@pytest.mark.asyncio
async def test_dispatch_results_match_input_order(dispatcher: Dispatcher) -> None:
    descriptors = [
        CallDescriptor("a", "ghost", {}),
        CallDescriptor("b", "add", {"a": 1, "b": 1}),
        CallDescriptor("c", "add", {"a": "x"}),
    ]
    results = await dispatcher.dispatch(descriptors)

    assert [r.call_id for r in results] == ["a", "b", "c"]
    assert [r.error_code for r in results] == [ErrorCode.TOOL_NOT_FOUND, None, ErrorCode.VALIDATION_ERROR]


@pytest.mark.asyncio
async def test_dispatch_ignores_stop_on_error(dispatcher: Dispatcher) -> None:
    descriptors = [CallDescriptor("a", "ghost", {}), CallDescriptor("b", "add", {"a": 1, "b": 1})]
    results = await dispatcher.dispatch(descriptors, options=ExecutionOptions(stop_on_error=True))

    assert len(results) == 2


@pytest.mark.asyncio
async def test_dispatch_parallel_order_and_cap(dispatcher: Dispatcher) -> None:
    active = peak = 0

    async def slow_double(args: dict, ctx: ExecutionContext) -> int:
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.02)
        active -= 1
        return args["n"] * 2

    dispatcher.registry.register(ToolDefinition(name="double", handler=slow_double))
    descriptors = [CallDescriptor(str(n), "double", {"n": n}) for n in range(4)]
    descriptors.insert(2, CallDescriptor("ghost-1", "ghost", {}))

    results = await dispatcher.dispatch_parallel(descriptors, options=ExecutionOptions(max_parallel=2))

    assert [r.call_id for r in results] == ["0", "1", "ghost-1", "2", "3"]
    assert [r.result for r in results] == [0, 2, None, 4, 6]
    assert results[2].error_code is ErrorCode.TOOL_NOT_FOUND
    assert peak == 2


@pytest.mark.asyncio
async def test_dispatch_output_end_to_end(dispatcher: Dispatcher) -> None:
    output = {"tool_calls": [
        {"id": "1", "function": {"name": "add", "arguments": '{"a": 2, "b": 2}'}},
        {"id": "2", "function": {"name": "add", "arguments": "{not json"}},
    ]}

    for parallel in (False, True):
        results = await dispatcher.dispatch_output(output, parallel=parallel)
        assert results[0].result == 4
        assert results[1].error_code is ErrorCode.VALIDATION_ERROR


@pytest.mark.asyncio
async def test_context_is_shared_by_every_call(dispatcher: Dispatcher) -> None:
    dispatcher.registry.register(ToolDefinition(name="who", handler=lambda args, ctx: ctx["user"]))
    ctx = ExecutionContext({"user": "u-7"})

    results = await dispatcher.dispatch_parallel([CallDescriptor("1", "who"), CallDescriptor("2", "who")], ctx)

    assert [r.result for r in results] == ["u-7", "u-7"]


@pytest.mark.asyncio
async def test_dispatch_rejects_non_descriptors(dispatcher: Dispatcher) -> None:
    with pytest.raises(EngineMisuseError):
        await dispatcher.dispatch([{"id": "1", "name": "add"}])  # type: ignore[list-item]


def test_dispatch_sync(dispatcher: Dispatcher) -> None:
    descriptors = [CallDescriptor("1", "add", {"a": 1, "b": 2}), CallDescriptor("2", "ghost")]

    assert [r.success for r in dispatcher.dispatch_sync(descriptors)] == [True, False]
    assert [r.success for r in dispatcher.dispatch_parallel_sync(descriptors)] == [True, False]


# ═════════════════════════════════════════════════════════════════════════════
# Dry-run validation
# ═════════════════════════════════════════════════════════════════════════════


def test_validate_args(dispatcher: Dispatcher) -> None:
    assert dispatcher.validate_args("add", {"a": 1, "b": 2}).valid

    check = dispatcher.validate_args("add", {"a": 1})
    assert not check
    assert check.errors == ("b: Field required",)

    missing = dispatcher.validate_args("ghost", {})
    assert not missing.valid
    assert missing.errors == ("Tool 'ghost' not found",)

    assert len(dispatcher.telemetry) == 0


def test_default_construction() -> None:
    dispatcher = Dispatcher()

    assert dispatcher.registry.count() == 0
    assert dispatcher.telemetry is dispatcher.engine.telemetry
    assert dispatcher.parse_call_descriptors({"name": "add", "id": "1"}) == [CallDescriptor("1", "add", {})]
    dispatcher.engine.shutdown()
