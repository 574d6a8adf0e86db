"""Tests for human-readable result formatting."""

from __future__ import annotations

import pytest

from toolexec.foundation.errors import ToolError
from toolexec.runtime.execution import ExecutionResult, format_duration, format_result, format_results


@pytest.mark.parametrize(("ms", "expected"), [
    (0, "0ms"),
    (850, "850ms"),
    (1500, "1.50s"),
    (59_990, "59.99s"),
    (125_000, "2m 5s"),
])
def test_format_duration(ms: float, expected: str) -> None:
    assert format_duration(ms) == expected


def test_format_success() -> None:
    text = format_result(ExecutionResult.ok("1", "add", 4, elapsed_ms=12))

    assert text.splitlines() == ["SUCCESS [add] (12ms) id=1", "Result: 4"]


def test_format_failure_with_retries() -> None:
    r = ExecutionResult.fail("2", "slow", ToolError.timeout("slow", 50), elapsed_ms=1500, retry_count=2)

    assert format_result(r).splitlines() == [
        "FAILED [slow] (1.50s, 2 retries) id=2",
        "Error [TimeoutError]: Tool 'slow' timed out after 50ms",
    ]


def test_format_shows_arguments() -> None:
    r = ExecutionResult.fail("3", "add", ToolError.create("add", "bad"), elapsed_ms=5, args={"a": "x"})

    assert format_result(r).splitlines() == [
        "FAILED [add] (5ms) id=3",
        'Args: {"a":"x"}',
        "Error [HandlerError]: bad",
    ]


def test_format_results_joins_blocks() -> None:
    rs = [ExecutionResult.ok(str(i), "add", i, elapsed_ms=1) for i in range(3)]

    assert format_results(rs).count("SUCCESS") == 3
    assert "\n\n" in format_results(rs)
    assert format_results([]) == ""
