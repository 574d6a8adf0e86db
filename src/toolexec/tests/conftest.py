"""Shared fixtures: isolated settings, silent logging, a small engine and registry."""

from __future__ import annotations

import pytest

from toolexec.foundation.config import reset_settings
from toolexec.foundation.core import tool
from toolexec.foundation.registry import ToolRegistry
from toolexec.runtime.concurrency import ThreadPool
from toolexec.runtime.execution import ExecutionEngine, ExecutionOptions
from toolexec.runtime.observability import NoOpRenderer, set_renderer
from toolexec.runtime.telemetry import TelemetryStore


@tool(description="Add two numbers", category="computation", tags={"math"})
def add(a: float, b: float) -> float:
    """Add numbers.

    Args:
        a: First operand
        b: Second operand
    """
    return a + b


@pytest.fixture(autouse=True)
def isolate_globals() -> object:
    """Fresh settings and silent (but fully evaluated) logging for every test."""
    reset_settings()
    set_renderer(NoOpRenderer(), level="DEBUG")
    yield
    set_renderer(None, level="INFO")
    reset_settings()


@pytest.fixture
def engine() -> object:
    eng = ExecutionEngine(TelemetryStore(capacity=100), default_options=ExecutionOptions(), pool=ThreadPool(max_workers=4))
    yield eng
    eng.shutdown(wait=True)


@pytest.fixture
def registry() -> ToolRegistry:
    return ToolRegistry([add])


@pytest.fixture
def add_tool() -> object:
    return add
