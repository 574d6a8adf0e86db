"""Tests for the bounded telemetry store."""

from __future__ import annotations

import threading

import pytest

from toolexec.foundation.config import reset_settings
from toolexec.foundation.errors import EngineMisuseError, ToolError
from toolexec.runtime.execution import ExecutionResult
from toolexec.runtime.telemetry import TelemetryStore


def ok(call_id: str, tool: str = "add", elapsed: float = 10.0) -> ExecutionResult:
    return ExecutionResult.ok(call_id, tool, 1, elapsed_ms=elapsed)


def failed(call_id: str, tool: str = "add", elapsed: float = 30.0) -> ExecutionResult:
    return ExecutionResult.fail(call_id, tool, ToolError.create(tool, "nope"), elapsed_ms=elapsed)


def test_capacity_evicts_oldest_first() -> None:
    store = TelemetryStore(capacity=1000)
    for i in range(1005):
        store.record(ok(str(i)))

    history = store.history()
    assert len(store) == 1000
    assert history[0].call_id == "5"
    assert history[-1].call_id == "1004"


def test_history_is_a_copy() -> None:
    store = TelemetryStore(capacity=10)
    store.record(ok("1"))

    store.history().clear()

    assert len(store.history()) == 1


def test_statistics_per_tool() -> None:
    store = TelemetryStore(capacity=10)
    store.record(ok("1", "add", 10.0))
    store.record(ok("2", "add", 20.0))
    store.record(failed("3", "add", 30.0))
    store.record(failed("4", "search", 40.0))

    stats = store.statistics()

    assert stats.total == 4
    assert stats.successes == 2
    assert stats.failures == 2
    assert stats.success_rate == 0.5
    assert stats.mean_elapsed_ms == 25.0
    assert stats.by_tool["add"].count == 3
    assert stats.by_tool["add"].success_rate == pytest.approx(2 / 3)
    assert stats.by_tool["add"].mean_elapsed_ms == 20.0
    assert stats.by_tool["search"].success_rate == 0.0


def test_statistics_reflect_only_retained_history() -> None:
    store = TelemetryStore(capacity=2)
    store.record(failed("1"))
    store.record(ok("2"))
    store.record(ok("3"))

    assert store.statistics().failures == 0


def test_empty_statistics() -> None:
    stats = TelemetryStore(capacity=5).statistics()

    assert stats.total == 0
    assert stats.mean_elapsed_ms == 0.0
    assert stats.by_tool == {}
    assert stats.success_rate == 0.0


def test_history_for_and_clear() -> None:
    store = TelemetryStore(capacity=10)
    store.record(ok("1", "add"))
    store.record(ok("2", "search"))

    assert [r.call_id for r in store.history_for("search")] == ["2"]

    store.clear()
    assert len(store) == 0


@pytest.mark.parametrize("capacity", [0, -1, 2.5, True])
def test_invalid_capacity(capacity: object) -> None:
    with pytest.raises(EngineMisuseError):
        TelemetryStore(capacity=capacity)  # type: ignore[arg-type]


def test_default_capacity_from_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TOOLEXEC_TELEMETRY_CAPACITY", "3")
    reset_settings()

    assert TelemetryStore().capacity == 3


def test_concurrent_records_are_not_lost() -> None:
    store = TelemetryStore(capacity=10_000)

    def worker(n: int) -> None:
        for i in range(500):
            store.record(ok(f"{n}-{i}"))

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(store) == 4000
