"""Tests for sync/async interop, the worker pool and retry backoff."""

from __future__ import annotations

import asyncio
import threading

import pytest

from toolexec.runtime.concurrency import ThreadPool, run_sync
from toolexec.runtime.retry import ConstantBackoff, ExponentialBackoff, LinearBackoff


async def answer() -> int:
    await asyncio.sleep(0)
    return 42


def test_run_sync_without_loop() -> None:
    assert run_sync(answer()) == 42


@pytest.mark.asyncio
async def test_run_sync_inside_running_loop() -> None:
    assert run_sync(answer()) == 42


def test_run_sync_propagates_errors() -> None:
    async def boom() -> None:
        raise LookupError("nope")

    with pytest.raises(LookupError):
        run_sync(boom())


@pytest.mark.asyncio
async def test_thread_pool_runs_off_loop() -> None:
    async with ThreadPool(max_workers=2, thread_name_prefix="test-") as pool:
        name = await pool.run(lambda: threading.current_thread().name)

    assert name.startswith("test-")


def test_thread_pool_rejects_zero_workers() -> None:
    with pytest.raises(ValueError):
        ThreadPool(max_workers=0)


def test_backoff_strategies() -> None:
    assert [ConstantBackoff(50).delay_ms(n) for n in range(3)] == [50, 50, 50]
    assert [LinearBackoff(base=100, increment=50, max_delay=180).delay_ms(n) for n in range(3)] == [100, 150, 180]
    assert [ExponentialBackoff(base=10).delay_ms(n) for n in range(4)] == [10, 20, 40, 80]


def test_exponential_jitter_stays_in_range() -> None:
    b = ExponentialBackoff(base=100, jitter=True)
    assert all(50 <= b.delay_ms(0) <= 150 for _ in range(100))
