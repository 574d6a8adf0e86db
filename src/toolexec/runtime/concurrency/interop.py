"""Driving the async engine from synchronous code.

run_sync works both from plain scripts and from code that is itself called
inside a running event loop (notebooks, sync callbacks in async frameworks),
where asyncio.run() would refuse to start.

Example:
    >>> result = run_sync(engine.execute(add, {"a": 1, "b": 2}))
"""

from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import Coroutine, TypeVar

T = TypeVar("T")


def run_sync(coro: Coroutine[object, object, T], *, loop: asyncio.AbstractEventLoop | None = None) -> T:
    """Run ``coro`` to completion and return its result.

    - ``loop`` given: run on that (not running) loop
    - no loop running in this thread: asyncio.run()
    - a loop is running: asyncio.run() on a one-off helper thread, since
      blocking the current loop on itself would deadlock
    """
    if loop is not None:
        return loop.run_until_complete(coro)
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="toolexec-run-sync") as helper:
        return helper.submit(asyncio.run, coro).result()
