"""Worker threads for synchronous tool handlers.

A blocking handler must not stall the event loop: other calls, their
deadlines and retry sleeps all keep running while it works. Handlers run with
a copy of the caller's contextvars, so log_context() fields and similar
task-local state are visible inside them.

Threads cannot be interrupted. When the engine abandons a handler on
timeout, its worker stays busy until the function returns.
"""

from __future__ import annotations

import asyncio
import contextvars
import functools
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Callable, ParamSpec, TypeVar

if TYPE_CHECKING:
    from types import TracebackType

T = TypeVar("T")
P = ParamSpec("P")


class ThreadPool:
    """Lazily started executor with an awaitable ``run``.

    Example:
        >>> pool = ThreadPool(max_workers=4)
        >>> rows = await pool.run(fetch_rows, "SELECT 1")
        >>> pool.shutdown()
    """

    __slots__ = ("max_workers", "thread_name_prefix", "_executor", "_guard")

    def __init__(self, max_workers: int = 8, thread_name_prefix: str = "toolexec-") -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self.max_workers = max_workers
        self.thread_name_prefix = thread_name_prefix
        self._executor: ThreadPoolExecutor | None = None
        self._guard = threading.Lock()

    def __repr__(self) -> str:
        state = "running" if self._executor is not None else "idle"
        return f"ThreadPool(max_workers={self.max_workers}, {state})"

    @property
    def executor(self) -> ThreadPoolExecutor:
        with self._guard:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(self.max_workers, self.thread_name_prefix)
            return self._executor

    async def run(self, func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
        """Call ``func`` on a worker thread and await its return value (or exception)."""
        bound = functools.partial(contextvars.copy_context().run, func, *args, **kwargs)
        return await asyncio.get_running_loop().run_in_executor(self.executor, bound)

    def shutdown(self, wait: bool = True, *, cancel_futures: bool = False) -> None:
        """Stop the workers. The next run() starts a fresh executor."""
        with self._guard:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait, cancel_futures=cancel_futures)

    async def __aenter__(self) -> ThreadPool:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.shutdown(wait=True, cancel_futures=exc_type is not None)
