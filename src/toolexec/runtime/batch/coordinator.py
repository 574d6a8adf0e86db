"""Batch execution of tool calls.

Provides:
- Order-preserving parallel execution with an optional concurrency cap
- Sequential execution with optional stop-on-error
- Sync wrappers for non-async callers

A failed call never aborts its siblings in a parallel batch: every call
yields its own ExecutionResult. Only engine misuse propagates, and then the
remaining tasks are cancelled first.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from toolexec.foundation.core import ExecutionContext, ToolDefinition
from toolexec.foundation.errors import EngineMisuseError
from toolexec.runtime.concurrency import run_sync
from toolexec.runtime.observability import get_logger

if TYPE_CHECKING:
    from toolexec.runtime.execution import ExecutionEngine, ExecutionOptions, ExecutionResult

log = get_logger("toolexec.batch")


@dataclass(frozen=True, slots=True)
class ToolCall:
    """One entry of a batch: which tool, with which raw arguments."""
    definition: ToolDefinition
    raw_args: Any = None
    call_id: str | None = None
    context: ExecutionContext | None = None


def _check_calls(calls: Iterable[ToolCall]) -> list[ToolCall]:
    items = list(calls)
    for i, c in enumerate(items):
        if not isinstance(c, ToolCall):
            raise EngineMisuseError(f"batch entry {i} must be a ToolCall, got {type(c).__name__}")
    return items


class ConcurrencyCoordinator:
    """Runs batches of calls through one engine.

    Example:
        >>> coordinator = ConcurrencyCoordinator(engine)
        >>> results = await coordinator.execute_parallel(
        ...     [ToolCall(search, {"q": q}) for q in queries],
        ...     ExecutionOptions(max_parallel=5, timeout_ms=10_000),
        ... )
        >>> [r.success for r in results]
    """

    __slots__ = ("engine",)

    def __init__(self, engine: ExecutionEngine) -> None:
        self.engine = engine

    async def execute_parallel(
        self,
        calls: Iterable[ToolCall],
        options: ExecutionOptions | None = None,
    ) -> list[ExecutionResult]:
        """Execute all calls concurrently; result i belongs to call i.

        With ``max_parallel`` set at most that many calls are in flight at once.
        """
        items = _check_calls(calls)
        if not items:
            return []

        opts = options or self.engine.default_options
        limit = opts.max_parallel
        sem = asyncio.Semaphore(limit) if limit else None
        start = time.perf_counter()

        async def run_one(call: ToolCall) -> ExecutionResult:
            if sem is None:
                return await self.engine.execute(call.definition, call.raw_args, call.context, opts, call_id=call.call_id)
            async with sem:
                return await self.engine.execute(call.definition, call.raw_args, call.context, opts, call_id=call.call_id)

        tasks = [asyncio.ensure_future(run_one(c)) for c in items]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for t in tasks:
                t.cancel()
            raise

        log.debug("parallel batch finished", calls=len(items), max_parallel=limit,
                  failures=sum(1 for r in results if not r.success),
                  elapsed_ms=round((time.perf_counter() - start) * 1000, 2))
        return list(results)

    async def execute_sequential(
        self,
        calls: Iterable[ToolCall],
        options: ExecutionOptions | None = None,
    ) -> list[ExecutionResult]:
        """Execute calls one at a time, in order.

        Each failed call is reported to ``options.on_progress`` if set. With
        ``stop_on_error`` the batch ends after the first failed call and only
        the results produced so far are returned.
        """
        items = _check_calls(calls)
        opts = options or self.engine.default_options
        results: list[ExecutionResult] = []
        for i, call in enumerate(items):
            result = await self.engine.execute(call.definition, call.raw_args, call.context, opts, call_id=call.call_id)
            results.append(result)
            if result.success:
                continue
            _notify(opts, f"Tool {result.tool_name} failed: {result.error.message}")
            if opts.stop_on_error:
                if skipped := len(items) - i - 1:
                    log.info("sequential batch stopped on error", tool=result.tool_name,
                             call_id=result.call_id, skipped=skipped)
                break
        return results

    def execute_parallel_sync(self, calls: Iterable[ToolCall], options: ExecutionOptions | None = None) -> list[ExecutionResult]:
        """Synchronous execute_parallel. Wraps the async coordinator for sync contexts."""
        return run_sync(self.execute_parallel(calls, options))

    def execute_sequential_sync(self, calls: Iterable[ToolCall], options: ExecutionOptions | None = None) -> list[ExecutionResult]:
        return run_sync(self.execute_sequential(calls, options))


def _notify(opts: ExecutionOptions, message: str) -> None:
    if opts.on_progress is None:
        return
    try:
        opts.on_progress(message)
    except Exception:
        log.exception("progress callback failed", callback=getattr(opts.on_progress, "__qualname__", "?"))
