"""Execution engine: validate, attempt with deadline, retry, record.

One call goes through:
1. Argument validation. Rejected arguments fail immediately and are never
   retried, since identical invalid input cannot succeed.
2. Up to ``1 + max_retries`` attempts. With ``timeout_ms`` set each attempt
   races the handler against a fresh deadline; a handler that misses it is
   abandoned (cancellation is requested, never awaited) and its eventual
   outcome is discarded.
3. Backoff between attempts.
4. The result is appended to telemetry and emitted to the optional sink.

Tool-level failures never raise; they are returned as failed results. A
handler that ends with CancelledError on its own is a HANDLER_ERROR; only
cancellation of the caller's task propagates. Only misuse of the engine
itself raises EngineMisuseError.

Example:
    >>> engine = ExecutionEngine()
    >>> result = await engine.execute(add, {"a": 2, "b": 2}, options=ExecutionOptions(max_retries=2))
    >>> result.success, result.result
    (True, 4.0)
"""

from __future__ import annotations

import asyncio
import inspect
import time
from typing import TYPE_CHECKING, Any

from toolexec.foundation.core import EMPTY_CONTEXT, ExecutionContext, ToolDefinition
from toolexec.foundation.errors import ArgumentValidationError, EngineMisuseError, FieldIssue, ToolError
from toolexec.runtime.concurrency import ThreadPool, run_sync
from toolexec.runtime.observability import EventKind, ExecutionEvent, get_logger
from toolexec.runtime.telemetry import TelemetryStore

from .options import ExecutionOptions
from .result import ExecutionResult, new_call_id

if TYPE_CHECKING:
    from toolexec.runtime.observability import EventSink

log = get_logger("toolexec.engine")


class _AttemptTimeout(Exception):
    """Internal signal: the handler missed its deadline."""


class _HandlerCancelled(Exception):
    """Internal signal: the handler itself ended with CancelledError."""


class ExecutionEngine:
    """Runs single tool calls and owns the telemetry they produce.

    Args:
        telemetry: History store; a new one sized from settings by default
        sink: Optional observability sink receiving ExecutionEvents
        default_options: Options used when a call passes none
        pool: Worker threads for synchronous handlers
    """

    __slots__ = ("telemetry", "sink", "default_options", "_pool", "_abandoned")

    def __init__(
        self,
        telemetry: TelemetryStore | None = None,
        *,
        sink: EventSink | None = None,
        default_options: ExecutionOptions | None = None,
        pool: ThreadPool | None = None,
    ) -> None:
        self.telemetry = telemetry if telemetry is not None else TelemetryStore()
        self.sink = sink
        self.default_options = default_options or ExecutionOptions.from_settings()
        if pool is None:
            from toolexec.foundation.config import get_settings
            pool = ThreadPool(max_workers=get_settings().execution.worker_threads)
        self._pool = pool
        self._abandoned: set[asyncio.Future[Any]] = set()

    # ─────────────────────────────────────────────────────────────────
    # Public API
    # ─────────────────────────────────────────────────────────────────

    async def execute(
        self,
        definition: ToolDefinition,
        raw_args: Any = None,
        context: ExecutionContext | None = None,
        options: ExecutionOptions | None = None,
        *,
        call_id: str | None = None,
    ) -> ExecutionResult:
        """Execute one call. Never raises for tool-level failures.

        Raises:
            EngineMisuseError: definition missing or of the wrong type, or
                options/context of the wrong type.
        """
        if definition is None:
            raise EngineMisuseError("execute() requires a ToolDefinition, got None")
        if not isinstance(definition, ToolDefinition):
            raise EngineMisuseError(f"execute() requires a ToolDefinition, got {type(definition).__name__}")
        if options is not None and not isinstance(options, ExecutionOptions):
            raise EngineMisuseError(f"options must be ExecutionOptions, got {type(options).__name__}")
        if context is not None and not isinstance(context, ExecutionContext):
            raise EngineMisuseError(f"context must be ExecutionContext, got {type(context).__name__}")

        opts = options or self.default_options
        cid = call_id or new_call_id()
        ctx = context or EMPTY_CONTEXT
        name = definition.name
        start = time.perf_counter()

        try:
            args = definition.validate_args(raw_args)
        except ArgumentValidationError as e:
            error = ToolError.invalid_args(name, e.issues)
            return self._finish(ExecutionResult.fail(cid, name, error, elapsed_ms=_since(start), args=raw_args))
        except Exception as e:
            issue = FieldIssue(message=f"validator raised {type(e).__name__}: {e}")
            return self._finish(ExecutionResult.fail(cid, name, ToolError.invalid_args(name, (issue,)),
                                                     elapsed_ms=_since(start), args=raw_args))

        attempts = opts.attempts
        attempt = 0
        while True:
            try:
                value = await self._attempt(definition, args, ctx, opts.timeout_ms)
            except _AttemptTimeout:
                error = ToolError.timeout(name, opts.timeout_ms or 0.0)
            except _HandlerCancelled:
                error = ToolError.create(name, f"Tool '{name}' was cancelled before returning a result")
            except Exception as e:
                error = ToolError.from_exception(name, e)
            else:
                return self._finish(ExecutionResult.ok(cid, name, value, elapsed_ms=_since(start), retry_count=attempt,
                                                       args=raw_args))

            remaining = attempts - attempt - 1
            self._emit(ExecutionEvent(EventKind.ATTEMPT_FAILED, name, cid, _since(start), False,
                                      attempt + 1, error.code, error.message))
            if remaining <= 0 or not error.is_retryable:
                break
            delay = opts.delay_ms(attempt)
            log.warning("attempt failed, retrying", tool=name, call_id=cid, attempt=attempt + 1,
                        error_code=error.code.value, error=error.message, delay_ms=delay, remaining=remaining)
            if delay > 0:
                await asyncio.sleep(delay / 1000)
            attempt += 1

        log.warning("call failed", tool=name, call_id=cid, attempts=attempt + 1,
                    error_code=error.code.value, error=error.message)
        return self._finish(ExecutionResult.fail(cid, name, error, elapsed_ms=_since(start), retry_count=attempt,
                                                 args=raw_args))

    def execute_sync(
        self,
        definition: ToolDefinition,
        raw_args: Any = None,
        context: ExecutionContext | None = None,
        options: ExecutionOptions | None = None,
        *,
        call_id: str | None = None,
    ) -> ExecutionResult:
        """Synchronous execute. Wraps the async engine for sync contexts."""
        return run_sync(self.execute(definition, raw_args, context, options, call_id=call_id))

    def record_failure(self, call_id: str, tool_name: str, error: ToolError, args: Any = None) -> ExecutionResult:
        """Record a failure that happened before any handler could run (e.g. unknown tool)."""
        return self._finish(ExecutionResult.fail(call_id, tool_name, error, elapsed_ms=0.0, args=args))

    @property
    def in_flight_abandoned(self) -> int:
        """Handlers that missed their deadline and have not finished yet."""
        return len(self._abandoned)

    def shutdown(self, wait: bool = True) -> None:
        """Release worker threads."""
        self._pool.shutdown(wait=wait)

    # ─────────────────────────────────────────────────────────────────
    # Attempts
    # ─────────────────────────────────────────────────────────────────

    async def _attempt(self, definition: ToolDefinition, args: Any, ctx: ExecutionContext,
                       timeout_ms: float | None) -> Any:
        # The handler always runs in its own task, so a CancelledError it raises
        # can be told apart from cancellation of the task awaiting it.
        task = asyncio.ensure_future(self._invoke(definition, args, ctx))
        try:
            done, _ = await asyncio.wait({task}, timeout=None if timeout_ms is None else timeout_ms / 1000)
        except asyncio.CancelledError:
            task.cancel()
            raise
        if task not in done:
            self._abandon(task)
            raise _AttemptTimeout
        if task.cancelled():
            raise _HandlerCancelled
        return task.result()

    async def _invoke(self, definition: ToolDefinition, args: Any, ctx: ExecutionContext) -> Any:
        if definition.is_async:
            value = await definition.handler(args, ctx)
        else:
            value = await self._pool.run(definition.handler, args, ctx)
        if inspect.isawaitable(value):
            value = await value
        return value

    def _abandon(self, task: asyncio.Future[Any]) -> None:
        # Async handlers get a cancellation request; handlers on worker threads keep running.
        task.cancel()
        self._abandoned.add(task)
        task.add_done_callback(self._forget)

    def _forget(self, task: asyncio.Future[Any]) -> None:
        self._abandoned.discard(task)
        if not task.cancelled() and (exc := task.exception()) is not None:
            log.debug("abandoned handler finished with error", error=f"{type(exc).__name__}: {exc}")

    # ─────────────────────────────────────────────────────────────────
    # Recording
    # ─────────────────────────────────────────────────────────────────

    def _finish(self, result: ExecutionResult) -> ExecutionResult:
        self.telemetry.record(result)
        self._emit(ExecutionEvent(
            EventKind.COMPLETED, result.tool_name, result.call_id, result.elapsed_ms, result.success,
            result.attempts, result.error_code, result.error.message if result.error else None,
        ))
        log.debug("call completed", tool=result.tool_name, call_id=result.call_id, success=result.success,
                  elapsed_ms=round(result.elapsed_ms, 2), retry_count=result.retry_count)
        return result

    def _emit(self, event: ExecutionEvent) -> None:
        if self.sink is None:
            return
        try:
            self.sink.emit(event)
        except Exception:
            log.exception("event sink failed", sink=type(self.sink).__name__, tool=event.tool_name)


def _since(start: float) -> float:
    return (time.perf_counter() - start) * 1000
