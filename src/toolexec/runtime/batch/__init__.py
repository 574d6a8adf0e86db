"""Batch execution: parallel and sequential runs of many tool calls.

Usage:
    from toolexec.runtime.batch import ConcurrencyCoordinator, ToolCall

    coordinator = ConcurrencyCoordinator(engine)
    results = await coordinator.execute_parallel(
        [ToolCall(fetch, {"url": u}) for u in urls],
        ExecutionOptions(max_parallel=10),
    )
"""

from .coordinator import ConcurrencyCoordinator, ToolCall

__all__ = ["ConcurrencyCoordinator", "ToolCall"]
