"""Human-readable formatting of execution results."""

from __future__ import annotations

from collections.abc import Iterable

from .result import ExecutionResult, to_json


def format_duration(ms: float) -> str:
    """850 -> "850ms", 1500 -> "1.50s", 125000 -> "2m 5s"."""
    if ms < 1000:
        return f"{ms:.0f}ms"
    if ms < 60_000:
        return f"{ms / 1000:.2f}s"
    minutes, rest = divmod(ms, 60_000)
    return f"{int(minutes)}m {rest / 1000:.0f}s"


def format_result(result: ExecutionResult) -> str:
    status = "SUCCESS" if result.success else "FAILED"
    retries = f", {result.retry_count} retries" if result.retry_count else ""
    head = f"{status} [{result.tool_name}] ({format_duration(result.elapsed_ms)}{retries}) id={result.call_id}"
    if result.args is not None:
        head += f"\nArgs: {to_json(result.args)}"
    if result.error is not None:
        return f"{head}\nError [{result.error.code}]: {result.error.message}"
    return f"{head}\nResult: {to_json(result.result)}"


def format_results(results: Iterable[ExecutionResult]) -> str:
    return "\n\n".join(format_result(r) for r in results)
