"""Single-call execution: options, results and the engine."""

from .engine import ExecutionEngine
from .format import format_duration, format_result, format_results
from .options import DEFAULT_OPTIONS, ExecutionOptions
from .result import ExecutionResult, new_call_id, to_json

__all__ = [
    "ExecutionEngine",
    "ExecutionOptions", "DEFAULT_OPTIONS",
    "ExecutionResult", "new_call_id", "to_json",
    "format_duration", "format_result", "format_results",
]
