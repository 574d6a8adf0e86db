"""Foundation - Core building blocks for toolexec.

Contains: tool definitions, errors, registry, configuration.
"""

from __future__ import annotations

__all__ = [
    # Core
    "ToolDefinition", "tool", "ExecutionContext", "EMPTY_CONTEXT", "ToolProgress", "ProgressKind",
    # Errors
    "ErrorCode", "ToolError", "FieldIssue", "ToolexecError", "EngineMisuseError", "CallParseError",
    "ArgumentValidationError", "ToolException",
    # Registry
    "ToolRegistry",
    # Config
    "ToolexecSettings", "get_settings", "reset_settings",
]


def __getattr__(name: str):
    """Lazy imports to avoid circular dependencies."""
    if name in ("ToolDefinition", "tool", "ExecutionContext", "EMPTY_CONTEXT", "ToolProgress", "ProgressKind"):
        from . import core
        return getattr(core, name)

    if name in ("ErrorCode", "ToolError", "FieldIssue", "ToolexecError", "EngineMisuseError", "CallParseError",
                "ArgumentValidationError", "ToolException"):
        from . import errors
        return getattr(errors, name)

    if name == "ToolRegistry":
        from . import registry
        return registry.ToolRegistry

    if name in ("ToolexecSettings", "get_settings", "reset_settings"):
        from . import config
        return getattr(config, name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
