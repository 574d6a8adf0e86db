"""Tool registry: name-keyed store with filtering, search and export."""

from .registry import UNCATEGORIZED, ToolRegistry

__all__ = ["ToolRegistry", "UNCATEGORIZED"]
