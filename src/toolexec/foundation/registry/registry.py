"""Central registry for tool discovery and management.

The registry provides:
- Tool registration and lookup by name (re-registration replaces)
- Category and tag filtering
- Case-insensitive search over names and descriptions
- Definition export and a markdown catalog for documentation

It is pure map semantics: nothing here executes a tool. All access is
serialized by a re-entrant lock so registration can race with dispatch.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator

import orjson

from toolexec.foundation.core import ToolDefinition
from toolexec.foundation.errors import JsonDict
from toolexec.runtime.observability.logging import get_logger

log = get_logger("toolexec.registry")

UNCATEGORIZED = "Uncategorized"


class ToolRegistry:
    """Name-keyed store of ToolDefinitions.

    Example:
        >>> registry = ToolRegistry()
        >>> registry.register(add, category="computation", tags={"math"})
        >>> registry.get("add") is not None
        True
        >>> [t.name for t in registry.search("ADD")]
        ['add']
    """

    __slots__ = ("_tools", "_lock")

    def __init__(self, tools: Iterable[ToolDefinition] = ()) -> None:
        self._tools: dict[str, ToolDefinition] = {}
        self._lock = threading.RLock()
        for t in tools:
            self.register(t)

    def register(
        self,
        definition: ToolDefinition,
        *,
        category: str | None = None,
        tags: Iterable[str] | None = None,
    ) -> ToolDefinition:
        """Register a tool, replacing any existing tool with the same name.

        ``category`` and ``tags`` override the definition's own metadata.
        Returns the definition actually stored.
        """
        if not isinstance(definition, ToolDefinition):
            raise TypeError(f"Expected ToolDefinition, got {type(definition).__name__}")
        update: JsonDict = {}
        if category is not None:
            update["category"] = category
        if tags is not None:
            update["tags"] = frozenset([tags] if isinstance(tags, str) else tags)
        stored = definition.model_copy(update=update) if update else definition
        with self._lock:
            replaced = stored.name in self._tools
            self._tools[stored.name] = stored
        log.debug("tool registered", tool=stored.name, replaced=replaced, category=stored.category)
        return stored

    def register_many(self, definitions: Iterable[ToolDefinition], category: str | None = None) -> None:
        """Register multiple tools, optionally all under one category."""
        for d in definitions:
            self.register(d, category=category)

    def unregister(self, name: str) -> bool:
        """Remove a tool by name. Returns True if found."""
        with self._lock:
            found = self._tools.pop(name, None) is not None
        if found:
            log.debug("tool unregistered", tool=name)
        return found

    def get(self, name: str) -> ToolDefinition | None:
        """Get tool by name."""
        with self._lock:
            return self._tools.get(name)

    def has(self, name: str) -> bool:
        with self._lock:
            return name in self._tools

    def clear(self) -> None:
        """Remove all registered tools."""
        with self._lock:
            self._tools.clear()

    def count(self) -> int:
        with self._lock:
            return len(self._tools)

    def names(self) -> list[str]:
        with self._lock:
            return list(self._tools)

    def __getitem__(self, name: str) -> ToolDefinition:
        """Get tool by name, raises KeyError if not found."""
        with self._lock:
            return self._tools[name]

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._tools

    def __len__(self) -> int:
        return self.count()

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(self.list())

    # ─────────────────────────────────────────────────────────────────
    # Querying
    # ─────────────────────────────────────────────────────────────────

    def list(self) -> list[ToolDefinition]:
        """Snapshot of all registered tools in registration order."""
        with self._lock:
            return list(self._tools.values())

    def list_by_category(self, category: str) -> list[ToolDefinition]:
        """List tools filtered by category."""
        return [t for t in self.list() if t.category == category]

    def list_by_tag(self, tag: str) -> list[ToolDefinition]:
        return [t for t in self.list() if tag in t.tags]

    def categories(self) -> set[str]:
        """Get all unique categories (uncategorized tools excluded)."""
        return {t.category for t in self.list() if t.category}

    def search(self, query: str) -> list[ToolDefinition]:
        """Case-insensitive substring match over name and description."""
        q = query.lower()
        return [t for t in self.list() if q in t.name.lower() or q in t.description.lower()]

    # ─────────────────────────────────────────────────────────────────
    # Formatting
    # ─────────────────────────────────────────────────────────────────

    def export_definitions(self) -> list[JsonDict]:
        """Plain-data export of every tool (name, description, schema, category, tags)."""
        return [t.describe() for t in self.list()]

    def catalog(self) -> str:
        """Markdown catalog of tools grouped by category."""
        grouped: dict[str, list[ToolDefinition]] = {}
        for t in self.list():
            grouped.setdefault(t.category or UNCATEGORIZED, []).append(t)

        out = ["# Tool Catalog\n"]
        for category, tools in grouped.items():
            out.append(f"## {category}\n")
            for t in tools:
                out.append(f"### {t.name}\n")
                out.append(f"**Description:** {t.description}\n")
                if t.tags:
                    out.append(f"**Tags:** {', '.join(sorted(t.tags))}\n")
                out.append(f"**Schema:**\n```json\n{orjson.dumps(t.json_schema(), option=orjson.OPT_INDENT_2).decode()}\n```\n")
        return "\n".join(out)
