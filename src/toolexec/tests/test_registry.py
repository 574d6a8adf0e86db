"""Tests for the tool registry."""

from __future__ import annotations

import pytest

from toolexec.foundation.core import ToolDefinition, tool
from toolexec.foundation.registry import ToolRegistry


@tool(description="Search the web for a query", category="search", tags={"web", "io"})
def web_search(query: str, limit: int = 5) -> str:
    return f"results for {query}"


@tool
def echo(text: str) -> str:
    """Echo the text back."""
    return text


def test_register_and_get(registry: ToolRegistry, add_tool: ToolDefinition) -> None:
    assert registry.count() == 1
    assert registry.get("add") is add_tool
    assert registry.get("missing") is None
    assert "add" in registry
    assert registry.has("add")
    assert len(registry) == 1


def test_reregistration_replaces(registry: ToolRegistry) -> None:
    replacement = ToolDefinition(name="add", description="string concat", handler=lambda a, c: "x")
    registry.register(replacement)

    assert registry.count() == 1
    assert registry.get("add") is replacement


def test_metadata_overrides(registry: ToolRegistry) -> None:
    stored = registry.register(echo, category="text", tags="util")

    assert stored.category == "text"
    assert stored.tags == frozenset({"util"})
    assert echo.category is None
    assert registry.list_by_category("text") == [stored]


def test_filters(registry: ToolRegistry) -> None:
    registry.register_many([web_search, echo])

    assert [t.name for t in registry.list()] == ["add", "web_search", "echo"]
    assert [t.name for t in registry.list_by_category("computation")] == ["add"]
    assert [t.name for t in registry.list_by_tag("web")] == ["web_search"]
    assert registry.categories() == {"computation", "search"}
    assert registry.names() == ["add", "web_search", "echo"]


def test_register_many_with_category() -> None:
    registry = ToolRegistry()
    registry.register_many([web_search, echo], category="misc")

    assert {t.category for t in registry} == {"misc"}


def test_search_is_case_insensitive(registry: ToolRegistry) -> None:
    registry.register_many([web_search, echo])

    assert [t.name for t in registry.search("WEB")] == ["web_search"]
    assert [t.name for t in registry.search("back")] == ["echo"]
    assert registry.search("nothing-like-this") == []


def test_unregister_and_clear(registry: ToolRegistry) -> None:
    assert registry.unregister("add") is True
    assert registry.unregister("add") is False
    assert registry.count() == 0

    registry.register_many([web_search, echo])
    registry.clear()
    assert registry.list() == []


def test_getitem_raises_for_unknown(registry: ToolRegistry) -> None:
    with pytest.raises(KeyError):
        registry["ghost"]


def test_rejects_non_definitions(registry: ToolRegistry) -> None:
    with pytest.raises(TypeError):
        registry.register(lambda a, c: None)  # type: ignore[arg-type]


def test_export_definitions(registry: ToolRegistry) -> None:
    [exported] = registry.export_definitions()

    assert exported["name"] == "add"
    assert exported["category"] == "computation"
    assert exported["tags"] == ["math"]
    assert set(exported["schema"]["properties"]) == {"a", "b"}
    assert exported["schema"]["properties"]["a"]["description"] == "First operand"


def test_catalog_groups_by_category(registry: ToolRegistry) -> None:
    registry.register(echo)
    catalog = registry.catalog()

    assert catalog.startswith("# Tool Catalog")
    assert "## computation" in catalog
    assert "## Uncategorized" in catalog
    assert "### echo" in catalog
    assert "**Tags:** math" in catalog
