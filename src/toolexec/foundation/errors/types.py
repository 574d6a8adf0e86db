"""Type aliases shared across the package."""

from __future__ import annotations

from typing import Any, Union

# JSON type aliases - using Any for recursive types to avoid Pydantic resolution issues
JsonPrimitive = Union[str, int, float, bool, None]
JsonValue = Union[JsonPrimitive, list[Any], dict[str, Any]]  # Any for recursive slots
JsonDict = dict[str, Any]
