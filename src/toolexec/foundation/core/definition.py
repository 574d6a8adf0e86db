"""Core tool abstraction: ToolDefinition.

A tool is plain data plus a single invocation capability: a unique name, a
description shown to the model, an argument validator and a handler. The
registry keys definitions by name; the engine never needs to know anything
else about a tool.
"""

from __future__ import annotations

import inspect
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from toolexec.foundation.errors import ArgumentValidationError, FieldIssue, JsonDict

# Naming rules for tools
NAME_PATTERN = r"^[a-z][a-z0-9_]*$"
MAX_NAME_LENGTH = 64
MAX_DESCRIPTION_LENGTH = 500
RESERVED_NAMES: frozenset[str] = frozenset({"system", "internal", "reserved", "admin"})

Validator = type[BaseModel] | Callable[[Any], Any]
Handler = Callable[..., Any]


class ToolDefinition(BaseModel):
    """Immutable description of an invocable tool.

    Attributes:
        name: Unique identifier (snake_case, e.g., "web_search")
        description: What the tool does (shown to LLM for selection)
        handler: ``handler(validated_args, context)``, sync or async
        validator: Pydantic model class, a callable returning the validated
            arguments, or None to pass raw arguments through unchanged
        category: Optional grouping category (e.g., "search", "computation")
        tags: Free-form labels for filtering

    Example:
        >>> class AddParams(BaseModel):
        ...     a: float
        ...     b: float
        ...
        >>> add = ToolDefinition(
        ...     name="add",
        ...     description="Add two numbers",
        ...     validator=AddParams,
        ...     handler=lambda args, ctx: args.a + args.b,
        ... )
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, str_strip_whitespace=True)

    name: str = Field(..., pattern=NAME_PATTERN, max_length=MAX_NAME_LENGTH)
    description: str = Field(default="", max_length=MAX_DESCRIPTION_LENGTH)
    handler: Handler
    validator: Validator | None = None
    category: str | None = None
    tags: frozenset[str] = frozenset()

    @field_validator("name")
    @classmethod
    def _not_reserved(cls, v: str) -> str:
        if v in RESERVED_NAMES:
            raise ValueError(f"tool name '{v}' is reserved")
        return v

    @field_validator("handler")
    @classmethod
    def _callable_handler(cls, v: object) -> object:
        if not callable(v):
            raise ValueError("handler must be callable")
        return v

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, v: object) -> object:
        return frozenset([v]) if isinstance(v, str) else frozenset(v or ())  # type: ignore[arg-type]

    @property
    def is_async(self) -> bool:
        """Whether the handler is a coroutine function (including async __call__)."""
        return inspect.iscoroutinefunction(self.handler) or inspect.iscoroutinefunction(
            getattr(self.handler, "__call__", None)
        )

    def validate_args(self, raw_args: Any) -> Any:
        """Validate and coerce raw arguments.

        Raises:
            ArgumentValidationError: With one issue per rejected field.
        """
        v = self.validator
        if v is None:
            return raw_args
        try:
            if isinstance(v, type) and issubclass(v, BaseModel):
                return v.model_validate(raw_args if raw_args is not None else {})
            return v(raw_args)
        except ArgumentValidationError:
            raise
        except ValidationError as e:
            raise ArgumentValidationError.from_pydantic(e) from e
        except (ValueError, TypeError) as e:
            raise ArgumentValidationError([FieldIssue(message=str(e) or type(e).__name__)]) from e

    def json_schema(self) -> JsonDict:
        """JSON schema of the arguments, empty when the validator is not a pydantic model."""
        v = self.validator
        if isinstance(v, type) and issubclass(v, BaseModel):
            return v.model_json_schema()
        return {}

    def describe(self) -> JsonDict:
        """Export as plain data (name, description, schema, category, tags)."""
        return {
            "name": self.name,
            "description": self.description,
            "schema": self.json_schema(),
            "category": self.category,
            "tags": sorted(self.tags),
        }
