"""``@tool``: turn a plain function into a ToolDefinition.

The function's parameters become a pydantic model named ``<ToolName>Args``
that the engine validates raw arguments against. Descriptions for each field
come from the ``Args:`` section of the docstring; the tool description is the
docstring's first paragraph unless one is given explicitly.

Example:
    >>> @tool(category="computation", tags={"math"})
    ... def add(a: float, b: float) -> float:
    ...     '''Add two numbers.
    ...
    ...     Args:
    ...         a: First operand
    ...         b: Second operand
    ...     '''
    ...     return a + b
    >>> add.validate_args({"a": 2, "b": "2"}).b
    2.0

A parameter annotated ``ExecutionContext``, or an unannotated parameter named
``context``, receives the call's context and is left out of the model.
"""

from __future__ import annotations

import inspect
import re
from typing import TYPE_CHECKING, Any, Callable, get_type_hints, overload

from pydantic import BaseModel, Field, create_model

from .context import ExecutionContext
from .definition import ToolDefinition

if TYPE_CHECKING:
    from collections.abc import Iterable

_ARGS_HEADERS = frozenset({"args:", "arguments:", "parameters:"})
_ENTRY = re.compile(r"^(?P<name>\w+)\s*(?:\([^)]*\))?\s*:\s*(?P<text>.*)$")


def _summary(doc: str | None) -> str:
    paragraphs = inspect.cleandoc(doc or "").split("\n\n")
    return " ".join(paragraphs[0].split())


def _field_docs(doc: str | None) -> dict[str, str]:
    """``{param: description}`` from a Google-style ``Args:`` block.

    The block ends at the next unindented line (``Returns:``, a paragraph).
    Lines indented deeper than the entries continue the previous description.
    """
    found: dict[str, str] = {}
    entry_indent: int | None = None
    current: str | None = None
    in_block = False
    for line in inspect.cleandoc(doc or "").splitlines():
        text = line.strip()
        if not in_block:
            in_block = text.lower() in _ARGS_HEADERS and line == text
            continue
        if not text:
            continue
        indent = len(line) - len(line.lstrip())
        if indent == 0:
            break
        if entry_indent is None:
            entry_indent = indent
        match = _ENTRY.match(text) if indent == entry_indent else None
        if match:
            current = match["name"]
            found[current] = match["text"]
        elif current is not None:
            found[current] = f"{found[current]} {text}".strip()
    return found


def _wants_context(name: str, annotation: object) -> bool:
    if annotation is ExecutionContext:
        return True
    return name == "context" and annotation in (inspect.Parameter.empty, Any)


class _FunctionHandler:
    """Adapts ``fn(**fields)`` to the engine's ``handler(args, context)`` shape."""

    __slots__ = ("fn", "context_param")

    def __init__(self, fn: Callable[..., Any], context_param: str | None) -> None:
        self.fn = fn
        self.context_param = context_param

    def __repr__(self) -> str:
        return f"<handler for {self.fn.__qualname__}>"

    def _kwargs(self, args: BaseModel, context: ExecutionContext) -> dict[str, Any]:
        kwargs = {name: getattr(args, name) for name in type(args).model_fields}
        if self.context_param is not None:
            kwargs[self.context_param] = context
        return kwargs

    def __call__(self, args: BaseModel, context: ExecutionContext) -> Any:
        return self.fn(**self._kwargs(args, context))


class _AsyncFunctionHandler(_FunctionHandler):
    __slots__ = ()

    async def __call__(self, args: BaseModel, context: ExecutionContext) -> Any:
        return await self.fn(**self._kwargs(args, context))


def _build(
    fn: Callable[..., Any],
    name: str | None,
    description: str | None,
    category: str | None,
    tags: Iterable[str],
) -> ToolDefinition:
    tool_name = name or _snake(fn.__name__)
    hints = get_type_hints(fn)
    docs = _field_docs(fn.__doc__)

    fields: dict[str, Any] = {}
    context_param: str | None = None
    for pname, param in inspect.signature(fn).parameters.items():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD) or pname in ("self", "cls"):
            continue
        annotation = hints.get(pname, param.annotation)
        if _wants_context(pname, annotation):
            context_param = pname
            continue
        default = ... if param.default is param.empty else param.default
        fields[pname] = (
            Any if annotation is param.empty else annotation,
            Field(default, description=docs.get(pname) or f"Parameter: {pname}"),
        )

    model_name = "".join(word.capitalize() for word in tool_name.split("_")) + "Args"
    handler_cls = _AsyncFunctionHandler if inspect.iscoroutinefunction(fn) else _FunctionHandler
    return ToolDefinition(
        name=tool_name,
        description=description or _summary(fn.__doc__) or f"Execute {tool_name}",
        handler=handler_cls(fn, context_param),
        validator=create_model(model_name, **fields),
        category=category,
        tags=tags,
    )


@overload
def tool(func: Callable[..., Any]) -> ToolDefinition: ...
@overload
def tool(
    *,
    name: str | None = None,
    description: str | None = None,
    category: str | None = None,
    tags: Iterable[str] = (),
) -> Callable[[Callable[..., Any]], ToolDefinition]: ...


def tool(
    func: Callable[..., Any] | None = None,
    *,
    name: str | None = None,
    description: str | None = None,
    category: str | None = None,
    tags: Iterable[str] = (),
) -> ToolDefinition | Callable[[Callable[..., Any]], ToolDefinition]:
    """Build a ToolDefinition from ``func``; usable bare or with keyword options.

    ``name`` defaults to the function name in snake_case. Async functions are
    awaited on the event loop; sync ones are run on the engine's worker threads.
    """
    if func is not None:
        return _build(func, name, description, category, tags)
    return lambda fn: _build(fn, name, description, category, tags)


def _snake(identifier: str) -> str:
    spaced = re.sub(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])", "_", identifier)
    return spaced.lower()
