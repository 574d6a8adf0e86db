"""Structured logging for tool calls.

Every entry is an event name plus key/value fields. Loggers carry bound
fields (logger name, tool, call id) and pick up anything set with
log_context() for the current task, so a dispatcher can tag every line a
call produces without threading a logger through handlers.

Output:
- ConsoleRenderer: one human-readable line per event (stderr)
- JsonRenderer: JSON Lines via orjson (stdout), for log shippers
- NoOpRenderer / CollectingRenderer: silence or capture, mainly for tests

Quick Start:
    >>> from toolexec.runtime.observability import configure_logging, get_logger
    >>> configure_logging(format="json", level="DEBUG")
    >>> log = get_logger("agent").bind_call("add", "call_1")
    >>> log.warning("attempt failed", attempt=1, error_code="HandlerError")
"""

from __future__ import annotations

import logging
import sys
import time
import traceback
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol, TextIO, runtime_checkable

import orjson

from toolexec.foundation.errors import JsonDict, JsonValue

_scoped_fields: ContextVar[JsonDict] = ContextVar("toolexec_log_fields", default={})


@dataclass(frozen=True, slots=True)
class LogEntry:
    """A rendered-to-be event."""

    timestamp: float
    level: str
    event: str
    context: JsonDict

    def clock(self) -> str:
        """HH:MM:SS.mmm in UTC."""
        return datetime.fromtimestamp(self.timestamp, tz=UTC).strftime("%H:%M:%S.%f")[:-3]

    def to_record(self) -> JsonDict:
        return {"timestamp": datetime.fromtimestamp(self.timestamp, tz=UTC).isoformat(),
                "level": self.level, "event": self.event, **self.context}


@runtime_checkable
class LogRenderer(Protocol):
    """Anything that can write a LogEntry somewhere."""

    def render(self, entry: LogEntry) -> None: ...


# ─────────────────────────────────────────────────────────────────────────────
# Renderers
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class _Palette:
    reset: str = ""
    dim: str = ""
    bold: str = ""
    key: str = ""
    text: str = ""
    number: str = ""
    levels: tuple[tuple[str, str], ...] = ()

    def level(self, name: str) -> str:
        return dict(self.levels).get(name, self.dim)


_PLAIN = _Palette()
_ANSI = _Palette(
    reset="\033[0m", dim="\033[2m", bold="\033[1m", key="\033[36m", text="\033[33m", number="\033[34m",
    levels=(("debug", "\033[2m"), ("info", "\033[32m"), ("warning", "\033[33m"), ("error", "\033[31m")),
)


def _console_value(v: object, p: _Palette) -> str:
    if isinstance(v, str):
        return f'{p.text}"{v}"{p.reset}'
    if isinstance(v, bool):
        return f"{p.number}{'true' if v else 'false'}{p.reset}"
    if isinstance(v, int | float):
        return f"{p.number}{v}{p.reset}"
    if isinstance(v, dict | list | tuple):
        return f"{p.dim}<{type(v).__name__} of {len(v)}>{p.reset}"
    return f"{v!r}"


@dataclass(slots=True)
class ConsoleRenderer:
    """``12:00:01.250 [warning] attempt failed attempt=1 tool="add"``

    Fields are sorted by key. A traceback captured by ``exception()`` is
    printed on the following lines.
    """

    output: TextIO | None = None  # None = sys.stderr at render time
    colors: bool | None = None  # None = only when output is a tty
    show_timestamp: bool = True

    def render(self, entry: LogEntry) -> None:
        out = self.output or sys.stderr
        tty = self.colors if self.colors is not None else bool(getattr(out, "isatty", lambda: False)())
        p = _ANSI if tty else _PLAIN
        fields = {k: v for k, v in entry.context.items() if k != "exc_info"}
        line = [f"{p.dim}{entry.clock()}{p.reset}"] if self.show_timestamp else []
        line.append(f"{p.level(entry.level)}[{entry.level}]{p.reset}")
        line.append(f"{p.bold}{entry.event}{p.reset}")
        line.extend(f"{p.key}{k}{p.reset}={_console_value(fields[k], p)}" for k in sorted(fields))
        out.write(" ".join(line) + "\n")
        if trace := entry.context.get("exc_info"):
            out.write(f"{trace}\n")


@dataclass(slots=True)
class JsonRenderer:
    """One JSON object per line; non-JSON values fall back to str()."""

    output: TextIO | None = None  # None = sys.stdout at render time

    def render(self, entry: LogEntry) -> None:
        data = orjson.dumps(entry.to_record(), default=str, option=orjson.OPT_NON_STR_KEYS | orjson.OPT_APPEND_NEWLINE)
        (self.output or sys.stdout).write(data.decode())


@dataclass(slots=True)
class NoOpRenderer:
    def render(self, entry: LogEntry) -> None:
        return None


@dataclass(slots=True)
class CollectingRenderer:
    """Keeps entries in memory for assertions."""

    entries: list[LogEntry] = field(default_factory=list)

    def render(self, entry: LogEntry) -> None:
        self.entries.append(entry)

    def events(self, level: str | None = None) -> list[str]:
        return [e.event for e in self.entries if level in (None, e.level)]


# ─────────────────────────────────────────────────────────────────────────────
# Global state
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(slots=True)
class _Output:
    renderer: LogRenderer | None = None
    threshold: int = logging.INFO

    def current(self) -> LogRenderer:
        if self.renderer is None:
            self.renderer = ConsoleRenderer()
        return self.renderer


_output = _Output()


def _threshold(level: str) -> int:
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.INFO


# ─────────────────────────────────────────────────────────────────────────────
# Logger
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class BoundLogger:
    """Logger with bound fields. bind() returns a new logger.

    Unless pinned with ``_level``, the threshold is looked up on every call, so
    module-level loggers follow later configure_logging() calls.

    Example:
        >>> log = get_logger("toolexec.engine").bind_call("add", "call_7")
        >>> log.debug("call completed", elapsed_ms=1.2)
    """

    context: JsonDict = field(default_factory=dict)
    _renderer: LogRenderer | None = None
    _level: int | None = None

    def bind(self, **kw: JsonValue) -> BoundLogger:
        return BoundLogger({**self.context, **kw}, self._renderer, self._level)

    def bind_call(self, tool: str, call_id: str, **kw: JsonValue) -> BoundLogger:
        """Bind the tool name and call id of one execution."""
        return self.bind(tool=tool, call_id=call_id, **kw)

    def unbind(self, *keys: str) -> BoundLogger:
        return BoundLogger({k: v for k, v in self.context.items() if k not in keys}, self._renderer, self._level)

    def is_enabled_for(self, level: int) -> bool:
        return level >= (_output.threshold if self._level is None else self._level)

    def debug(self, event: str, **kw: JsonValue) -> None:
        self._emit(logging.DEBUG, event, kw)

    def info(self, event: str, **kw: JsonValue) -> None:
        self._emit(logging.INFO, event, kw)

    def warning(self, event: str, **kw: JsonValue) -> None:
        self._emit(logging.WARNING, event, kw)

    def error(self, event: str, **kw: JsonValue) -> None:
        self._emit(logging.ERROR, event, kw)

    def exception(self, event: str, **kw: JsonValue) -> None:
        """Error entry carrying the traceback of the exception being handled."""
        exc = sys.exc_info()[1]
        if exc is not None:
            kw["exc_info"] = "".join(traceback.format_exception(exc)).rstrip()
        self._emit(logging.ERROR, event, kw)

    def _emit(self, level: int, event: str, kw: JsonDict) -> None:
        if not self.is_enabled_for(level):
            return
        entry = LogEntry(time.time(), logging.getLevelName(level).lower(), event,
                         {**_scoped_fields.get(), **self.context, **kw})
        (self._renderer or _output.current()).render(entry)


# ─────────────────────────────────────────────────────────────────────────────
# Configuration
# ─────────────────────────────────────────────────────────────────────────────

_FORMATS = ("console", "json", "none")


def configure_logging(
    format: str = "console",  # noqa: A002
    level: str = "INFO",
    *,
    output: TextIO | None = None,
    colors: bool | None = None,
) -> LogRenderer:
    """Install the process-wide renderer and threshold.

    Raises:
        ValueError: ``format`` is not one of "console", "json", "none".
    """
    if format not in _FORMATS:
        raise ValueError(f"Unknown log format {format!r}; expected one of {', '.join(_FORMATS)}")
    renderer: LogRenderer
    if format == "console":
        renderer = ConsoleRenderer(output=output, colors=colors)
    elif format == "json":
        renderer = JsonRenderer(output=output)
    else:
        renderer = NoOpRenderer()
    set_renderer(renderer, level)
    return renderer


def configure_from_settings() -> LogRenderer:
    """configure_logging() driven by TOOLEXEC_LOG_FORMAT / TOOLEXEC_LOG_LEVEL."""
    from toolexec.foundation.config import get_settings
    s = get_settings().logging
    return configure_logging(format=s.format, level=s.level)


def set_renderer(renderer: LogRenderer | None, level: str | None = None) -> None:
    """Replace the renderer (None restores the lazy console default) and optionally the level."""
    _output.renderer = renderer
    if level is not None:
        _output.threshold = _threshold(level)


def get_logger(name: str | None = None, **fields: JsonValue) -> BoundLogger:
    """Logger with ``fields`` bound; ``name`` is bound as ``logger``."""
    return BoundLogger({**fields, "logger": name} if name else dict(fields))


@contextmanager
def log_context(**fields: JsonValue) -> Iterator[JsonDict]:
    """Add fields to every entry logged in this block (task-local)."""
    merged = {**_scoped_fields.get(), **fields}
    token = _scoped_fields.set(merged)
    try:
        yield merged
    finally:
        _scoped_fields.reset(token)
