"""Per-call and per-batch execution options."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Callable

from toolexec.foundation.errors import EngineMisuseError
from toolexec.runtime.retry import Backoff, ConstantBackoff

if TYPE_CHECKING:
    from toolexec.foundation.config import ExecutionSettings


@dataclass(frozen=True, slots=True)
class ExecutionOptions:
    """How the engine runs a call.

    Attributes:
        timeout_ms: Per-attempt deadline; None lets the handler run to completion
        max_retries: Extra attempts after the first (0 = exactly one attempt)
        retry_delay_ms: Wait between attempts when no backoff is given
        max_parallel: Concurrency cap for parallel batches (None = unbounded)
        stop_on_error: Sequential batches stop after the first failure
        backoff: Custom delay strategy, overrides retry_delay_ms
        on_progress: Called with a one-line message when a call in a
            sequential batch fails

    Example:
        >>> opts = ExecutionOptions(timeout_ms=5_000, max_retries=2, retry_delay_ms=250)
        >>> opts.attempts
        3
    """

    timeout_ms: float | None = None
    max_retries: int = 0
    retry_delay_ms: float = 0.0
    max_parallel: int | None = None
    stop_on_error: bool = False
    backoff: Backoff | None = None
    on_progress: Callable[[str], None] | None = None

    def __post_init__(self) -> None:
        if self.timeout_ms is not None and not self.timeout_ms > 0:
            raise EngineMisuseError(f"timeout_ms must be > 0, got {self.timeout_ms}")
        if isinstance(self.max_retries, bool) or not isinstance(self.max_retries, int) or self.max_retries < 0:
            raise EngineMisuseError(f"max_retries must be a non-negative int, got {self.max_retries!r}")
        if self.retry_delay_ms < 0:
            raise EngineMisuseError(f"retry_delay_ms must be >= 0, got {self.retry_delay_ms}")
        if self.max_parallel is not None and self.max_parallel < 1:
            raise EngineMisuseError(f"max_parallel must be >= 1, got {self.max_parallel}")
        if self.on_progress is not None and not callable(self.on_progress):
            raise EngineMisuseError(f"on_progress must be callable, got {type(self.on_progress).__name__}")

    @classmethod
    def from_settings(cls, settings: ExecutionSettings | None = None) -> ExecutionOptions:
        """Defaults from TOOLEXEC_EXEC_* configuration."""
        if settings is None:
            from toolexec.foundation.config import get_settings
            settings = get_settings().execution
        return cls(
            timeout_ms=settings.timeout_ms,
            max_retries=settings.max_retries,
            retry_delay_ms=settings.retry_delay_ms,
            max_parallel=settings.max_parallel,
        )

    @property
    def attempts(self) -> int:
        return 1 + self.max_retries

    def delay_ms(self, retry: int) -> float:
        """Delay before retry number ``retry`` (0-indexed)."""
        return (self.backoff or ConstantBackoff(self.retry_delay_ms)).delay_ms(retry)

    def merge(self, **changes: object) -> ExecutionOptions:
        """Copy with some fields replaced (validated again)."""
        return replace(self, **changes)  # type: ignore[arg-type]


DEFAULT_OPTIONS = ExecutionOptions()
