"""How long the engine waits before retrying a failed attempt.

``ExecutionOptions.backoff`` takes any object with ``delay_ms(retry)``. Without
one the engine waits a flat ``retry_delay_ms``. ``retry`` counts from 0 for the
wait after the first failed attempt.

Example:
    >>> opts = ExecutionOptions(max_retries=4, backoff=ExponentialBackoff(base=50, jitter=True))
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@runtime_checkable
class Backoff(Protocol):
    def delay_ms(self, attempt: int) -> float: ...


@dataclass(frozen=True, slots=True)
class ConstantBackoff:
    """Same wait every time."""

    delay: float = 0.0

    def delay_ms(self, attempt: int) -> float:
        return self.delay


@dataclass(frozen=True, slots=True)
class LinearBackoff:
    """``base``, ``base + increment``, ``base + 2*increment``... up to ``max_delay``."""

    base: float = 100.0
    increment: float = 100.0
    max_delay: float = 30_000.0

    def delay_ms(self, attempt: int) -> float:
        grown = self.base + attempt * self.increment
        return grown if grown < self.max_delay else self.max_delay


@dataclass(frozen=True, slots=True)
class ExponentialBackoff:
    """Wait multiplies by ``multiplier`` per retry, capped at ``max_delay``.

    With ``jitter`` the capped wait is scaled by a random factor in [0.5, 1.5),
    so many calls failing together do not all retry on the same tick.
    """

    base: float = 100.0
    max_delay: float = 30_000.0
    multiplier: float = 2.0
    jitter: bool = False

    def delay_ms(self, attempt: int) -> float:
        wait = self.base * self.multiplier**attempt
        if wait > self.max_delay:
            wait = self.max_delay
        if not self.jitter:
            return wait
        return wait * random.uniform(0.5, 1.5)
