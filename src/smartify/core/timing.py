"""Elapsed-time context for progress reporting."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field

__all__ = ["RunClock"]


@dataclass
class RunClock:
    """
    Wall-clock reference created once per run and handed to every reporter.

    Attributes:
        clock (Callable[[], float]): Monotonic time source; inject a fake in tests.
        start (float): Reading of ``clock`` when the run started.

    Examples:
        >>> ticks = iter([10.0, 12.5])
        >>> rc = RunClock(clock=lambda: next(ticks))
        >>> rc.elapsed()
        2.5
    """

    clock: Callable[[], float] = time.monotonic
    start: float = field(init=False)

    def __post_init__(self) -> None:
        self.start = self.clock()

    def elapsed(self) -> float:
        """Seconds since the run started."""
        return self.clock() - self.start
