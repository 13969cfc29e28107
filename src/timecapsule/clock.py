"""Injectable clocks.

The engine never reads system time directly; every time read goes
through a clock passed at construction. Times are integer Unix seconds.
"""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> int:
        """Return the current time in Unix seconds."""
        ...


class SystemClock:
    """Wall clock, truncated to whole seconds."""

    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """Clock that only moves when told to. Used for tests and replays.

    Monotonic: it can be advanced or set forward, never moved back.
    """

    def __init__(self, start: int = 0) -> None:
        if start < 0:
            raise ValueError(f"Clock cannot start before the epoch: {start}")
        self._now = start

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError(f"Cannot move clock backwards by {-seconds}s")
        self._now += seconds
        return self._now

    def set(self, timestamp: int) -> int:
        if timestamp < self._now:
            raise ValueError(
                f"Cannot move clock backwards: {timestamp} < {self._now}"
            )
        self._now = timestamp
        return self._now
