"""Time sources

The rotation engine only needs "seconds since some fixed point" to age the
Updating flag, so the clock is injected instead of read from the event loop.
"""

import time
from typing import Protocol


class Clock(Protocol):
    """Monotonic time source (seconds)"""

    def now(self) -> float: ...


class MonotonicClock:
    """Wall-independent clock backed by ``time.monotonic``"""

    def now(self) -> float:
        return time.monotonic()


class ManualClock:
    """Clock advanced by hand (tests, simulations)

    Attributes:
        current: current reading in seconds
    """

    def __init__(self, start: float = 0.0):
        self.current = start

    def now(self) -> float:
        return self.current

    def advance(self, seconds: float) -> float:
        """Move the clock forward

        Args:
            seconds: amount to add

        Returns:
            New reading
        """
        self.current += seconds
        return self.current
