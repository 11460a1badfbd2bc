"""Core primitives shared by the rotation engine"""

from .clock import Clock, ManualClock, MonotonicClock
from .idle import AsyncioIdleQueue, IdleCallback, IdleQueue

__all__ = [
    "Clock",
    "MonotonicClock",
    "ManualClock",
    "IdleQueue",
    "AsyncioIdleQueue",
    "IdleCallback",
]
