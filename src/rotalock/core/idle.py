"""Idle continuations

A continuation scheduled here runs on the next idle tick of the host loop,
never synchronously inside the call that scheduled it. Ordering is FIFO, and
callbacks queued while a drain is running wait for the next drain.
"""

import asyncio
from collections import deque
from collections.abc import Callable
from typing import Any

from ..telemetry import get_logger, metrics

logger = get_logger(__name__)

IdleCallback = Callable[[], Any]


class IdleQueue:
    """FIFO of callbacks drained by the host tick

    Usage:
        idle = IdleQueue()
        idle.call_idle(lambda: print("later"))
        idle.drain()  # host tick
    """

    def __init__(self):
        self._callbacks: deque[IdleCallback] = deque()

    def call_idle(self, callback: IdleCallback) -> None:
        """Schedule a callback for the next idle tick"""
        self._callbacks.append(callback)

    def drain(self) -> int:
        """Run the callbacks queued before this drain started

        A failing callback is logged and does not stop the others.

        Returns:
            Number of callbacks run
        """
        count = len(self._callbacks)
        for _ in range(count):
            callback = self._callbacks.popleft()
            try:
                callback()
            except Exception as e:
                logger.error(f"[Idle] Continuation failed: {e}")
                metrics.inc("idle.errors")
        return count

    def clear(self) -> int:
        """Drop pending callbacks

        Returns:
            Number of callbacks dropped
        """
        count = len(self._callbacks)
        self._callbacks.clear()
        return count

    @property
    def pending(self) -> int:
        return len(self._callbacks)


class AsyncioIdleQueue(IdleQueue):
    """IdleQueue that schedules its own drain with ``loop.call_soon``

    Callbacks still go through the FIFO, so ordering matches IdleQueue.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        super().__init__()
        self._loop = loop
        self._drain_scheduled = False

    def call_idle(self, callback: IdleCallback) -> None:
        super().call_idle(callback)
        if self._drain_scheduled:
            return
        loop = self._loop or asyncio.get_running_loop()
        self._drain_scheduled = True
        loop.call_soon(self._scheduled_drain)

    def _scheduled_drain(self) -> None:
        self._drain_scheduled = False
        self.drain()
