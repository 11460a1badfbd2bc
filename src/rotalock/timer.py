"""Timer - host loop driver

Stands in for the host's editor loop when rotalock runs inside asyncio:
- interval tasks (periodic ``synchronize`` of the rotation queue)
- idle drain (deferred fallback continuations run once per tick)

Usage:
    idle = IdleQueue()
    timer = Timer(idle=idle)
    timer.register_interval("rotation_sync", 0.5, scheduler.synchronize)

    await timer.run()
    timer.stop()
"""

import asyncio
import inspect
from dataclasses import dataclass
from typing import Any, Callable, Coroutine

from .core.idle import IdleQueue
from .telemetry import get_logger, metrics

logger = get_logger(__name__)

TaskCallback = Callable[[], Any | Coroutine[Any, Any, Any]]


@dataclass
class IntervalTask:
    """Periodic task"""
    name: str
    interval: float  # seconds
    callback: TaskCallback
    last_run: float = 0.0  # event loop time of the last run


class Timer:
    """Host loop driver

    Design:
    1. One Timer drives every periodic task of a runtime
    2. Sync and async callbacks are both accepted
    3. A failing callback never stops the loop
    4. The idle queue is drained after the interval tasks of each tick
    """

    def __init__(self, tick_interval: float | None = None, idle: IdleQueue | None = None):
        """
        Args:
            tick_interval: tick length in seconds, None uses config
            idle: idle queue drained every tick
        """
        from . import config
        self._tick_interval = tick_interval or config.TIMER_TICK_INTERVAL
        self._idle = idle
        self._interval_tasks: dict[str, IntervalTask] = {}
        self._running = False
        self._task: asyncio.Task | None = None

    def register_interval(self, name: str, interval: float, callback: TaskCallback) -> None:
        """Register a periodic task (same name replaces the old one)

        Args:
            name: task name (logs, unregister)
            interval: seconds between runs
            callback: sync or async callable
        """
        self._interval_tasks[name] = IntervalTask(name=name, interval=interval, callback=callback)
        logger.debug(f"[Timer] Registered interval task: {name} ({interval}s)")

    def unregister_interval(self, name: str) -> bool:
        """Remove a periodic task

        Returns:
            Whether the task existed
        """
        if name in self._interval_tasks:
            del self._interval_tasks[name]
            logger.debug(f"[Timer] Unregistered interval task: {name}")
            return True
        return False

    def start(self) -> asyncio.Task:
        """Start ``run()`` as a background task on the running loop"""
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self.run())
        return self._task

    async def run(self) -> None:
        """Main loop, runs until ``stop()``"""
        if self._running:
            logger.warning("[Timer] Already running")
            return

        self._running = True
        logger.info(f"[Timer] Started (tick={self._tick_interval}s)")

        try:
            while self._running:
                await self.tick()
                await asyncio.sleep(self._tick_interval)
        except asyncio.CancelledError:
            logger.info("[Timer] Cancelled")
        finally:
            self._running = False

    def stop(self) -> None:
        """Stop the loop and cancel the background task"""
        if not self._running:
            return

        self._running = False
        logger.info("[Timer] Stopping...")

        if self._task and not self._task.done():
            self._task.cancel()

    async def tick(self) -> None:
        """Run due interval tasks, then drain the idle queue"""
        now = asyncio.get_running_loop().time()

        for task in list(self._interval_tasks.values()):
            if now - task.last_run >= task.interval:
                task.last_run = now
                await self._execute_callback(task.name, task.callback)

        if self._idle is not None:
            self._idle.drain()

    async def _execute_callback(self, name: str, callback: TaskCallback) -> None:
        """Run one callback with error isolation"""
        try:
            result = callback()
            if inspect.iscoroutine(result):
                await result
        except Exception as e:
            logger.error(f"[Timer] Task '{name}' failed: {e}")
            metrics.inc("timer.errors", {"task": name})

    # === State (tests) ===

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def interval_task_count(self) -> int:
        return len(self._interval_tasks)

    def get_interval_tasks(self) -> list[str]:
        return list(self._interval_tasks.keys())
