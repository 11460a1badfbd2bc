"""Bootstrap - builds the component graph in one place

Responsibilities:
- create host, bus, persistence, idle queue, Timer
- create RotationScheduler (subscribed to the host selection)
- create SelectionHistory / FavoritesService / HistoryRecorder
- register the periodic rotation sync on the Timer
- return RuntimeComponents; the caller owns start/dispose

There is no module-level registry: every call returns a fresh, independent
graph.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from .. import config
from ..adapters.factory import create_host
from ..bus import NotificationBus
from ..core.clock import Clock
from ..core.idle import IdleQueue
from ..history import FavoritesService, HistoryRecorder, SelectionHistory
from ..persistence import JsonFilePersistence, MemoryPersistence, Persistence
from ..rotation.filters import FilterSettings, make_selection_filter
from ..rotation.scheduler import RotationScheduler
from ..rotation.types import RotationSettings
from ..telemetry import get_logger
from ..timer import Timer

if TYPE_CHECKING:
    import asyncio

    from ..adapters.base import PanelCapability

logger = get_logger(__name__)

SYNC_TASK_NAME = "rotation_sync"


@dataclass
class RuntimeComponents:
    """Runtime component set returned by bootstrap()"""

    host: "PanelCapability"
    bus: NotificationBus
    persistence: Persistence
    idle: IdleQueue
    timer: Timer
    scheduler: RotationScheduler
    history: SelectionHistory
    favorites: FavoritesService
    recorder: HistoryRecorder
    filter_settings: FilterSettings = field(default_factory=FilterSettings)
    _disposed: bool = field(default=False, repr=False)

    def start(self) -> "asyncio.Task":
        """Start the Timer on the running event loop"""
        task = self.timer.start()
        logger.info("[Bootstrap] Timer started")
        return task

    def dispose(self) -> None:
        """Stop the Timer and release every subscription

        Pending idle continuations are dropped.
        """
        if self._disposed:
            return
        self._disposed = True

        self.timer.stop()
        self.timer.unregister_interval(SYNC_TASK_NAME)
        self.recorder.dispose()
        self.scheduler.dispose()
        self.idle.clear()
        self.bus.clear()
        logger.info("[Bootstrap] Components disposed")

    @property
    def is_disposed(self) -> bool:
        return self._disposed


def bootstrap(
    host: "PanelCapability | None" = None,
    persistence: Persistence | None = None,
    settings: RotationSettings | None = None,
    filter_settings: FilterSettings | None = None,
    idle: IdleQueue | None = None,
    clock: Clock | None = None,
    persist_path: Path | None = None,
    sync_interval: float | None = None,
) -> RuntimeComponents:
    """Construct the runtime components

    Args:
        host: panel host with selection subscribe/unsubscribe, created
            from config when omitted
        persistence: settings store; JsonFilePersistence at ``persist_path``
            when a path is given, in-memory otherwise
        settings: rotation settings
        filter_settings: selection filter rules, used when ``settings``
            does not bring its own filter
        idle: idle queue shared by the scheduler and the Timer
        clock: time source for the update timeout
        persist_path: JSON settings file
        sync_interval: periodic synchronize() cadence in seconds

    Returns:
        RuntimeComponents
    """
    # 1. Host, bus, persistence
    if host is None:
        host = create_host(panels=config.DEMO_PANEL_COUNT)
    bus = NotificationBus()
    if persistence is None:
        persistence = JsonFilePersistence(persist_path) if persist_path else MemoryPersistence()

    # 2. Timer + idle queue
    idle = idle or IdleQueue()
    timer = Timer(idle=idle)

    # 3. Scheduler
    filter_settings = filter_settings or FilterSettings()
    if settings is None:
        settings = RotationSettings()
        describe = getattr(host, "describe", None)
        if describe is not None:
            settings.selection_filter = make_selection_filter(filter_settings, describe)

    scheduler = RotationScheduler(
        host,
        bus,
        persistence=persistence,
        settings=settings,
        idle=idle,
        clock=clock,
        selection_source=host,
    )

    # 4. Periodic sync
    timer.register_interval(
        SYNC_TASK_NAME,
        sync_interval or config.SYNC_INTERVAL_SECONDS,
        scheduler.synchronize,
    )

    # 5. History
    resolve = getattr(host, "resolve", lambda object_id: None)
    select = getattr(host, "select", None)
    history = SelectionHistory(resolve, select, persistence=persistence, bus=bus)
    favorites = FavoritesService(resolve, persistence=persistence, bus=bus)
    recorder = HistoryRecorder(history, favorites, host)

    logger.info(f"[Bootstrap] Components created (host={host.name})")

    return RuntimeComponents(
        host=host,
        bus=bus,
        persistence=persistence,
        idle=idle,
        timer=timer,
        scheduler=scheduler,
        history=history,
        favorites=favorites,
        recorder=recorder,
        filter_settings=filter_settings,
    )
