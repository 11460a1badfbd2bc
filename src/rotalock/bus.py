"""NotificationBus - typed fire-and-forget pub/sub

Handlers are keyed by event class. A failing handler is logged and skipped;
it never reaches the publisher, whose own state is already settled when it
publishes.

Usage:
    bus = NotificationBus()
    bus.subscribe(UpdateCompleted, lambda e: print(e.panel, e.obj))
    bus.publish(UpdateCompleted(panel=p, obj=o))
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from .telemetry import get_logger, metrics

logger = get_logger(__name__)

E = TypeVar("E")
Handler = Callable[[Any], Any]


# === Event types ===


@dataclass(frozen=True)
class EngineEnabledChanged:
    """Rotation engine switched on/off"""
    enabled: bool


@dataclass(frozen=True)
class PauseChanged:
    """Rotation paused/resumed"""
    paused: bool


@dataclass(frozen=True)
class UpdateCompleted:
    """A rotation dispatch finished; ``panel`` now shows ``obj``"""
    panel: Any
    obj: Any


@dataclass(frozen=True)
class LockChanged:
    """A panel's lock flag was toggled by a command"""
    panel: Any
    locked: bool


@dataclass(frozen=True)
class HistoryUpdated:
    """Selection history changed"""


@dataclass(frozen=True)
class FavoritesUpdated:
    """Favorites changed"""


EVENT_NAMES: dict[type, str] = {
    EngineEnabledChanged: "engine_enabled_changed",
    PauseChanged: "pause_changed",
    UpdateCompleted: "update_completed",
    LockChanged: "lock_changed",
    HistoryUpdated: "history_updated",
    FavoritesUpdated: "favorites_updated",
}


class NotificationBus:
    """Typed broadcast channel

    One instance per runtime; there is no global bus.
    """

    def __init__(self):
        self._handlers: dict[type, list[Handler]] = {}
        self._catch_all: list[Handler] = []

    def subscribe(self, event_type: type[E], handler: Callable[[E], Any]) -> None:
        """Register a handler for one event class"""
        handlers = self._handlers.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)

    def unsubscribe(self, event_type: type[E], handler: Callable[[E], Any]) -> bool:
        """Remove a handler

        Returns:
            Whether it was registered
        """
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)
            return True
        return False

    def subscribe_all(self, handler: Handler) -> None:
        """Register a handler that receives every event (relays)"""
        if handler not in self._catch_all:
            self._catch_all.append(handler)

    def unsubscribe_all(self, handler: Handler) -> bool:
        if handler in self._catch_all:
            self._catch_all.remove(handler)
            return True
        return False

    def publish(self, event: Any) -> int:
        """Deliver an event to its handlers

        Handlers are copied before delivery so they may (un)subscribe while
        running.

        Returns:
            Number of handlers that ran without raising
        """
        handlers = list(self._handlers.get(type(event), [])) + list(self._catch_all)
        delivered = 0
        for handler in handlers:
            try:
                handler(event)
                delivered += 1
            except Exception as e:
                logger.error(f"[Bus] Handler for {type(event).__name__} failed: {e}")
                metrics.inc("bus.handler_errors", {"event": type(event).__name__})
        return delivered

    def handler_count(self, event_type: type | None = None) -> int:
        if event_type is None:
            return sum(len(h) for h in self._handlers.values()) + len(self._catch_all)
        return len(self._handlers.get(event_type, []))

    def clear(self) -> None:
        """Drop every subscription"""
        self._handlers.clear()
        self._catch_all.clear()


def event_name(event: Any) -> str:
    """Wire name of an event (web relay)"""
    return EVENT_NAMES.get(type(event), type(event).__name__)
