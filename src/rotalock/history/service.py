"""SelectionHistory - browser-style selection history

Entries are stored oldest-first with a cursor on the current one. Recording
after going back drops the forward entries, like a browser.

Objects are not kept alive by the history: an entry stores the object id and
display data, and is resolved back through the host's ``resolve`` function.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .. import config
from ..bus import HistoryUpdated, NotificationBus
from ..telemetry import get_logger

if TYPE_CHECKING:
    from ..persistence import Persistence

logger = get_logger(__name__)

Resolver = Callable[[Any], Any]
Selector = Callable[[Any], Any]


@dataclass
class HistoryEntry:
    """One recorded selection

    Attributes:
        object_id: host object id, used to resolve the object again
        name: display name at record time
        type_name: host type name
        recorded_at: unix timestamp
    """
    object_id: Any
    name: str
    type_name: str
    recorded_at: float = 0.0

    @classmethod
    def from_object(cls, obj: Any) -> "HistoryEntry | None":
        """Build an entry, None if the object carries no id"""
        object_id = getattr(obj, "object_id", None)
        if object_id is None:
            return None
        return cls(
            object_id=object_id,
            name=str(getattr(obj, "name", object_id)),
            type_name=str(getattr(obj, "kind", type(obj).__name__)),
            recorded_at=time.time(),
        )

    def same_object(self, other: "HistoryEntry") -> bool:
        return self.object_id == other.object_id

    def to_dict(self) -> dict:
        """Convert to a serializable dict"""
        return {
            "object_id": self.object_id,
            "name": self.name,
            "type_name": self.type_name,
            "recorded_at": self.recorded_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "HistoryEntry":
        return cls(
            object_id=data["object_id"],
            name=data.get("name", ""),
            type_name=data.get("type_name", ""),
            recorded_at=data.get("recorded_at", 0.0),
        )


def clamp_limit(value: int) -> int:
    return max(config.HISTORY_MIN_LIMIT, min(config.HISTORY_MAX_LIMIT, value))


class SelectionHistory:
    """Selection history with back/forward navigation

    Usage:
        history = SelectionHistory(host.resolve, host.select, persistence, bus)
        history.record(obj)
        history.go_back()   # re-selects the previous object
    """

    def __init__(
        self,
        resolve: Resolver,
        select: Selector | None = None,
        persistence: "Persistence | None" = None,
        bus: NotificationBus | None = None,
        max_count: int | None = None,
    ):
        """
        Args:
            resolve: object id -> object, None when gone
            select: makes an object the host selection (navigation)
            persistence: store for the entry list
            bus: receives HistoryUpdated
            max_count: entry limit, clamped to the configured bounds
        """
        self._resolve = resolve
        self._select = select
        self._persistence = persistence
        self._bus = bus
        self._entries: list[HistoryEntry] = []
        self._index = -1
        self._max_count = clamp_limit(config.HISTORY_MAX_COUNT if max_count is None else max_count)
        self._navigating = False

        self._load()

    # === Properties ===

    @property
    def max_count(self) -> int:
        return self._max_count

    @max_count.setter
    def max_count(self, value: int) -> None:
        self._max_count = clamp_limit(value)
        if self._trim():
            self._save()
            self._publish()

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def can_go_back(self) -> bool:
        return self._index > 0

    @property
    def can_go_forward(self) -> bool:
        return self._index < len(self._entries) - 1

    @property
    def is_navigating(self) -> bool:
        return self._navigating

    def entries(self) -> list[HistoryEntry]:
        return list(self._entries)

    def current(self) -> HistoryEntry | None:
        if 0 <= self._index < len(self._entries):
            return self._entries[self._index]
        return None

    def resolve(self, entry: HistoryEntry) -> Any:
        """Object behind an entry, None when it no longer exists"""
        try:
            return self._resolve(entry.object_id)
        except Exception as e:
            logger.warning(f"[History] Resolving {entry.name} failed: {e}")
            return None

    def is_valid(self, entry: HistoryEntry) -> bool:
        return self.resolve(entry) is not None

    # === Recording ===

    def record(self, obj: Any) -> bool:
        """Record a selection

        Returns:
            Whether an entry was added
        """
        if obj is None or self._navigating:
            return False

        entry = HistoryEntry.from_object(obj)
        if entry is None:
            return False

        if self._entries and self._entries[-1].same_object(entry):
            return False

        # drop forward entries
        del self._entries[self._index + 1:]

        self._entries.append(entry)
        self._index = len(self._entries) - 1
        self._trim()
        self._save()
        self._publish()
        return True

    def clear(self) -> None:
        self._entries.clear()
        self._index = -1
        self._save()
        self._publish()

    def cleanup_invalid(self) -> int:
        """Drop entries whose object is gone

        Returns:
            Number of entries removed
        """
        before = len(self._entries)
        self._entries = [e for e in self._entries if self.is_valid(e)]
        removed = before - len(self._entries)
        if removed:
            self._index = max(-1, min(self._index, len(self._entries) - 1))
            logger.debug(f"[History] Removed {removed} invalid entries")
            self._save()
            self._publish()
        return removed

    # === Navigation ===

    def go_back(self) -> HistoryEntry | None:
        """Step back and re-select that entry's object"""
        if not self.can_go_back:
            return None
        return self._navigate_to(self._index - 1)

    def go_forward(self) -> HistoryEntry | None:
        """Step forward and re-select that entry's object"""
        if not self.can_go_forward:
            return None
        return self._navigate_to(self._index + 1)

    def jump_to(self, entry: HistoryEntry) -> HistoryEntry | None:
        """Move the cursor onto ``entry`` without dropping forward entries"""
        for index, candidate in enumerate(self._entries):
            if candidate is entry:
                return self._navigate_to(index)
        return None

    def _navigate_to(self, index: int) -> HistoryEntry:
        self._navigating = True
        try:
            self._index = index
            entry = self._entries[index]
            obj = self.resolve(entry)
            if obj is not None and self._select is not None:
                self._select(obj)
            self._publish()
            return entry
        finally:
            self._navigating = False

    # === Internal ===

    def _trim(self) -> bool:
        overflow = len(self._entries) - self._max_count
        if overflow <= 0:
            return False
        del self._entries[:overflow]
        self._index = max(-1, min(self._index - overflow, len(self._entries) - 1))
        return True

    def _publish(self) -> None:
        if self._bus is not None:
            self._bus.publish(HistoryUpdated())

    def _load(self) -> None:
        if self._persistence is None:
            return
        data = self._persistence.load(config.HISTORY_SETTINGS_KEY, None)
        if not isinstance(data, dict):
            return
        try:
            self._entries = [HistoryEntry.from_dict(d) for d in data.get("entries", [])]
        except (KeyError, TypeError) as e:
            logger.warning(f"[History] Ignoring corrupt history: {e}")
            self._entries = []
        self._index = len(self._entries) - 1
        self._trim()

    def _save(self) -> None:
        if self._persistence is None:
            return
        self._persistence.save(
            config.HISTORY_SETTINGS_KEY,
            {"entries": [e.to_dict() for e in self._entries]},
        )
