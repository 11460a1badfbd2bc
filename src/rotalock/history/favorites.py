"""FavoritesService - user-ordered list of pinned objects"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .. import config
from ..bus import FavoritesUpdated, NotificationBus
from ..telemetry import get_logger

if TYPE_CHECKING:
    from ..persistence import Persistence

logger = get_logger(__name__)


@dataclass
class FavoriteEntry:
    """Pinned object

    Attributes:
        object_id: host object id
        display_name: name shown in lists (editable)
        type_name: host type name
        sort_order: position, kept equal to the list index
    """
    object_id: Any
    display_name: str
    type_name: str
    sort_order: int = 0

    @classmethod
    def from_object(cls, obj: Any) -> "FavoriteEntry | None":
        object_id = getattr(obj, "object_id", None)
        if object_id is None:
            return None
        return cls(
            object_id=object_id,
            display_name=str(getattr(obj, "name", object_id)),
            type_name=str(getattr(obj, "kind", type(obj).__name__)),
        )

    def to_dict(self) -> dict:
        return {
            "object_id": self.object_id,
            "display_name": self.display_name,
            "type_name": self.type_name,
            "sort_order": self.sort_order,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FavoriteEntry":
        return cls(
            object_id=data["object_id"],
            display_name=data.get("display_name", ""),
            type_name=data.get("type_name", ""),
            sort_order=data.get("sort_order", 0),
        )


class FavoritesService:
    """Ordered favorites, persisted on every change"""

    def __init__(
        self,
        resolve: Callable[[Any], Any],
        persistence: "Persistence | None" = None,
        bus: NotificationBus | None = None,
    ):
        self._resolve = resolve
        self._persistence = persistence
        self._bus = bus
        self._favorites: list[FavoriteEntry] = []
        self._load()

    def entries(self) -> list[FavoriteEntry]:
        return list(self._favorites)

    def __len__(self) -> int:
        return len(self._favorites)

    def _index_of(self, obj: Any) -> int:
        object_id = getattr(obj, "object_id", None)
        if object_id is None:
            return -1
        for index, entry in enumerate(self._favorites):
            if entry.object_id == object_id:
                return index
        return -1

    def is_favorite(self, obj: Any) -> bool:
        return obj is not None and self._index_of(obj) >= 0

    def add(self, obj: Any) -> bool:
        """Pin an object at the end of the list

        Returns:
            Whether it was added (False for None or duplicates)
        """
        if obj is None or self.is_favorite(obj):
            return False
        entry = FavoriteEntry.from_object(obj)
        if entry is None:
            return False
        entry.sort_order = len(self._favorites)
        self._favorites.append(entry)
        logger.debug(f"[Favorites] Added {entry.display_name}")
        self._changed()
        return True

    def remove(self, obj: Any) -> bool:
        if obj is None:
            return False
        index = self._index_of(obj)
        if index < 0:
            return False
        del self._favorites[index]
        self._changed()
        return True

    def toggle(self, obj: Any) -> bool:
        """Add or remove

        Returns:
            Whether the object is a favorite afterwards
        """
        if self.is_favorite(obj):
            self.remove(obj)
            return False
        return self.add(obj)

    def reorder(self, from_index: int, to_index: int) -> bool:
        size = len(self._favorites)
        if not (0 <= from_index < size) or not (0 <= to_index < size):
            return False
        if from_index == to_index:
            return False
        entry = self._favorites.pop(from_index)
        self._favorites.insert(to_index, entry)
        self._changed()
        return True

    def resolve(self, entry: FavoriteEntry) -> Any:
        try:
            return self._resolve(entry.object_id)
        except Exception as e:
            logger.warning(f"[Favorites] Resolving {entry.display_name} failed: {e}")
            return None

    def cleanup_invalid(self) -> int:
        """Drop favorites whose object is gone

        Returns:
            Number of entries removed
        """
        before = len(self._favorites)
        self._favorites = [e for e in self._favorites if self.resolve(e) is not None]
        removed = before - len(self._favorites)
        if removed:
            self._changed()
        return removed

    def _changed(self) -> None:
        for index, entry in enumerate(self._favorites):
            entry.sort_order = index
        self._save()
        if self._bus is not None:
            self._bus.publish(FavoritesUpdated())

    def _load(self) -> None:
        if self._persistence is None:
            return
        data = self._persistence.load(config.FAVORITES_SETTINGS_KEY, None)
        if not isinstance(data, dict):
            return
        try:
            entries = [FavoriteEntry.from_dict(d) for d in data.get("entries", [])]
        except (KeyError, TypeError) as e:
            logger.warning(f"[Favorites] Ignoring corrupt favorites: {e}")
            return
        self._favorites = sorted(entries, key=lambda e: e.sort_order)

    def _save(self) -> None:
        if self._persistence is None:
            return
        self._persistence.save(
            config.FAVORITES_SETTINGS_KEY,
            {"entries": [e.to_dict() for e in self._favorites]},
        )
