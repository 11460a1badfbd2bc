"""HistoryRecorder - feeds host selections into SelectionHistory

Subscribes to the selection source on construction and unsubscribes on
dispose(), like the scheduler.
"""

from typing import Any

from .. import config
from ..telemetry import get_logger
from .favorites import FavoriteEntry, FavoritesService
from .service import HistoryEntry, SelectionHistory

logger = get_logger(__name__)


class HistoryRecorder:
    """Selection -> history glue plus history/favorite selection helpers

    Attributes:
        recording_enabled: master switch
        record_assets: record objects that live on disk
        record_scene_objects: record objects without an asset path
    """

    def __init__(
        self,
        history: SelectionHistory,
        favorites: FavoritesService,
        source: Any,
        record_assets: bool = config.RECORD_ASSETS,
        record_scene_objects: bool = config.RECORD_SCENE_OBJECTS,
    ):
        """
        Args:
            history: history to record into
            favorites: favorites service
            source: host with subscribe/unsubscribe/get_selection/select
        """
        self.history = history
        self.favorites = favorites
        self._source = source
        self.recording_enabled = True
        self.record_assets = record_assets
        self.record_scene_objects = record_scene_objects
        self._disposed = False

        source.subscribe(self.on_selection_changed)

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._source.unsubscribe(self.on_selection_changed)

    def on_selection_changed(self, obj: Any = None) -> bool:
        """Record a selection if the settings allow it"""
        if not self.recording_enabled or obj is None:
            return False

        is_asset = bool(getattr(obj, "is_asset", False))
        if is_asset and not self.record_assets:
            return False
        if not is_asset and not self.record_scene_objects:
            return False

        return self.history.record(obj)

    def select_from_history(self, entry: HistoryEntry | None) -> bool:
        """Select an entry's object as a fresh selection

        Unlike go_back/go_forward this records a new history entry.
        """
        if entry is None:
            return False
        obj = self.history.resolve(entry)
        if obj is None:
            logger.debug(f"[Recorder] History entry {entry.name} no longer exists")
            return False
        self._source.select(obj)
        return True

    def select_from_favorite(self, entry: FavoriteEntry | None) -> bool:
        """Select a favorite's object; recorded like any other selection"""
        if entry is None:
            return False
        obj = self.favorites.resolve(entry)
        if obj is None:
            logger.debug(f"[Recorder] Favorite {entry.display_name} no longer exists")
            return False
        self._source.select(obj)
        return True

    def add_current_to_favorites(self) -> bool:
        return self.favorites.add(self._source.get_selection())

    def go_back(self) -> HistoryEntry | None:
        return self.history.go_back()

    def go_forward(self) -> HistoryEntry | None:
        return self.history.go_forward()

    def cleanup_all(self) -> int:
        """Drop invalid history entries and favorites

        Returns:
            Total number removed
        """
        return self.history.cleanup_invalid() + self.favorites.cleanup_invalid()
