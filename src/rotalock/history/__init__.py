"""History module - selection history, favorites and the recorder"""

from .favorites import FavoriteEntry, FavoritesService
from .recorder import HistoryRecorder
from .service import HistoryEntry, SelectionHistory

__all__ = [
    "SelectionHistory",
    "HistoryEntry",
    "FavoritesService",
    "FavoriteEntry",
    "HistoryRecorder",
]
