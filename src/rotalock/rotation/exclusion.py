"""ExclusionSet - panels taken out of automatic management

An excluded panel is removed from the rotation queue and kept locked, so it
stays frozen on whatever it shows. Including it back hands control to the
caller's resync callback, which re-appends it to the queue.
"""

from collections.abc import Callable
from typing import TYPE_CHECKING

from ..telemetry import format_panel_log, get_logger

if TYPE_CHECKING:
    from ..adapters.base import PanelCapability, PanelRef

logger = get_logger(__name__)


class ExclusionSet:
    """Excluded panels, in exclusion order"""

    def __init__(self, host: "PanelCapability"):
        self._host = host
        self._excluded: list["PanelRef"] = []

    def set_excluded(
        self,
        panel: "PanelRef | None",
        excluded: bool,
        queue: list["PanelRef"] | None = None,
        on_include_back: Callable[[], object] | None = None,
    ) -> bool:
        """Exclude or include a panel

        Args:
            panel: target panel, None is ignored
            excluded: True to exclude, False to include back
            queue: rotation queue to remove the panel from when excluding
            on_include_back: called after a panel is included back

        Returns:
            Whether the set changed
        """
        if panel is None:
            return False

        key = self._host.panel_key(panel)
        if excluded:
            if panel in self._excluded:
                return False
            if queue is not None and panel in queue:
                queue.remove(panel)
            self._excluded.append(panel)
            self._host.set_locked(panel, True)
            logger.info(format_panel_log("Exclusion", key, "excluded from rotation"))
            return True

        if panel not in self._excluded:
            return False
        self._excluded.remove(panel)
        logger.info(format_panel_log("Exclusion", key, "included back"))
        if on_include_back is not None:
            on_include_back()
        return True

    def is_excluded(self, panel: "PanelRef | None") -> bool:
        return panel is not None and panel in self._excluded

    def purge_dead(self) -> int:
        """Drop panels that no longer resolve to a live panel

        Returns:
            Number of references dropped
        """
        before = len(self._excluded)
        self._excluded = [p for p in self._excluded if self._host.is_live(p)]
        dropped = before - len(self._excluded)
        if dropped:
            logger.debug(f"[Exclusion] Purged {dropped} dead references")
        return dropped

    def clear(self) -> None:
        self._excluded.clear()

    def panels(self) -> list["PanelRef"]:
        return list(self._excluded)

    def __contains__(self, panel: object) -> bool:
        return panel in self._excluded

    def __len__(self) -> int:
        return len(self._excluded)
