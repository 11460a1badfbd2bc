"""In-process reference host

MemoryPanelHost behaves like an editor that owns inspection panels:
- unlocked panels mirror the global selection (on select and on repaint)
- locked panels keep whatever they show
- direct update can be switched off to emulate an older host
- selection listeners are notified after mirroring, like the host's own
  selection-changed event

Used by the demo, the web entry point and the test-suite.
"""

import itertools
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from ..rotation.filters import ObjectInfo
from ..telemetry import get_logger
from .base import PanelCapability

logger = get_logger(__name__)

SelectionListener = Callable[[Any], Any]

# Surfaces that keep focus after a rotation update
NON_ROTATABLE_SURFACES = frozenset({"hierarchy", "project"})


@dataclass(eq=False)
class MemoryPanel:
    """Panel handle, compared by identity

    Attributes:
        panel_id: host-unique key, never reused
        title: display name
        locked: lock flag
        displayed: object currently shown
        is_open: False once closed
    """

    panel_id: str
    title: str = ""
    locked: bool = False
    displayed: Any = None
    is_open: bool = True
    repaint_count: int = 0


@dataclass(eq=False)
class MemoryObject:
    """Selectable object with the metadata the filters and history need"""

    object_id: int
    name: str
    kind: str = "GameObject"
    path: str = ""
    is_folder: bool = False
    alive: bool = field(default=True, repr=False)

    @property
    def is_asset(self) -> bool:
        return bool(self.path)


class MemoryPanelHost(PanelCapability):
    """Panel host kept entirely in memory"""

    def __init__(self, direct_update_supported: bool = True):
        self.direct_update_supported = direct_update_supported
        self.fail_direct_updates = False
        self.focus_surface: str | None = None
        self._panels: list[MemoryPanel] = []
        self._selection: Any = None
        self._focused: MemoryPanel | None = None
        self._listeners: list[SelectionListener] = []
        self._objects: dict[int, MemoryObject] = {}
        self._panel_ids = itertools.count(1)
        self._object_ids = itertools.count(1)
        # call log: (operation, panel_id, object)
        self.calls: list[tuple[str, str, Any]] = []

    # === Panels ===

    def open_panel(self, title: str = "") -> MemoryPanel:
        """Open a new panel at the end of the enumeration order"""
        panel_id = f"panel-{next(self._panel_ids)}"
        # new panels open unlocked and show the current selection
        panel = MemoryPanel(panel_id=panel_id, title=title or panel_id, displayed=self._selection)
        self._panels.append(panel)
        logger.debug(f"[MemoryHost] Opened {panel_id}")
        return panel

    def list_panels(self) -> list[MemoryPanel]:
        return list(self._panels)

    def is_live(self, panel: MemoryPanel) -> bool:
        return isinstance(panel, MemoryPanel) and panel.is_open and panel in self._panels

    def is_locked(self, panel: MemoryPanel) -> bool:
        return panel.locked

    def set_locked(self, panel: MemoryPanel, locked: bool) -> None:
        if not self.is_live(panel):
            return
        panel.locked = locked
        self.calls.append(("lock" if locked else "unlock", panel.panel_id, None))

    def get_displayed_object(self, panel: MemoryPanel) -> Any:
        obj = panel.displayed
        if isinstance(obj, MemoryObject) and not obj.alive:
            return None
        return obj

    def try_direct_update(self, panel: MemoryPanel, obj: Any) -> bool:
        if not self.direct_update_supported or self.fail_direct_updates:
            return False
        if not self.is_live(panel):
            return False
        panel.displayed = obj
        self.calls.append(("direct", panel.panel_id, obj))
        return True

    def is_direct_update_supported(self) -> bool:
        return self.direct_update_supported

    def is_object_valid(self, obj: Any) -> bool:
        if isinstance(obj, MemoryObject):
            return obj.alive
        return obj is not None

    def focus(self, panel: MemoryPanel) -> None:
        if self.is_live(panel):
            self._focused = panel
            self.focus_surface = None
            self.calls.append(("focus", panel.panel_id, None))

    def repaint(self, panel: MemoryPanel) -> None:
        if not self.is_live(panel):
            return
        panel.repaint_count += 1
        if not panel.locked:
            panel.displayed = self._selection

    def close(self, panel: MemoryPanel) -> None:
        if panel in self._panels:
            self._panels.remove(panel)
        panel.is_open = False
        if self._focused is panel:
            self._focused = None
        logger.debug(f"[MemoryHost] Closed {panel.panel_id}")

    def get_focused_panel(self) -> MemoryPanel | None:
        return self._focused

    def is_focus_on_non_rotatable(self) -> bool:
        return self.focus_surface in NON_ROTATABLE_SURFACES

    def focus_surface_named(self, surface: str) -> None:
        """Move focus to a non-panel surface such as "hierarchy\""""
        self._focused = None
        self.focus_surface = surface

    # === Selection ===

    def get_selection(self) -> Any:
        return self._selection

    def select(self, obj: Any) -> None:
        """Change the global selection

        Unlocked panels mirror it, then listeners are notified.
        """
        self._selection = obj
        for panel in self._panels:
            if not panel.locked:
                panel.displayed = obj
        for listener in list(self._listeners):
            listener(obj)

    def subscribe(self, listener: SelectionListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: SelectionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    # === Objects ===

    def create_object(
        self,
        name: str,
        kind: str = "GameObject",
        path: str = "",
        is_folder: bool = False,
    ) -> MemoryObject:
        """Create a selectable object known to ``resolve``/``describe``"""
        obj = MemoryObject(
            object_id=next(self._object_ids),
            name=name,
            kind=kind,
            path=path,
            is_folder=is_folder,
        )
        self._objects[obj.object_id] = obj
        return obj

    def destroy_object(self, obj: MemoryObject) -> None:
        obj.alive = False
        self._objects.pop(obj.object_id, None)

    def resolve(self, object_id: int) -> MemoryObject | None:
        return self._objects.get(object_id)

    def describe(self, obj: Any) -> ObjectInfo | None:
        """ObjectInfo for the selection filter"""
        if not isinstance(obj, MemoryObject):
            return None
        return ObjectInfo(kind=obj.kind, path=obj.path, is_folder=obj.is_folder)
