"""PanelCapability - host panel contract

What the rotation engine needs from a host that owns inspection panels:
- enumerate live panels in their natural order
- read / write each panel's lock flag
- read the object a panel displays
- swap a panel's object in place (optional, probed via
  ``is_direct_update_supported``)
- focus / repaint / close

Design:
1. Panel references are opaque hashable handles; identity is the live
   handle, a closed-and-reopened panel is a different handle
2. Host-version differences are capability flags, not exceptions
3. All calls are synchronous; they run on the host's UI loop
"""

from abc import ABC, abstractmethod
from collections.abc import Hashable
from typing import Any

PanelRef = Hashable
ObjectRef = Any


class PanelCapability(ABC):
    """Host panel capability

    Example:
        host = MemoryPanelHost()
        a = host.open_panel()
        host.set_locked(a, True)
        host.try_direct_update(a, some_object)
    """

    @property
    def name(self) -> str:
        """Host name (logs)"""
        return type(self).__name__

    @abstractmethod
    def list_panels(self) -> list[PanelRef]:
        """All live panels in enumeration order"""

    @abstractmethod
    def is_locked(self, panel: PanelRef) -> bool:
        """Whether the panel ignores the host's global selection"""

    @abstractmethod
    def set_locked(self, panel: PanelRef, locked: bool) -> None:
        """Set the panel's lock flag"""

    @abstractmethod
    def get_displayed_object(self, panel: PanelRef) -> ObjectRef | None:
        """Object currently shown by the panel, None if nothing/invalid"""

    @abstractmethod
    def try_direct_update(self, panel: PanelRef, obj: ObjectRef) -> bool:
        """Swap the displayed object while the panel stays locked

        Returns:
            False when unsupported by this host version or when the swap failed
        """

    @abstractmethod
    def is_direct_update_supported(self) -> bool:
        """Whether ``try_direct_update`` can work at all"""

    @abstractmethod
    def focus(self, panel: PanelRef) -> None:
        """Give the panel keyboard focus"""

    @abstractmethod
    def repaint(self, panel: PanelRef) -> None:
        """Ask the host to redraw the panel"""

    @abstractmethod
    def close(self, panel: PanelRef) -> None:
        """Close the panel"""

    # Optional methods (default implementations)

    def is_live(self, panel: PanelRef) -> bool:
        """Whether the handle still resolves to an open panel"""
        return panel is not None and panel in self.list_panels()

    def lock_all(self) -> None:
        for panel in self.list_panels():
            self.set_locked(panel, True)

    def unlock_all(self) -> None:
        for panel in self.list_panels():
            self.set_locked(panel, False)

    def is_object_valid(self, obj: ObjectRef | None) -> bool:
        """Whether a previously seen object can still be displayed"""
        return obj is not None

    def get_selection(self) -> ObjectRef | None:
        """The host's current global selection"""
        return None

    def get_focused_panel(self) -> PanelRef | None:
        """Panel holding focus, None when focus is elsewhere"""
        return None

    def is_focus_on_non_rotatable(self) -> bool:
        """Whether focus sits on a surface that must keep it (hierarchy, browser)"""
        return False

    def panel_key(self, panel: PanelRef) -> str:
        """Stable string key for logs and the web surface"""
        key = getattr(panel, "panel_id", None)
        return str(key) if key is not None else f"{id(panel):x}"

    def find_panel(self, key: str) -> PanelRef | None:
        """Reverse of ``panel_key`` over the live panels"""
        for panel in self.list_panels():
            if self.panel_key(panel) == key:
                return panel
        return None
