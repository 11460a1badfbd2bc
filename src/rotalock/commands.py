"""Lock commands (hotkey actions)

- toggle_active_lock: focused panel, else the first panel
- toggle_all_locks: any unlocked -> lock all, else unlock all
"""

from typing import TYPE_CHECKING

from .bus import LockChanged, NotificationBus
from .telemetry import format_panel_log, get_logger

if TYPE_CHECKING:
    from .adapters.base import PanelCapability, PanelRef

logger = get_logger(__name__)


def toggle_active_lock(
    host: "PanelCapability", bus: NotificationBus | None = None
) -> "PanelRef | None":
    """Flip the lock of the focused panel (or the first one)

    Returns:
        The toggled panel, None when there is no panel
    """
    panel = host.get_focused_panel()
    if panel is None or not host.is_live(panel):
        panels = host.list_panels()
        if not panels:
            return None
        panel = panels[0]

    locked = not host.is_locked(panel)
    host.set_locked(panel, locked)
    logger.info(format_panel_log("Commands", host.panel_key(panel), "locked" if locked else "unlocked"))
    if bus is not None:
        bus.publish(LockChanged(panel=panel, locked=locked))
    return panel


def toggle_all_locks(host: "PanelCapability", bus: NotificationBus | None = None) -> bool | None:
    """Lock everything if anything is unlocked, otherwise unlock everything

    Returns:
        The new lock state, None when there is no panel
    """
    panels = host.list_panels()
    if not panels:
        return None

    locked = any(not host.is_locked(p) for p in panels)
    if locked:
        host.lock_all()
    else:
        host.unlock_all()

    logger.info(f"[Commands] {'Locked' if locked else 'Unlocked'} {len(panels)} panels")
    if bus is not None:
        for panel in panels:
            bus.publish(LockChanged(panel=panel, locked=locked))
    return locked
