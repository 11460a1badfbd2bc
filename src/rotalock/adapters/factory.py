"""Host factory"""

import logging
from typing import TYPE_CHECKING

from rotalock import config

if TYPE_CHECKING:
    from rotalock.adapters.base import PanelCapability

logger = logging.getLogger(__name__)


def create_host(host_type: str | None = None, panels: int = 0) -> "PanelCapability":
    """Create a panel host.

    Args:
        host_type: "memory" (direct update available) or "memory-legacy"
                   (direct update missing, emulates an older host).
                   Default from config.
        panels: number of panels to open up front

    Returns:
        PanelCapability instance

    Raises:
        ValueError: If host type is unknown
    """
    if host_type is None:
        host_type = config.HOST_TYPE

    if host_type in ("memory", "memory-legacy"):
        from rotalock.adapters.memory import MemoryPanelHost

        host = MemoryPanelHost(direct_update_supported=host_type == "memory")
        for i in range(panels):
            host.open_panel(title=f"Inspector {i + 1}")
        logger.info(f"Created {host_type} host with {panels} panels")
        return host

    raise ValueError(f"Unknown host type: {host_type}")
