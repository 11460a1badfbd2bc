"""Host adapters

- PanelCapability: host contract consumed by the rotation engine
- MemoryPanelHost: in-process reference host
- create_host: host factory
"""

from .base import ObjectRef, PanelCapability, PanelRef
from .factory import create_host
from .memory import MemoryObject, MemoryPanel, MemoryPanelHost

__all__ = [
    # Contract
    "PanelCapability",
    "PanelRef",
    "ObjectRef",
    # Factory
    "create_host",
    # Memory host
    "MemoryPanelHost",
    "MemoryPanel",
    "MemoryObject",
]
