"""Rotation data types

- RotationMode: update policy
- RotationSettings: configuration surface of the scheduler
- RotationSnapshot: read-only view for UIs and the web layer
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .. import config

SelectionPredicate = Callable[[Any], bool]


class RotationMode(Enum):
    """Update policy

    - CYCLE: the oldest panel (queue head) receives each new selection
    - HISTORY: each queue position shows a fixed history depth
    """
    CYCLE = "cycle"
    HISTORY = "history"

    @classmethod
    def parse(cls, value: "str | RotationMode") -> "RotationMode":
        """Parse a mode name (case-insensitive)

        Raises:
            ValueError: unknown mode name
        """
        if isinstance(value, RotationMode):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown rotation mode: {value}") from None


def _never_block(obj: Any) -> bool:
    return False


@dataclass
class RotationSettings:
    """Scheduler configuration

    Attributes:
        mode: Cycle or History
        auto_focus_on_update: focus the updated panel after a dispatch
        selection_filter: predicate, True suppresses the dispatch
    """
    mode: RotationMode = field(default_factory=lambda: RotationMode.parse(config.DEFAULT_MODE))
    auto_focus_on_update: bool = config.DEFAULT_AUTO_FOCUS
    selection_filter: SelectionPredicate = _never_block


@dataclass
class SyncReport:
    """Outcome of one synchronize() pass"""
    removed: int = 0
    added: int = 0
    relocked: int = 0
    purged_exclusions: int = 0
    timed_out: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.removed or self.added or self.relocked or self.timed_out)


@dataclass(frozen=True)
class RotationSnapshot:
    """Point-in-time scheduler state"""
    enabled: bool
    paused: bool
    updating: bool
    mode: RotationMode
    rotation: tuple[Any, ...]
    excluded: tuple[Any, ...]
    unmanaged: tuple[Any, ...]
    history_depth: int

    @property
    def next_target(self) -> Any:
        return self.rotation[0] if self.rotation else None
