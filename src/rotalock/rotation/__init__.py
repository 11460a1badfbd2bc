"""Rotation module

- types: RotationMode, RotationSettings, RotationSnapshot, SyncReport
- exclusion: ExclusionSet
- filters: selection filter predicates
- scheduler: RotationScheduler
"""

from .exclusion import ExclusionSet
from .filters import FilterSettings, ObjectInfo, make_selection_filter, should_block
from .scheduler import RotationScheduler
from .types import RotationMode, RotationSettings, RotationSnapshot, SyncReport

__all__ = [
    "RotationScheduler",
    "RotationMode",
    "RotationSettings",
    "RotationSnapshot",
    "SyncReport",
    "ExclusionSet",
    # Filters
    "FilterSettings",
    "ObjectInfo",
    "make_selection_filter",
    "should_block",
]
