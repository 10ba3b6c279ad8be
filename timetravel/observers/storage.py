"""
Storage Observer

Snapshots the whole key space each tick. One event per tick bundles
every changed key; removed keys are recorded with a None (absent) value.
"""

from __future__ import annotations
from typing import Dict, Optional

from ..contracts.base import EventCategory
from ..contracts.events import TimelineEvent, EventMetadata
from ..diffing import StateDiff
from ..surfaces import KeyValueSurface
from .base import Observer


STORAGE_CHANGE = "STORAGE_CHANGE"


class StorageObserver(Observer):

    category = EventCategory.STORAGE

    def __init__(self, surface: KeyValueSurface, sink, clock=None, interval_ms: float = 1000.0):
        super().__init__(sink, clock, interval_ms)
        self._surface = surface

    def snapshot(self) -> Dict[str, str]:
        return dict(self._surface.enumerate())

    def build_event(self, previous: Dict[str, str], current: Dict[str, str]) -> Optional[TimelineEvent]:
        diff = StateDiff.between(previous, current)
        if diff.is_empty:
            return None

        # Removed keys stay in the target as absent so a restore deletes them
        target = dict(current)
        for change in diff.removed:
            target[change.key] = None

        return TimelineEvent.create(
            kind=STORAGE_CHANGE,
            category=self.category,
            timestamp=self._clock.now(),
            payload=diff.as_changes(),
            prior_state=previous,
            target_state=target,
            metadata=EventMetadata(affected_keys=diff.affected_keys)
        )
