"""
Remote-Cache Observer

Summarises every cache entry as (key, status, lastUpdated) each tick and
fires when the summary set differs by value from the previous tick.
Summaries are kept sorted by key, so a reordered listing is no change.
The cache is derived state: these events are informational on replay.
"""

from __future__ import annotations
from typing import List, Optional
import json

from ..contracts.base import EventCategory
from ..contracts.events import TimelineEvent, EventMetadata
from ..diffing import StateDiff
from ..surfaces import CacheSurface
from .base import Observer


CACHE_UPDATE = "CACHE_UPDATE"


def _key_text(key) -> str:
    if isinstance(key, str):
        return key
    return json.dumps(key, sort_keys=True, default=str)


class RemoteCacheObserver(Observer):

    category = EventCategory.REMOTE_CACHE

    def __init__(self, surface: CacheSurface, sink, clock=None, interval_ms: float = 2000.0):
        super().__init__(sink, clock, interval_ms)
        self._surface = surface

    def snapshot(self) -> List[dict]:
        summaries = []
        for entry in self._surface.list_entries():
            summary = entry.to_dict()
            summary['key'] = _key_text(entry.key)
            summaries.append(summary)
        # Listing order is not part of the cache state
        summaries.sort(key=lambda s: s["key"])
        return summaries

    def build_event(self, previous: List[dict], current: List[dict]) -> Optional[TimelineEvent]:
        if previous == current:
            return None

        diff = StateDiff.between(previous, current)
        return TimelineEvent.create(
            kind=CACHE_UPDATE,
            category=self.category,
            timestamp=self._clock.now(),
            payload=diff.to_dict(),
            prior_state=previous,
            target_state=current,
            metadata=EventMetadata(affected_keys=diff.affected_keys)
        )
