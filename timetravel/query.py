"""
Query & Filter View

RESPONSIBILITY: Read-only projections over the event log
OUTPUTS: FilteredEvent tuples, TimelineSummary

WHAT THIS LAYER MUST NOT DO:
============================
- Mutate the log or the cursor
- Reorder events (results keep append order)
- Renumber events: every result carries its true log index so the
  navigator can jump to it
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple, Union

from .contracts.base import EventCategory
from .contracts.events import TimelineEvent
from .temporal.event_log import EventLog, ReadOnlyEventLog


ALL_CATEGORIES = "all"


@dataclass(frozen=True)
class FilteredEvent:
    """An event plus its position in the full log."""
    index: int
    event: TimelineEvent


@dataclass(frozen=True)
class TimelineSummary:
    total_events: int
    cursor: int
    tip: int
    by_category: Tuple[Tuple[str, int], ...] = field(default_factory=tuple)

    @property
    def is_live(self) -> bool:
        return self.cursor == self.tip

    def to_dict(self) -> dict:
        return {
            'totalEvents': self.total_events,
            'cursor': self.cursor,
            'tip': self.tip,
            'isLive': self.is_live,
            'byCategory': dict(self.by_category),
        }


class TimelineQuery:

    def __init__(self, log: Union[EventLog, ReadOnlyEventLog]):
        self._log = log

    def filter(
        self,
        category: Optional[Union[EventCategory, str]] = None,
        text: Optional[str] = None
    ) -> Tuple[FilteredEvent, ...]:
        """
        Events matching category (if given) whose kind contains text
        case-insensitively (if given). 'all' or None disables the
        category test; an empty text disables the text test.
        """
        wanted = None
        if category is not None and category != ALL_CATEGORIES:
            wanted = EventCategory.parse(category)
        needle = text.lower() if text else None

        matches = []
        for index, event in enumerate(self._log.events()):
            if wanted is not None and event.category is not wanted:
                continue
            if needle is not None and needle not in event.kind.lower():
                continue
            matches.append(FilteredEvent(index=index, event=event))
        return tuple(matches)

    def summary(self) -> TimelineSummary:
        state = self._log.state
        counts: Dict[str, int] = {c.value: 0 for c in EventCategory}
        for event in self._log.events():
            counts[event.category.value] += 1
        return TimelineSummary(
            total_events=state.length,
            cursor=state.cursor,
            tip=state.tip,
            by_category=tuple(counts.items())
        )
