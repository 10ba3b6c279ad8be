"""
Timeline Event Log
==================

Ordered event storage with a movable cursor.

INVARIANTS:
- Indices are 0..length-1 with no gaps
- Cursor is always in [-1, length-1]; -1 is pre-history
- Appending while the cursor is behind the tip discards every event
  after the cursor first (branch truncation)
- After any append the cursor is at the new tip
- Append order is the only history order; timestamps never reorder

STORAGE:
Events live in a flat arena with a separate valid-length marker.
Truncation moves the marker (O(1)); stale slots past the marker are
overwritten by later appends.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Tuple
import threading

from ..contracts.base import OutOfRange
from ..contracts.events import TimelineEvent


PRE_HISTORY = -1


@dataclass(frozen=True)
class LogState:
    """
    Immutable snapshot of log state.

    Captures length and cursor at a point in time.
    """
    length: int
    cursor: int

    @property
    def tip(self) -> int:
        return self.length - 1

    @property
    def is_live(self) -> bool:
        return self.cursor == self.tip


@dataclass(frozen=True)
class AppendResult:
    """Where an event landed and how many future events were discarded."""
    index: int
    truncated: int


class EventLog:
    """
    Event log with cursor and branch truncation.

    GUARANTEES:
    ===========
    1. Events are immutable once appended
    2. Every mutation (append, clear, cursor move, replace) runs under
       one lock, so the invariants hold with threaded observers too
    3. Reads never mutate
    """

    def __init__(self, events: Iterable[TimelineEvent] = ()):
        self._lock = threading.RLock()
        self._slots: List[TimelineEvent] = list(events)
        self._length = len(self._slots)
        self._cursor = self._length - 1

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    @property
    def state(self) -> LogState:
        """Get current log state (immutable snapshot)."""
        with self._lock:
            return LogState(length=self._length, cursor=self._cursor)

    @property
    def cursor(self) -> int:
        return self._cursor

    def __len__(self) -> int:
        return self._length

    def tip_index(self) -> int:
        return self._length - 1

    def append(self, event: TimelineEvent) -> AppendResult:
        """
        Append an event at the tip.

        If the cursor is behind the tip the abandoned future is
        discarded before the append.
        """
        with self._lock:
            truncated = 0
            if self._cursor != self._length - 1:
                truncated = self._length - (self._cursor + 1)
                self._length = self._cursor + 1

            if self._length < len(self._slots):
                self._slots[self._length] = event
            else:
                self._slots.append(event)

            self._length += 1
            self._cursor = self._length - 1
            return AppendResult(index=self._cursor, truncated=truncated)

    def clear(self) -> None:
        """Empty the log and reset the cursor to pre-history."""
        with self._lock:
            self._slots = []
            self._length = 0
            self._cursor = PRE_HISTORY

    def at(self, index: int) -> TimelineEvent:
        """Get event at index; raises OutOfRange when not in [0, tip]."""
        with self._lock:
            if not 0 <= index < self._length:
                raise OutOfRange(index, 0, self._length - 1)
            return self._slots[index]

    def move_cursor(self, index: int) -> int:
        """
        Set the cursor directly. Valid range is [-1, tip].

        Returns the previous cursor.
        """
        with self._lock:
            if not PRE_HISTORY <= index <= self._length - 1:
                raise OutOfRange(index, PRE_HISTORY, self._length - 1)
            previous = self._cursor
            self._cursor = index
            return previous

    def replace(self, events: Iterable[TimelineEvent]) -> None:
        """Swap in a whole new sequence; cursor lands on its tip."""
        new_slots = list(events)
        with self._lock:
            self._slots = new_slots
            self._length = len(new_slots)
            self._cursor = self._length - 1

    def events(self) -> Tuple[TimelineEvent, ...]:
        """Valid events in append order (copy)."""
        with self._lock:
            return tuple(self._slots[:self._length])

    def __iter__(self) -> Iterator[TimelineEvent]:
        return iter(self.events())


class ReadOnlyEventLog:
    """
    Read-only view handed to UI collaborators.

    Exposes lookups and iteration; no mutation path.
    """

    def __init__(self, log: EventLog):
        self._log = log

    @property
    def cursor(self) -> int:
        return self._log.cursor

    @property
    def state(self) -> LogState:
        return self._log.state

    def __len__(self) -> int:
        return len(self._log)

    def __iter__(self) -> Iterator[TimelineEvent]:
        return iter(self._log.events())

    def at(self, index: int) -> TimelineEvent:
        return self._log.at(index)

    def tip_index(self) -> int:
        return self._log.tip_index()

    def events(self) -> Tuple[TimelineEvent, ...]:
        return self._log.events()
