"""
Observer Base

CONTRACT:
- At most one candidate event per detected change
- Every event carries a complete target_state snapshot
- No event when nothing changed since the last snapshot
- Observers never touch the cursor; they only hand events to the sink
- A failing surface read never stops the host loop
"""

from __future__ import annotations
from typing import Any, Callable, Optional

from ..contracts.base import EventCategory
from ..contracts.events import TimelineEvent
from ..temporal.clock import LogicalClock
from ..observability import get_logger


logger = get_logger(__name__)

EventSink = Callable[[TimelineEvent], Any]


class Observer:
    """
    Polling observer over one external surface.

    Subclasses implement snapshot() and build_event(previous, current).
    The host drives polling through tick() or advance(elapsed_ms).
    """

    category: EventCategory = EventCategory.CUSTOM

    def __init__(
        self,
        sink: EventSink,
        clock: Optional[LogicalClock] = None,
        interval_ms: float = 1000.0
    ):
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        self._sink = sink
        self._clock = clock or LogicalClock.live()
        self._interval_ms = float(interval_ms)
        self._elapsed_ms = 0.0
        self._previous: Any = None
        self._primed = False

    @property
    def interval_ms(self) -> float:
        return self._interval_ms

    @property
    def last_snapshot(self) -> Any:
        return self._previous

    def snapshot(self) -> Any:
        raise NotImplementedError

    def build_event(self, previous: Any, current: Any) -> Optional[TimelineEvent]:
        """Return an event if current differs from previous, else None."""
        raise NotImplementedError

    def prime(self) -> None:
        """Take the baseline snapshot without emitting anything."""
        self._previous = self.snapshot()
        self._primed = True

    def resync(self) -> None:
        """Re-baseline after the surface was changed by a restore."""
        self.prime()

    def attach(self) -> None:
        """Hook up native change notification where the surface has one."""
        if not self._primed:
            self.prime()

    def detach(self) -> None:
        pass

    def poll(self) -> Optional[TimelineEvent]:
        """Compare against the last snapshot and build at most one event."""
        if not self._primed:
            self.prime()
            return None

        current = self.snapshot()
        event = self.build_event(self._previous, current)
        if event is not None:
            self._previous = current
            logger.debug("%s observer detected %s", self.category.value, event.kind)
        return event

    def tick(self) -> Optional[TimelineEvent]:
        """
        Poll once and hand any event to the sink.

        A surface error is logged and skipped; the previous baseline is
        kept, so the change is picked up by the next successful poll.
        """
        try:
            event = self.poll()
        except Exception as exc:
            logger.warning("%s observer poll failed: %r", self.category.value, exc)
            return None
        if event is not None:
            self._sink(event)
        return event

    def advance(self, elapsed_ms: float) -> int:
        """Feed host time; polls once per elapsed interval. Returns events emitted."""
        self._elapsed_ms += elapsed_ms
        emitted = 0
        while self._elapsed_ms >= self._interval_ms:
            self._elapsed_ms -= self._interval_ms
            if self.tick() is not None:
                emitted += 1
        return emitted
