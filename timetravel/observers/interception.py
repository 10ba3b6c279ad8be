"""
Interception Observer

Registers on an InterceptionSeam and records one custom event per
intercepted call. Push-driven: it never polls.
"""

from __future__ import annotations
from typing import Optional

from ..contracts.base import EventCategory
from ..contracts.events import TimelineEvent, EventMetadata
from ..surfaces import InterceptionSeam, CallRecord, Unsubscribe
from .base import Observer


class InterceptionObserver(Observer):

    category = EventCategory.CUSTOM

    def __init__(self, seam: InterceptionSeam, sink, clock=None, component: Optional[str] = None):
        super().__init__(sink, clock, interval_ms=1.0)
        self._seam = seam
        self._component = component
        self._unsubscribe: Optional[Unsubscribe] = None

    def snapshot(self) -> None:
        return None

    def build_event(self, previous, current) -> None:
        return None

    def poll(self) -> None:
        return None

    def advance(self, elapsed_ms: float) -> int:
        return 0

    def attach(self) -> None:
        super().attach()
        if self._unsubscribe is None:
            self._unsubscribe = self._seam.register(self.on_call)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def on_call(self, record: CallRecord) -> TimelineEvent:
        event = TimelineEvent.create(
            kind=f"CALL {record.name}",
            category=self.category,
            timestamp=self._clock.now(),
            payload={
                'args': list(record.args),
                'kwargs': dict(record.kwargs),
                'error': record.error,
            },
            target_state={'name': record.name, 'succeeded': record.succeeded},
            metadata=EventMetadata(component=self._component, duration_ms=record.duration_ms)
        )
        self._sink(event)
        return event
