"""
Route Observer

Fires when the externally visible location changes.
target_state is the new href, prior_state the old one.
"""

from __future__ import annotations
from typing import Optional

from ..contracts.base import EventCategory, Location
from ..contracts.events import TimelineEvent
from ..surfaces import NavigationSurface, Unsubscribe
from .base import Observer


NAVIGATE = "NAVIGATE"


class RouteObserver(Observer):
    """
    Watches a navigation surface.

    Uses the surface's change notification when it offers one and
    falls back to polling otherwise. Both paths share one baseline, so
    a change is recorded once whichever path sees it first.
    """

    category = EventCategory.ROUTE

    def __init__(self, surface: NavigationSurface, sink, clock=None, interval_ms: float = 250.0):
        super().__init__(sink, clock, interval_ms)
        self._surface = surface
        self._unsubscribe: Optional[Unsubscribe] = None

    @property
    def is_subscribed(self) -> bool:
        return self._unsubscribe is not None

    def snapshot(self) -> Location:
        return self._surface.get_current_location()

    def build_event(self, previous: Location, current: Location) -> Optional[TimelineEvent]:
        if previous == current:
            return None
        return TimelineEvent.create(
            kind=NAVIGATE,
            category=self.category,
            timestamp=self._clock.now(),
            payload={
                'from': previous.href if previous else None,
                'to': current.href,
                'search': current.search,
                'hash': current.hash,
            },
            prior_state=previous.href if previous else None,
            target_state=current.href
        )

    def attach(self) -> None:
        super().attach()
        if self._unsubscribe is None:
            self._unsubscribe = self._surface.subscribe(lambda _location: self.tick())

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
