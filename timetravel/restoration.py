"""
Restorer

Pushes a recorded event's target state back into its surface.

CATEGORY HANDLING:
==================
- route: go_to(target location)
- storage: set every key in the target; keys marked absent (None) are removed
- remote-cache: informational only. Cache entries are derived state that
  the core does not own, so the live cache is never written
- application-state / custom: informational unless the host registers a
  handler for the category

FAILURE POLICY:
A surface rejecting a write raises RestoreFailed (category + cause).
The caller decides what to do; the navigator keeps the cursor move.
"""

from __future__ import annotations
from typing import Callable, Dict, Mapping, Optional

from .contracts.base import EventCategory, Location, RestoreFailed
from .contracts.events import RestoreOutcome, TimelineEvent
from .surfaces import NavigationSurface, KeyValueSurface, CacheSurface
from .observability import get_logger


logger = get_logger(__name__)

RestoreHandler = Callable[[TimelineEvent], RestoreOutcome]


class Restorer:

    def __init__(
        self,
        navigation: Optional[NavigationSurface] = None,
        storage: Optional[KeyValueSurface] = None,
        cache: Optional[CacheSurface] = None
    ):
        self._navigation = navigation
        self._storage = storage
        self._cache = cache
        self._handlers: Dict[EventCategory, RestoreHandler] = {
            EventCategory.ROUTE: self._restore_route,
            EventCategory.STORAGE: self._restore_storage,
            EventCategory.REMOTE_CACHE: self._restore_cache,
        }

    def register(self, category: EventCategory, handler: RestoreHandler) -> None:
        """Install a host-provided handler, e.g. for application-state events."""
        self._handlers[category] = handler

    def restore(self, event: Optional[TimelineEvent]) -> RestoreOutcome:
        """Apply event.target_state; None means pre-history (nothing to apply)."""
        if event is None:
            return RestoreOutcome.pre_history()

        handler = self._handlers.get(event.category)
        if handler is None:
            return RestoreOutcome.informational(event)

        try:
            return handler(event)
        except RestoreFailed:
            raise
        except Exception as exc:
            raise RestoreFailed(event.category, exc) from exc

    def _restore_route(self, event: TimelineEvent) -> RestoreOutcome:
        if self._navigation is None:
            return RestoreOutcome.informational(event)
        target = event.target_state
        if not isinstance(target, str) or not target:
            raise RestoreFailed(event.category, ValueError(f"Invalid location: {target!r}"))
        self._navigation.go_to(Location.parse(target))
        return RestoreOutcome.applied_to(event)

    def _restore_storage(self, event: TimelineEvent) -> RestoreOutcome:
        if self._storage is None:
            return RestoreOutcome.informational(event)
        target = event.target_state
        if not isinstance(target, Mapping):
            raise RestoreFailed(event.category, TypeError("Storage target must be a mapping"))
        for key, value in target.items():
            if value is None:
                self._storage.remove(key)
            else:
                self._storage.set(key, value)
        return RestoreOutcome.applied_to(event)

    def _restore_cache(self, event: TimelineEvent) -> RestoreOutcome:
        # Derived state: display only, the live cache is left untouched
        logger.debug("Cache event %s is informational on restore", event.event_id)
        return RestoreOutcome.informational(event)
