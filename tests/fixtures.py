"""
Test Fixtures

Explicit, deterministic builders for events, logs and services.
No random generation outside the hypothesis strategies.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional

from timetravel.config import TimelineConfig
from timetravel.contracts.base import EventCategory, Timestamp
from timetravel.contracts.events import EventMetadata, RestoreOutcome, TimelineEvent
from timetravel.service import TimelineService
from timetravel.surfaces import (
    InMemoryCacheSurface, InMemoryKeyValueSurface, InMemoryNavigationSurface
)
from timetravel.temporal.clock import LogicalClock
from timetravel.temporal.event_log import EventLog


# =============================================================================
# FIXED TIMESTAMPS (deterministic)
# =============================================================================

EPOCH = datetime(2026, 1, 1, 0, 0, 0, tzinfo=timezone.utc)
T1 = datetime(2026, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
T2 = datetime(2026, 1, 1, 10, 5, 0, tzinfo=timezone.utc)


# =============================================================================
# EVENT FACTORIES
# =============================================================================

def make_event(
    n: int = 0,
    category: EventCategory = EventCategory.ROUTE,
    kind: Optional[str] = None,
    target_state: Any = None,
    prior_state: Any = None,
    payload: Any = None,
    metadata: Optional[EventMetadata] = None
) -> TimelineEvent:
    """Event number n with a stable id and a timestamp n seconds after EPOCH."""
    if target_state is None:
        if category is EventCategory.ROUTE:
            target_state = f"/page/{n}"
        elif category is EventCategory.STORAGE:
            target_state = {"counter": str(n)}
        else:
            target_state = {"n": n}
    return TimelineEvent.create(
        event_id=f"evt_{n:04d}",
        kind=kind or f"{category.value.upper()}_{n}",
        category=category,
        timestamp=Timestamp(EPOCH + timedelta(seconds=n)),
        target_state=target_state,
        prior_state=prior_state,
        payload=payload,
        metadata=metadata
    )


def make_log(count: int, category: EventCategory = EventCategory.ROUTE) -> EventLog:
    log = EventLog()
    for n in range(count):
        log.append(make_event(n, category))
    return log


def exported_document(count: int) -> List[dict]:
    """Document in the export format with count route events."""
    return [
        {
            "id": f"evt_{n:04d}",
            "kind": "NAVIGATE",
            "timestamp": (EPOCH + timedelta(seconds=n)).isoformat(),
            "category": "route",
            "payload": {"to": f"/imported/{n}"},
            "priorState": f"/imported/{n - 1}" if n else None,
            "targetState": f"/imported/{n}",
        }
        for n in range(count)
    ]


# =============================================================================
# RESTORER DOUBLES
# =============================================================================

class RecordingRestorer:
    """Restorer double that remembers every event it was asked to apply."""

    def __init__(self, fail_on: Optional[Exception] = None):
        self.calls: List[Optional[TimelineEvent]] = []
        self.fail_on = fail_on

    def restore(self, event: Optional[TimelineEvent]) -> RestoreOutcome:
        self.calls.append(event)
        if self.fail_on is not None and event is not None:
            raise self.fail_on
        if event is None:
            return RestoreOutcome.pre_history()
        return RestoreOutcome.applied_to(event)


# =============================================================================
# SERVICE FACTORY
# =============================================================================

def make_surfaces(blocked=()):
    return {
        "navigation": InMemoryNavigationSurface("/", blocked=blocked),
        "storage": InMemoryKeyValueSurface(),
        "cache": InMemoryCacheSurface(),
    }


def make_service(config: Optional[TimelineConfig] = None, blocked=(), **surfaces) -> TimelineService:
    """Started service over in-memory surfaces with a manual clock."""
    all_surfaces = make_surfaces(blocked)
    all_surfaces.update(surfaces)
    service = TimelineService(
        config or TimelineConfig(export_dir="timelines"),
        clock=LogicalClock.manual(EPOCH),
        **all_surfaces
    )
    service.start()
    return service
