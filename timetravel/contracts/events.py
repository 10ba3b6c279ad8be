"""
Event Contracts

Immutable records flowing between the timeline layers.

INVARIANTS:
- A TimelineEvent is never modified after creation
- State snapshots are deep-frozen on creation (mappings become read-only
  proxies, lists become tuples), so neither the observed surface nor a
  reader of the log can change recorded history
- target_state is mandatory, prior_state is display-only
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple
import copy
import uuid

from .base import Timestamp, EventCategory, Error


def freeze(value: Any) -> Any:
    """Read-only deep copy of a recorded state value."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    if isinstance(value, (set, frozenset)):
        return frozenset(freeze(item) for item in value)
    if isinstance(value, (str, bytes, int, float, bool, type(None))):
        return value
    return copy.deepcopy(value)


def thaw(value: Any) -> Any:
    """Plain mutable copy of a frozen state value (dicts and lists)."""
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [thaw(item) for item in value]
    if isinstance(value, frozenset):
        return set(thaw(item) for item in value)
    return value


@dataclass(frozen=True)
class EventMetadata:
    """Display-only annotations attached to an event."""
    component: Optional[str] = None
    duration_ms: Optional[float] = None
    affected_keys: Tuple[str, ...] = field(default_factory=tuple)

    def is_empty(self) -> bool:
        return self.component is None and self.duration_ms is None and not self.affected_keys

    def to_dict(self) -> dict:
        data = {}
        if self.component is not None:
            data['component'] = self.component
        if self.duration_ms is not None:
            data['duration'] = self.duration_ms
        if self.affected_keys:
            data['affectedKeys'] = list(self.affected_keys)
        return data


@dataclass(frozen=True)
class TimelineEvent:
    """
    One observed or synthesized state transition.

    WHY THIS TYPE:
    - target_state is what the restorer pushes back into the surface
    - payload describes what changed, for display only
    - category selects the restorer
    """
    event_id: str
    kind: str
    timestamp: Timestamp
    category: EventCategory
    target_state: Any
    payload: Any = None
    prior_state: Any = None
    metadata: EventMetadata = field(default_factory=EventMetadata)

    @staticmethod
    def new_id() -> str:
        return f"evt_{uuid.uuid4().hex}"

    @staticmethod
    def create(
        kind: str,
        category: EventCategory,
        target_state: Any,
        timestamp: Timestamp,
        payload: Any = None,
        prior_state: Any = None,
        metadata: Optional[EventMetadata] = None,
        event_id: Optional[str] = None
    ) -> TimelineEvent:
        """Factory that assigns an id and isolates the snapshots."""
        return TimelineEvent(
            event_id=event_id or TimelineEvent.new_id(),
            kind=kind,
            timestamp=timestamp,
            category=category,
            target_state=freeze(target_state),
            payload=freeze(payload),
            prior_state=freeze(prior_state),
            metadata=metadata or EventMetadata()
        )


# =============================================================================
# NAVIGATION / RESTORATION RESULTS
# =============================================================================

@dataclass(frozen=True)
class RestoreOutcome:
    """
    Result of pushing one event's state into its surface.

    applied is False when the category is informational only
    (remote cache, pre-history) - that is not a failure.
    """
    success: bool
    category: Optional[EventCategory] = None
    event_id: Optional[str] = None
    applied: bool = False
    error: Optional[Error] = None

    @property
    def is_pre_history(self) -> bool:
        return self.success and self.event_id is None

    @staticmethod
    def pre_history() -> RestoreOutcome:
        return RestoreOutcome(success=True)

    @staticmethod
    def applied_to(event: TimelineEvent) -> RestoreOutcome:
        return RestoreOutcome(
            success=True, category=event.category,
            event_id=event.event_id, applied=True
        )

    @staticmethod
    def informational(event: TimelineEvent) -> RestoreOutcome:
        return RestoreOutcome(
            success=True, category=event.category,
            event_id=event.event_id, applied=False
        )

    @staticmethod
    def failed(event: TimelineEvent, error: Error) -> RestoreOutcome:
        return RestoreOutcome(
            success=False, category=event.category,
            event_id=event.event_id, applied=False, error=error
        )


@dataclass(frozen=True)
class NavigationResult:
    """What a navigator call did: whether the cursor moved and the restore outcome."""
    moved: bool
    cursor: int
    outcome: Optional[RestoreOutcome] = None

    @property
    def has_warning(self) -> bool:
        return self.outcome is not None and not self.outcome.success


# =============================================================================
# AUDIT CONTRACTS
# =============================================================================

class AuditEventType(Enum):
    """Explicit audit event types."""
    LOG_MUTATION = "log_mutation"
    NAVIGATION = "navigation"
    PERSISTENCE = "persistence"
    PLAYBACK = "playback"
    ERROR = "error"
    SYSTEM = "system"


@dataclass(frozen=True)
class AuditLogEntry:
    """Immutable audit log entry."""
    entry_id: str
    event_type: AuditEventType
    timestamp: Timestamp
    action: str
    entity_id: Optional[str] = None
    metadata: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
