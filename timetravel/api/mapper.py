"""
API Mapper
==========

Transforms timeline contracts into JSON-ready DTOs for the UI.
Events keep their true log index so the UI can jump straight to them.
"""
from typing import Any, Dict, List, Optional

from ..contracts.events import NavigationResult, RestoreOutcome, TimelineEvent, thaw
from ..diffing import StateDiff
from ..persistence import TimelineCodec
from ..query import FilteredEvent


def map_event_to_dto(index: int, event: TimelineEvent, cursor: int) -> Dict[str, Any]:
    """Map one event to its list-row DTO."""
    dto = TimelineCodec.encode_event(event)
    dto["index"] = index
    dto["isCurrent"] = index == cursor
    return dto


def map_events_to_dto(events: List[FilteredEvent], cursor: int) -> List[Dict[str, Any]]:
    return [map_event_to_dto(item.index, item.event, cursor) for item in events]


def map_event_detail(index: int, event: TimelineEvent, cursor: int) -> Dict[str, Any]:
    """List-row DTO plus the prior/target diff for the detail pane."""
    dto = map_event_to_dto(index, event, cursor)
    dto["diff"] = StateDiff.between(thaw(event.prior_state), thaw(event.target_state)).to_dict()
    return dto


def map_outcome(outcome: Optional[RestoreOutcome]) -> Optional[Dict[str, Any]]:
    if outcome is None:
        return None
    return {
        "success": outcome.success,
        "category": outcome.category.value if outcome.category else None,
        "eventId": outcome.event_id,
        "applied": outcome.applied,
        "error": outcome.error.to_dict() if outcome.error else None,
    }


def map_navigation(result: NavigationResult) -> Dict[str, Any]:
    return {
        "moved": result.moved,
        "cursor": result.cursor,
        "outcome": map_outcome(result.outcome),
        "warning": result.outcome.error.message if result.has_warning else None,
    }
