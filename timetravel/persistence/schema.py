"""
Import Schema

Pydantic models validating one exported event record.

Accepted spellings:
- kind | type
- priorState | previousState
- targetState | nextState (required, may be null)
- categories by value or by the browser tool's names (url, localStorage, ...)
- timestamps as ISO-8601 strings or epoch milliseconds
"""

from __future__ import annotations
from datetime import datetime
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from ..contracts.base import EventCategory, Timestamp


class MetadataRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    component: Optional[str] = None
    duration: Optional[float] = None
    affected_keys: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("affectedKeys", "affected_keys")
    )


class EventRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(min_length=1)
    kind: str = Field(validation_alias=AliasChoices("kind", "type"))
    timestamp: datetime
    category: EventCategory
    payload: Any = None
    prior_state: Any = Field(
        default=None,
        validation_alias=AliasChoices("priorState", "previousState")
    )
    target_state: Any = Field(validation_alias=AliasChoices("targetState", "nextState"))
    metadata: Optional[MetadataRecord] = None

    @field_validator("category", mode="before")
    @classmethod
    def _parse_category(cls, value: Any) -> EventCategory:
        return EventCategory.parse(value)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> datetime:
        if isinstance(value, bool):
            raise ValueError("timestamp must be an ISO string or epoch milliseconds")
        if isinstance(value, (int, float)):
            return Timestamp.from_epoch_ms(value).value
        if isinstance(value, str):
            return Timestamp.from_iso(value).value
        if isinstance(value, datetime):
            return Timestamp(value).value
        raise ValueError("timestamp must be an ISO string or epoch milliseconds")


TIMELINE_DOCUMENT = TypeAdapter(List[EventRecord])
