"""
Base Contracts and Shared Types

These are the foundational types used across all layers of the
timeline recorder. All types here are IMMUTABLE and represent pure data.

BOUNDARY ENFORCEMENT:
=====================
- This module is READ-ONLY from all layers
- Layers may import types but MUST NOT modify this module
- All types are frozen dataclasses for immutability guarantee
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Tuple
from enum import Enum, auto


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Explicit error codes for the timeline core.
    Every failure the core can report is enumerated here.
    """
    # Generic (base of the exception taxonomy)
    TIMELINE_ERROR = auto()

    # Navigation errors
    OUT_OF_RANGE = auto()

    # Persistence errors
    MALFORMED_IMPORT = auto()

    # Restoration errors
    RESTORE_FAILED = auto()
    NAVIGATION_REJECTED = auto()


@dataclass(frozen=True)
class Error:
    """
    Immutable error representation with full context.
    Errors are data - they can be stored, listed and shown to an operator.
    """
    code: ErrorCode
    message: str
    timestamp: datetime
    context: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    @staticmethod
    def create(code: ErrorCode, message: str, **context: object) -> Error:
        return Error(
            code=code,
            message=message,
            timestamp=datetime.now(timezone.utc),
            context=tuple((key, str(value)) for key, value in context.items())
        )

    def with_context(self, key: str, value: str) -> Error:
        """Return new Error with additional context (immutable)."""
        return Error(
            code=self.code,
            message=self.message,
            timestamp=self.timestamp,
            context=self.context + ((key, value),)
        )

    def to_dict(self) -> dict:
        return {
            'code': self.code.name,
            'message': self.message,
            'timestamp': self.timestamp.isoformat(),
            'context': dict(self.context),
        }


class TimelineError(Exception):
    """Base exception; carries the structured Error record."""

    code: ErrorCode = ErrorCode.TIMELINE_ERROR

    def __init__(self, message: str, **context: object):
        super().__init__(message)
        self.error = Error.create(self.code, message, **context)


class OutOfRange(TimelineError):
    """Index request outside the valid bounds of the log."""

    code = ErrorCode.OUT_OF_RANGE

    def __init__(self, index: int, lower: int, upper: int):
        super().__init__(
            f"Index {index} outside [{lower}, {upper}]",
            index=index, lower=lower, upper=upper
        )
        self.index = index
        self.lower = lower
        self.upper = upper


class MalformedImport(TimelineError):
    """Import document could not be parsed or failed schema validation."""

    code = ErrorCode.MALFORMED_IMPORT


class RestoreFailed(TimelineError):
    """A surface rejected the write needed to rehydrate an event."""

    code = ErrorCode.RESTORE_FAILED

    def __init__(self, category: EventCategory, cause: BaseException):
        super().__init__(
            f"Could not restore {category.value} state: {cause}",
            category=category.value, cause=type(cause).__name__
        )
        self.category = category
        self.cause = cause


class NavigationError(Exception):
    """Raised by a navigation surface when a location cannot be entered."""
    pass


# =============================================================================
# TEMPORAL TYPES (Immutable, explicit semantics)
# =============================================================================

@dataclass(frozen=True)
class Timestamp:
    """
    Immutable timestamp with explicit semantics.
    All timestamps are UTC, never local time.
    """
    value: datetime

    def __post_init__(self):
        # Ensure UTC timezone
        if self.value.tzinfo is None:
            object.__setattr__(self, 'value', self.value.replace(tzinfo=timezone.utc))

    @staticmethod
    def now() -> Timestamp:
        return Timestamp(value=datetime.now(timezone.utc))

    @staticmethod
    def from_iso(iso_string: str) -> Timestamp:
        dt = datetime.fromisoformat(iso_string.replace('Z', '+00:00'))
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return Timestamp(value=dt)

    @staticmethod
    def from_epoch_ms(epoch_ms: float) -> Timestamp:
        return Timestamp(value=datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc))

    def to_iso(self) -> str:
        return self.value.isoformat()

    def to_epoch_ms(self) -> int:
        return int(self.value.timestamp() * 1000)


# =============================================================================
# CATEGORIES (Closed set, selects the restorer)
# =============================================================================

class EventCategory(Enum):
    """
    Closed set of event categories.
    The category decides which restorer handles an event.
    """
    ROUTE = "route"
    STORAGE = "storage"
    REMOTE_CACHE = "remote-cache"
    APPLICATION_STATE = "application-state"
    CUSTOM = "custom"

    @staticmethod
    def parse(raw: str) -> EventCategory:
        """
        Resolve a category name, including the names written by the
        browser tool ('url', 'localStorage', 'query', 'state', 'context').
        """
        if isinstance(raw, EventCategory):
            return raw
        if not isinstance(raw, str):
            raise ValueError(f"category must be a string, got {type(raw).__name__}")
        resolved = CATEGORY_ALIASES.get(raw)
        if resolved is None:
            try:
                resolved = EventCategory(raw)
            except ValueError:
                raise ValueError(f"Unknown category: {raw!r}") from None
        return resolved


CATEGORY_ALIASES = {
    'url': EventCategory.ROUTE,
    'localStorage': EventCategory.STORAGE,
    'query': EventCategory.REMOTE_CACHE,
    'state': EventCategory.APPLICATION_STATE,
    'context': EventCategory.CUSTOM,
}


# =============================================================================
# SURFACE VALUE TYPES
# =============================================================================

@dataclass(frozen=True)
class Location:
    """Externally visible navigation location."""
    pathname: str
    search: str = ""
    hash: str = ""

    @property
    def href(self) -> str:
        return f"{self.pathname}{self.search}{self.hash}"

    @staticmethod
    def parse(href: str) -> Location:
        rest, _, fragment = href.partition('#')
        pathname, _, query = rest.partition('?')
        return Location(
            pathname=pathname,
            search=f"?{query}" if query else "",
            hash=f"#{fragment}" if fragment else ""
        )


@dataclass(frozen=True)
class CacheEntrySummary:
    """Summary of one remote-cache entry: key, status, last update time."""
    key: str
    status: str
    last_updated: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            'key': self.key,
            'status': self.status,
            'lastUpdated': self.last_updated,
        }
