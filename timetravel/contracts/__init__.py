"""
Contracts Module

Explicit data types shared by every layer of the timeline recorder.
No layer may import implementation details from another layer; they
exchange only the types defined here.

DESIGN PRINCIPLES:
==================
1. All contract types are immutable (frozen dataclasses)
2. All failures are enumerated in ErrorCode
3. All timestamps use UTC and are never mutated
"""

from .base import (
    ErrorCode, Error, TimelineError, OutOfRange, MalformedImport,
    RestoreFailed, NavigationError, Timestamp, EventCategory,
    Location, CacheEntrySummary,
)
from .events import (
    EventMetadata, TimelineEvent, RestoreOutcome, NavigationResult,
    AuditEventType, AuditLogEntry, freeze, thaw,
)

__all__ = [
    'ErrorCode',
    'Error',
    'TimelineError',
    'OutOfRange',
    'MalformedImport',
    'RestoreFailed',
    'NavigationError',
    'Timestamp',
    'EventCategory',
    'Location',
    'CacheEntrySummary',
    'EventMetadata',
    'TimelineEvent',
    'RestoreOutcome',
    'NavigationResult',
    'AuditEventType',
    'AuditLogEntry',
    'freeze',
    'thaw',
]
