"""
Time-Travel Timeline Recorder

Records state transitions observed in a running application as an
ordered event log and lets an operator scrub through that history,
optionally pushing past state back into the live application.

LAYER STRUCTURE:
================

1. CONTRACTS (contracts/)
   - Immutable events, results and the error taxonomy

2. OBSERVERS (observers/)
   - Responsibility: detect change in one surface, emit at most one event
   - MUST NOT: touch the cursor

3. TEMPORAL (temporal/)
   - Event log with cursor and branch truncation
   - Navigator (cursor moves + restore) and autoplay scheduler

4. RESTORATION (restoration.py)
   - Category-specific writes back into the surfaces

5. PERSISTENCE (persistence/)
   - Manual export/import of the event sequence

6. QUERY (query.py)
   - Read-only filter and summary projections

7. OBSERVABILITY (observability.py)
   - Logging and the audit trail

The TimelineService (service.py) wires one session together; the api
package exposes it over HTTP.
"""

from .config import TimelineConfig
from .contracts import (
    EventCategory, TimelineEvent, EventMetadata, Location, CacheEntrySummary,
    OutOfRange, MalformedImport, RestoreFailed, NavigationError,
)
from .service import TimelineService

__all__ = [
    'TimelineConfig',
    'TimelineService',
    'EventCategory',
    'TimelineEvent',
    'EventMetadata',
    'Location',
    'CacheEntrySummary',
    'OutOfRange',
    'MalformedImport',
    'RestoreFailed',
    'NavigationError',
]

__version__ = "0.1.0"
