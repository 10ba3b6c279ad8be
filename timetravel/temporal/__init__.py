"""
Temporal Layer
==============

Event log, cursor navigation and autoplay.

INVARIANTS:
- Append order is the only history order
- Navigation moves the cursor; only append truncates
- Cursor is always in [-1, tip]

Modules:
- event_log: Ordered storage with cursor and branch truncation
- navigator: Step/jump API with restoration
- scheduler: Autoplay loop over the navigator
- clock: Non-decreasing event timestamps
"""

from .event_log import EventLog, ReadOnlyEventLog, LogState, AppendResult, PRE_HISTORY
from .navigator import Navigator
from .scheduler import AutoplayScheduler, AutoplayState, SchedulerState
from .clock import LogicalClock

__all__ = [
    'EventLog',
    'ReadOnlyEventLog',
    'LogState',
    'AppendResult',
    'PRE_HISTORY',
    'Navigator',
    'AutoplayScheduler',
    'AutoplayState',
    'SchedulerState',
    'LogicalClock',
]
