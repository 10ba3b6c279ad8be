"""
Logical Clock for Event Timestamps
==================================

Injectable clock that stamps recorded events.

GUARANTEES:
- Timestamps handed out are monotonically non-decreasing, even if the
  wall clock steps backwards
- In MANUAL mode time only moves when advance() is called, so tests and
  replays are deterministic
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from ..contracts.base import Timestamp


@dataclass
class LogicalClock:
    """
    Injectable clock for event stamping.

    MODES:
    ======
    1. LIVE mode: Uses real system time, clamped to never go backwards
    2. MANUAL mode: Time starts at a fixed instant and moves via advance()
    """
    _is_live: bool = True
    _current: Optional[datetime] = None
    _last_issued: Optional[datetime] = None
    _tick_count: int = 0

    def now(self) -> Timestamp:
        """Get current logical time (non-decreasing)."""
        if self._is_live:
            current = datetime.now(timezone.utc)
        else:
            current = self._current

        if self._last_issued is not None and current < self._last_issued:
            current = self._last_issued

        self._last_issued = current
        self._tick_count += 1
        return Timestamp(value=current)

    def advance(self, milliseconds: float) -> None:
        """Move MANUAL time forward. No effect in LIVE mode."""
        if milliseconds < 0:
            raise ValueError("Clock cannot move backwards")
        if not self._is_live:
            self._current = self._current + timedelta(milliseconds=milliseconds)

    def tick_count(self) -> int:
        """Number of timestamps issued."""
        return self._tick_count

    def is_live(self) -> bool:
        return self._is_live

    @classmethod
    def live(cls) -> 'LogicalClock':
        """Create clock in LIVE mode (uses system time)."""
        return cls(_is_live=True)

    @classmethod
    def manual(cls, start: Optional[datetime] = None) -> 'LogicalClock':
        """Create clock in MANUAL mode starting at `start`."""
        start = start or datetime(2026, 1, 1, tzinfo=timezone.utc)
        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
        return cls(_is_live=False, _current=start)

    def __repr__(self) -> str:
        mode = "LIVE" if self._is_live else "MANUAL"
        return f"LogicalClock({mode}, ticks={self._tick_count})"
