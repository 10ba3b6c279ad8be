"""
Navigator
=========

Stepping and jumping over the event log.

INVARIANTS:
- Navigation only moves the cursor; it never appends or truncates
- Every cursor move is followed by one restore of the event now at the
  cursor (or of pre-history when the cursor is -1)
- A failed restore does not roll back the cursor move
"""

from __future__ import annotations
from typing import Callable, List, Optional

from ..contracts.base import RestoreFailed
from ..contracts.events import NavigationResult, RestoreOutcome, TimelineEvent
from ..observability import get_logger
from .event_log import EventLog, PRE_HISTORY


logger = get_logger(__name__)

NavigationListener = Callable[[NavigationResult], None]


class Navigator:
    """
    Cursor navigation with restoration.

    The restorer is any object with restore(event) -> RestoreOutcome,
    where event is None for pre-history. It may raise RestoreFailed.
    """

    def __init__(self, log: EventLog, restorer):
        self._log = log
        self._restorer = restorer
        self._listeners: List[NavigationListener] = []

    def subscribe(self, listener: NavigationListener) -> Callable[[], None]:
        """Register a callback for every completed cursor move."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def cursor(self) -> int:
        return self._log.cursor

    def at_tip(self) -> bool:
        return self._log.cursor >= self._log.tip_index()

    def step_backward(self) -> NavigationResult:
        """Move one event back. No-op at pre-history."""
        with self._log.lock:
            cursor = self._log.cursor
            if cursor <= PRE_HISTORY:
                return NavigationResult(moved=False, cursor=cursor)
            return self._move_to(cursor - 1)

    def step_forward(self) -> NavigationResult:
        """Move one event forward. No-op at the tip."""
        with self._log.lock:
            cursor = self._log.cursor
            if cursor >= self._log.tip_index():
                return NavigationResult(moved=False, cursor=cursor)
            return self._move_to(cursor + 1)

    def jump_to(self, index: int) -> NavigationResult:
        """Set the cursor to index in [-1, tip]; raises OutOfRange otherwise."""
        with self._log.lock:
            return self._move_to(index)

    def go_live(self) -> NavigationResult:
        """Jump to the tip."""
        with self._log.lock:
            return self._move_to(self._log.tip_index())

    def _move_to(self, index: int) -> NavigationResult:
        previous = self._log.move_cursor(index)
        target: Optional[TimelineEvent] = None
        if index != PRE_HISTORY:
            target = self._log.at(index)

        logger.debug("Cursor %d -> %d", previous, index)
        result = NavigationResult(
            moved=True,
            cursor=index,
            outcome=self._restore(target)
        )

        for listener in list(self._listeners):
            listener(result)
        return result

    def _restore(self, event: Optional[TimelineEvent]) -> RestoreOutcome:
        try:
            return self._restorer.restore(event)
        except RestoreFailed as exc:
            logger.warning("%s (event %s)", exc, event.event_id if event else "-")
            return RestoreOutcome.failed(event, exc.error)
