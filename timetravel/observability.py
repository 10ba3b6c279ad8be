"""
Observability & Audit

RESPONSIBILITY: Logging and the audit trail of timeline operations
OUTPUTS: stdlib loggers, AuditLogEntry records

WHAT THIS LAYER MUST NOT DO:
============================
- Modify the event log or cursor
- Filter or interpret events (only record them)
- Block other layer operations

Usage:
    from timetravel.observability import get_logger
    logger = get_logger(__name__)
"""

from __future__ import annotations
from collections import deque
from typing import Deque, Dict, List, Optional
import hashlib
import itertools
import logging
import os

from .contracts.base import Timestamp, Error
from .contracts.events import AuditLogEntry, AuditEventType


DEFAULT_LEVEL = os.getenv("TTD_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
PACKAGE_LOGGER = "timetravel"


def setup_logging(level: str = DEFAULT_LEVEL) -> None:
    """
    Install the root handler once and set the package level.

    The package level is applied on every call, including after the root
    handler already exists.
    """
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=numeric, format=LOG_FORMAT)
    logging.getLogger(PACKAGE_LOGGER).setLevel(numeric)


def get_logger(name: str) -> logging.Logger:
    if not logging.getLogger().handlers:
        setup_logging()
    return logging.getLogger(name)


# =============================================================================
# AUDIT TRAIL
# =============================================================================

class AuditTrail:
    """
    Append-only collector of audit entries.

    Receives a record of every log mutation, cursor move, persistence
    operation and restore failure. Entries are never modified; with
    max_entries set, the oldest entries are dropped first.
    """

    def __init__(self, max_entries: Optional[int] = None):
        if max_entries is not None and max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self._entries: Deque[AuditLogEntry] = deque(maxlen=max_entries)
        self._counter = itertools.count(1)
        self._max_entries = max_entries

    def record(
        self,
        event_type: AuditEventType,
        action: str,
        entity_id: Optional[str] = None,
        **metadata: object
    ) -> AuditLogEntry:
        """Append an entry and return it."""
        sequence = next(self._counter)
        digest = hashlib.sha256(
            f"{sequence}|{action}|{entity_id}".encode()
        ).hexdigest()[:12]

        entry = AuditLogEntry(
            entry_id=f"audit_{sequence}_{digest}",
            event_type=event_type,
            timestamp=Timestamp.now(),
            action=action,
            entity_id=entity_id,
            metadata=tuple((k, str(v)) for k, v in sorted(metadata.items()))
        )
        self._entries.append(entry)
        return entry

    def record_error(self, error: Error, entity_id: Optional[str] = None) -> AuditLogEntry:
        return self.record(
            AuditEventType.ERROR,
            error.code.name.lower(),
            entity_id=entity_id,
            message=error.message,
            **dict(error.context)
        )

    def get_entries(
        self,
        event_type: Optional[AuditEventType] = None,
        action: Optional[str] = None
    ) -> List[AuditLogEntry]:
        """Get entries, optionally filtered."""
        entries = self._entries
        if event_type:
            entries = [e for e in entries if e.event_type == event_type]
        if action:
            entries = [e for e in entries if e.action == action]
        return list(entries)

    def counts_by_action(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for entry in self._entries:
            counts[entry.action] = counts.get(entry.action, 0) + 1
        return counts

    @property
    def entry_count(self) -> int:
        return len(self._entries)

    @property
    def max_entries(self) -> Optional[int]:
        return self._max_entries
