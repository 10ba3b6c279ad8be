"""
Timeline Codec
==============

Export and import of the event sequence.

FORMAT:
A JSON array of event objects, oldest first. No version field and no
cursor: importing always lands the cursor on the last event.

GUARANTEES:
- Import validates the whole document before touching the log; a
  malformed document raises MalformedImport and leaves the log as it was
- Import is destructive: the current sequence is replaced, never merged
- export -> import reproduces an identical event sequence
"""

from __future__ import annotations
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, List, Mapping, Optional, Union
import json

from pydantic import ValidationError

from ..contracts.base import MalformedImport, Timestamp
from ..contracts.events import EventMetadata, TimelineEvent, thaw
from ..temporal.event_log import EventLog
from ..observability import get_logger
from .schema import EventRecord, TIMELINE_DOCUMENT


logger = get_logger(__name__)

ImportSource = Union[str, bytes, List[Any]]


class TimelineJSONEncoder(json.JSONEncoder):
    """
    JSON encoder for recorded state.

    RULES:
    1. Dates are ISO 8601 strings.
    2. Enums use their .value.
    3. Sets become sorted lists (deterministic output).
    4. Dataclasses and read-only mappings become dicts.
    """

    def default(self, obj: Any) -> Any:
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, Timestamp):
            return obj.to_iso()
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, Decimal):
            return float(obj)
        if isinstance(obj, Mapping):
            return dict(obj)
        if isinstance(obj, (set, frozenset)):
            return sorted(obj, key=repr)
        if hasattr(obj, "to_dict"):
            return obj.to_dict()
        if is_dataclass(obj) and not isinstance(obj, type):
            return asdict(obj)
        return super().default(obj)


class TimelineCodec:
    """Serializes an EventLog and rehydrates one from a document."""

    @staticmethod
    def encode_event(event: TimelineEvent) -> dict:
        record = {
            'id': event.event_id,
            'kind': event.kind,
            'timestamp': event.timestamp.to_iso(),
            'category': event.category.value,
            'payload': thaw(event.payload),
            'priorState': thaw(event.prior_state),
            'targetState': thaw(event.target_state),
        }
        if not event.metadata.is_empty():
            record['metadata'] = event.metadata.to_dict()
        return record

    def export(self, log: EventLog) -> List[dict]:
        """Full event sequence as plain JSON data (cursor excluded)."""
        return json.loads(self.dumps(log, indent=None))

    def dumps(self, log: EventLog, indent: Optional[int] = 2) -> str:
        records = [self.encode_event(e) for e in log.events()]
        return json.dumps(records, cls=TimelineJSONEncoder, indent=indent)

    def decode(self, data: ImportSource) -> List[TimelineEvent]:
        """Parse and validate a document; raises MalformedImport."""
        if isinstance(data, (str, bytes)):
            try:
                data = json.loads(data)
            except (json.JSONDecodeError, UnicodeDecodeError) as exc:
                raise MalformedImport(f"Document is not valid JSON: {exc}") from exc

        if not isinstance(data, list):
            raise MalformedImport(
                f"Document must be a list of events, got {type(data).__name__}"
            )

        try:
            records = TIMELINE_DOCUMENT.validate_python(data)
        except ValidationError as exc:
            first = exc.errors()[0]
            location = ".".join(str(part) for part in first.get("loc", ()))
            raise MalformedImport(
                f"Invalid event at {location}: {first.get('msg')}",
                errors=exc.error_count()
            ) from exc

        seen = set()
        events = []
        for position, record in enumerate(records):
            if record.id in seen:
                raise MalformedImport(f"Duplicate event id {record.id!r} at {position}")
            seen.add(record.id)
            events.append(self._to_event(record))
        return events

    def import_into(self, log: EventLog, data: ImportSource) -> int:
        """Replace the log's sequence with the document's; returns event count."""
        events = self.decode(data)
        log.replace(events)
        logger.info("Imported %d events", len(events))
        return len(events)

    def export_to_file(self, log: EventLog, directory: Union[str, Path]) -> Path:
        """Write timeline-<epoch-ms>.json into directory."""
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"timeline-{Timestamp.now().to_epoch_ms()}.json"
        path.write_text(self.dumps(log), encoding="utf-8")
        logger.info("Exported %d events to %s", len(log), path)
        return path

    def import_from_file(self, log: EventLog, path: Union[str, Path]) -> int:
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise MalformedImport(f"Cannot read {path}: {exc}") from exc
        return self.import_into(log, text)

    @staticmethod
    def _to_event(record: EventRecord) -> TimelineEvent:
        metadata = EventMetadata()
        if record.metadata is not None:
            metadata = EventMetadata(
                component=record.metadata.component,
                duration_ms=record.metadata.duration,
                affected_keys=tuple(record.metadata.affected_keys)
            )
        return TimelineEvent.create(
            event_id=record.id,
            kind=record.kind,
            category=record.category,
            timestamp=Timestamp(record.timestamp),
            payload=record.payload,
            prior_state=record.prior_state,
            target_state=record.target_state,
            metadata=metadata
        )
