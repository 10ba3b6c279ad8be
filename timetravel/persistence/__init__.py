"""
Persistence

Manual export/import of the event sequence. Nothing is persisted
automatically; the operator downloads and uploads documents.
"""

from .codec import TimelineCodec, TimelineJSONEncoder
from .schema import EventRecord, MetadataRecord

__all__ = [
    'TimelineCodec',
    'TimelineJSONEncoder',
    'EventRecord',
    'MetadataRecord',
]
