"""
Observers

One observer per external surface. Each turns a detected change into
at most one TimelineEvent and hands it to the log's append path.
"""

from .base import Observer, EventSink
from .route import RouteObserver, NAVIGATE
from .storage import StorageObserver, STORAGE_CHANGE
from .cache import RemoteCacheObserver, CACHE_UPDATE
from .interception import InterceptionObserver

__all__ = [
    'Observer',
    'EventSink',
    'RouteObserver',
    'StorageObserver',
    'RemoteCacheObserver',
    'InterceptionObserver',
    'NAVIGATE',
    'STORAGE_CHANGE',
    'CACHE_UPDATE',
]
