"""
External Surfaces

The narrow interfaces the timeline core needs from the application it
observes, plus in-memory implementations used by tests, the demo server
and hosts that keep their state in plain Python objects.

SURFACES:
=========
- NavigationSurface: current location, go_to, optional change notification
- KeyValueSurface: enumerate, set, remove
- CacheSurface: read-only listing of cache entry summaries
- InterceptionSeam: single call-site wrapper observers register against,
  instead of patching a shared global function
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple
import time

from .contracts.base import Location, CacheEntrySummary, NavigationError


Unsubscribe = Callable[[], None]


# =============================================================================
# SURFACE INTERFACES (Dependency Inversion)
# =============================================================================

class NavigationSurface:
    """Router-like surface."""

    def get_current_location(self) -> Location:
        raise NotImplementedError

    def go_to(self, location: Location) -> None:
        """Enter location; raises NavigationError if it is rejected."""
        raise NotImplementedError

    def subscribe(self, listener: Callable[[Location], None]) -> Optional[Unsubscribe]:
        """
        Register for change notifications.

        Returns None when the surface cannot notify; observers then poll.
        """
        return None


class KeyValueSurface:
    """Storage-area-like surface of string keys and string values."""

    def enumerate(self) -> Dict[str, str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError


class CacheSurface:
    """Read-through remote-data cache. Read-only for the timeline core."""

    def list_entries(self) -> List[CacheEntrySummary]:
        raise NotImplementedError


# =============================================================================
# IN-MEMORY IMPLEMENTATIONS
# =============================================================================

class InMemoryNavigationSurface(NavigationSurface):
    """
    Navigation surface backed by a single current location.

    Paths must be absolute; anything listed in `blocked` is rejected.
    Listeners are notified synchronously on every actual change.
    """

    def __init__(self, initial: str = "/", blocked: Tuple[str, ...] = ()):
        self._current = Location.parse(initial)
        self._blocked = set(blocked)
        self._listeners: List[Callable[[Location], None]] = []

    def get_current_location(self) -> Location:
        return self._current

    def go_to(self, location: Location) -> None:
        if not location.pathname.startswith("/"):
            raise NavigationError(f"Not an absolute path: {location.pathname!r}")
        if location.pathname in self._blocked:
            raise NavigationError(f"Navigation to {location.pathname!r} is blocked")
        if location == self._current:
            return
        self._current = location
        for listener in list(self._listeners):
            listener(location)

    def navigate(self, href: str) -> None:
        """Application-side navigation."""
        self.go_to(Location.parse(href))

    def subscribe(self, listener: Callable[[Location], None]) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe


class InMemoryKeyValueSurface(KeyValueSurface):
    """Dict-backed storage area."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def enumerate(self) -> Dict[str, str]:
        return dict(self._data)

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"Storage values must be strings, got {type(value).__name__}")
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class InMemoryCacheSurface(CacheSurface):
    """Cache whose entries are set directly by the host."""

    def __init__(self):
        self._entries: Dict[str, CacheEntrySummary] = {}

    def list_entries(self) -> List[CacheEntrySummary]:
        return list(self._entries.values())

    def put(self, key: str, status: str, last_updated: Optional[int] = None) -> None:
        self._entries[key] = CacheEntrySummary(key=key, status=status, last_updated=last_updated)

    def evict(self, key: str) -> None:
        self._entries.pop(key, None)


# =============================================================================
# INTERCEPTION SEAM
# =============================================================================

@dataclass(frozen=True)
class CallRecord:
    """One intercepted call."""
    name: str
    args: Tuple[str, ...]
    kwargs: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
    duration_ms: float = 0.0
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class InterceptionSeam:
    """
    Wraps one callable. The host calls the seam instead of the target;
    every registered listener receives a CallRecord per call.

    The wrapped callable is never replaced, so several listeners can
    observe the same call site without racing each other.
    """

    def __init__(self, target: Callable[..., Any], name: Optional[str] = None):
        self._target = target
        self._name = name or getattr(target, "__name__", "call")
        self._listeners: List[Callable[[CallRecord], None]] = []

    @property
    def name(self) -> str:
        return self._name

    def register(self, listener: Callable[[CallRecord], None]) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        started = time.perf_counter()
        try:
            result = self._target(*args, **kwargs)
        except Exception as exc:
            self._emit(args, kwargs, started, error=f"{type(exc).__name__}: {exc}")
            raise
        self._emit(args, kwargs, started)
        return result

    def _emit(self, args, kwargs, started: float, error: Optional[str] = None) -> None:
        record = CallRecord(
            name=self._name,
            args=tuple(repr(a) for a in args),
            kwargs=tuple((k, repr(v)) for k, v in sorted(kwargs.items())),
            duration_ms=(time.perf_counter() - started) * 1000,
            error=error
        )
        for listener in list(self._listeners):
            listener(record)
