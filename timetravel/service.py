"""
Timeline Service
================

Explicitly constructed owner of one debugging session. Replaces ambient
module-level state: observers and UI collaborators receive the service
instance and talk to nothing else.

LIFECYCLE:
    service = TimelineService.create(config, navigation=..., storage=..., cache=...)
    ...
    service.dispose()

FLOW:
    observers -> append (branch truncation) -> cursor at tip
    navigator -> cursor move -> restorer -> surface
    scheduler -> navigator.step_forward
    codec <-> log          query -> read-only projections

While a restore writes into a surface, observer output is discarded and
every observer re-baselines afterwards, so time travel is never recorded
as a new event.
"""

from __future__ import annotations
from pathlib import Path
from typing import Any, List, Optional, Union
import asyncio
import time

from .config import TimelineConfig
from .contracts.base import EventCategory, Error
from .contracts.events import (
    AuditEventType, EventMetadata, NavigationResult, RestoreOutcome, TimelineEvent
)
from .observability import AuditTrail, get_logger, setup_logging
from .observers import (
    Observer, RouteObserver, StorageObserver, RemoteCacheObserver, InterceptionObserver
)
from .persistence import TimelineCodec
from .persistence.codec import ImportSource
from .query import TimelineQuery, FilteredEvent, TimelineSummary
from .restoration import Restorer, RestoreHandler
from .surfaces import NavigationSurface, KeyValueSurface, CacheSurface, InterceptionSeam
from .temporal import (
    AppendResult, AutoplayScheduler, AutoplayState, EventLog, LogicalClock,
    Navigator, ReadOnlyEventLog
)


logger = get_logger(__name__)


class _SuppressingRestorer:
    """Runs the restorer with observer output muted, then re-baselines observers."""

    def __init__(self, service: 'TimelineService', restorer: Restorer):
        self._service = service
        self._restorer = restorer

    def restore(self, event: Optional[TimelineEvent]) -> RestoreOutcome:
        self._service._restoring = True
        try:
            return self._restorer.restore(event)
        finally:
            self._service._restoring = False
            for observer in self._service._observers:
                try:
                    observer.resync()
                except Exception as exc:
                    logger.warning("Could not re-baseline %s observer: %r", observer.category.value, exc)


class TimelineService:
    """
    One recording/replay session.

    Exposes the UI-facing operations: log and cursor access, the four
    navigator operations, autoplay control, export/import, clear and filter.
    """

    def __init__(
        self,
        config: Optional[TimelineConfig] = None,
        navigation: Optional[NavigationSurface] = None,
        storage: Optional[KeyValueSurface] = None,
        cache: Optional[CacheSurface] = None,
        clock: Optional[LogicalClock] = None
    ):
        self._config = config or TimelineConfig()
        self._clock = clock or LogicalClock.live()
        self._log = EventLog()
        self._audit = AuditTrail(max_entries=self._config.audit_max_entries)
        self._warnings: List[Error] = []
        self._restoring = False
        self._started = False
        self._disposed = False

        self._restorer = Restorer(navigation=navigation, storage=storage, cache=cache)
        self._navigator = Navigator(self._log, _SuppressingRestorer(self, self._restorer))
        self._scheduler = AutoplayScheduler(self._navigator, self._config.default_speed)
        self._codec = TimelineCodec()
        self._query = TimelineQuery(self._log)

        self._observers: List[Observer] = []
        if navigation is not None:
            self._observers.append(RouteObserver(
                navigation, self.append, self._clock, self._config.route_poll_interval_ms
            ))
        if storage is not None:
            self._observers.append(StorageObserver(
                storage, self.append, self._clock, self._config.storage_poll_interval_ms
            ))
        if cache is not None:
            self._observers.append(RemoteCacheObserver(
                cache, self.append, self._clock, self._config.cache_poll_interval_ms
            ))

        self._navigator.subscribe(self._on_navigation)
        self._scheduler.subscribe(self._on_autoplay)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @classmethod
    def create(cls, config: Optional[TimelineConfig] = None, **surfaces: Any) -> 'TimelineService':
        """Construct and start a service."""
        config = config or TimelineConfig()
        setup_logging(config.log_level)
        service = cls(config, **surfaces)
        service.start()
        return service

    def start(self) -> None:
        """Take observer baselines and hook up change notifications."""
        self._ensure_alive()
        if self._started:
            return
        for observer in self._observers:
            observer.attach()
        self._started = True
        self._audit.record(AuditEventType.SYSTEM, "start", observers=len(self._observers))
        logger.info("Timeline session started with %d observers", len(self._observers))

    def dispose(self) -> None:
        """Stop playback, detach observers. The service is unusable afterwards."""
        if self._disposed:
            return
        self._scheduler.stop()
        for observer in self._observers:
            observer.detach()
        self._disposed = True
        self._audit.record(AuditEventType.SYSTEM, "dispose", events=len(self._log))
        logger.info("Timeline session disposed (%d events)", len(self._log))

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def __enter__(self) -> 'TimelineService':
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    # =========================================================================
    # RECORDING
    # =========================================================================

    def append(self, event: TimelineEvent) -> Optional[AppendResult]:
        """
        Single append path for all observers and manual records.

        Returns None when the event was discarded because a restore was
        in progress.
        """
        self._ensure_alive()
        if self._restoring:
            logger.debug("Discarding %s emitted during restore", event.kind)
            return None

        result = self._log.append(event)
        if result.truncated:
            self._audit.record(
                AuditEventType.LOG_MUTATION, "truncate",
                entity_id=event.event_id, discarded=result.truncated
            )
        self._audit.record(
            AuditEventType.LOG_MUTATION, "append",
            entity_id=event.event_id, index=result.index, category=event.category.value
        )
        logger.debug("Appended %s at %d", event.kind, result.index)
        return result

    def record(
        self,
        kind: str,
        category: EventCategory = EventCategory.APPLICATION_STATE,
        target_state: Any = None,
        payload: Any = None,
        prior_state: Any = None,
        metadata: Optional[EventMetadata] = None
    ) -> TimelineEvent:
        """Append a synthesized event (application state, custom marks)."""
        event = TimelineEvent.create(
            kind=kind,
            category=EventCategory.parse(category),
            target_state=target_state,
            timestamp=self._clock.now(),
            payload=payload,
            prior_state=prior_state,
            metadata=metadata
        )
        self.append(event)
        return event

    def add_observer(self, observer: Observer) -> Observer:
        self._ensure_alive()
        self._observers.append(observer)
        if self._started:
            observer.attach()
        return observer

    def intercept(self, seam: InterceptionSeam, component: Optional[str] = None) -> InterceptionObserver:
        """Record every call made through seam as a custom event."""
        return self.add_observer(InterceptionObserver(seam, self.append, self._clock, component))

    def register_restorer(self, category: EventCategory, handler: RestoreHandler) -> None:
        self._restorer.register(category, handler)

    @property
    def observers(self) -> List[Observer]:
        return list(self._observers)

    # =========================================================================
    # READ ACCESS
    # =========================================================================

    def get_log(self) -> ReadOnlyEventLog:
        return ReadOnlyEventLog(self._log)

    def get_cursor(self) -> int:
        return self._log.cursor

    def filter(
        self,
        category: Optional[Union[EventCategory, str]] = None,
        text: Optional[str] = None
    ) -> List[FilteredEvent]:
        return list(self._query.filter(category=category, text=text))

    def summary(self) -> TimelineSummary:
        return self._query.summary()

    def get_warnings(self) -> List[Error]:
        """Restore failures surfaced to the operator, oldest first."""
        return list(self._warnings)

    @property
    def audit(self) -> AuditTrail:
        return self._audit

    @property
    def config(self) -> TimelineConfig:
        return self._config

    # =========================================================================
    # NAVIGATION
    # =========================================================================

    def step_backward(self) -> NavigationResult:
        self._ensure_alive()
        return self._navigator.step_backward()

    def step_forward(self) -> NavigationResult:
        self._ensure_alive()
        return self._navigator.step_forward()

    def jump_to(self, index: int) -> NavigationResult:
        self._ensure_alive()
        return self._navigator.jump_to(index)

    def go_live(self) -> NavigationResult:
        self._ensure_alive()
        return self._navigator.go_live()

    # =========================================================================
    # AUTOPLAY
    # =========================================================================

    def start_autoplay(self) -> AutoplayState:
        self._ensure_alive()
        self._scheduler.start()
        return self._scheduler.autoplay_state

    def stop_autoplay(self) -> AutoplayState:
        self._scheduler.stop()
        return self._scheduler.autoplay_state

    def set_speed(self, speed: float) -> AutoplayState:
        self._scheduler.set_speed(speed)
        return self._scheduler.autoplay_state

    @property
    def autoplay_state(self) -> AutoplayState:
        return self._scheduler.autoplay_state

    @property
    def scheduler(self) -> AutoplayScheduler:
        return self._scheduler

    # =========================================================================
    # PERSISTENCE / RESET
    # =========================================================================

    def export(self) -> List[dict]:
        data = self._codec.export(self._log)
        self._audit.record(AuditEventType.PERSISTENCE, "export", events=len(data))
        return data

    def export_json(self) -> str:
        return self._codec.dumps(self._log)

    def import_timeline(self, data: ImportSource) -> int:
        """Replace the log with data; MalformedImport leaves the log untouched."""
        self._ensure_alive()
        count = self._codec.import_into(self._log, data)
        self._audit.record(AuditEventType.PERSISTENCE, "import", events=count)
        return count

    def export_to_file(self, directory: Optional[Union[str, Path]] = None) -> Path:
        path = self._codec.export_to_file(self._log, directory or self._config.export_dir)
        self._audit.record(AuditEventType.PERSISTENCE, "export", path=path, events=len(self._log))
        return path

    def import_from_file(self, path: Union[str, Path]) -> int:
        self._ensure_alive()
        count = self._codec.import_from_file(self._log, path)
        self._audit.record(AuditEventType.PERSISTENCE, "import", path=path, events=count)
        return count

    def clear(self) -> None:
        self._ensure_alive()
        self._scheduler.stop()
        discarded = len(self._log)
        self._log.clear()
        self._warnings.clear()
        self._audit.record(AuditEventType.LOG_MUTATION, "clear", discarded=discarded)
        logger.info("Timeline cleared (%d events discarded)", discarded)

    # =========================================================================
    # HOST LOOP
    # =========================================================================

    def advance(self, elapsed_ms: float) -> None:
        """Drive observers and autoplay by elapsed_ms of host time."""
        self._ensure_alive()
        for observer in self._observers:
            observer.advance(elapsed_ms)
        self._scheduler.advance(elapsed_ms)

    async def run(self, stop: Optional[asyncio.Event] = None) -> None:
        """asyncio host loop; returns when stop is set or the service is disposed."""
        interval = self._config.host_tick_ms / 1000
        last = time.monotonic()
        while not self._disposed and not (stop is not None and stop.is_set()):
            await asyncio.sleep(interval)
            now = time.monotonic()
            if self._disposed:
                break
            self.advance((now - last) * 1000)
            last = now

    # =========================================================================
    # INTERNAL
    # =========================================================================

    def _on_navigation(self, result: NavigationResult) -> None:
        self._audit.record(
            AuditEventType.NAVIGATION, "navigate",
            entity_id=result.outcome.event_id if result.outcome else None,
            cursor=result.cursor
        )
        if result.has_warning:
            error = result.outcome.error
            self._warnings.append(error)
            self._audit.record_error(error, entity_id=result.outcome.event_id)

    def _on_autoplay(self, state: AutoplayState) -> None:
        action = "autoplay_start" if state.is_playing else "autoplay_stop"
        self._audit.record(
            AuditEventType.PLAYBACK, action,
            speed=state.speed_multiplier, cursor=self._log.cursor
        )

    def _ensure_alive(self) -> None:
        if self._disposed:
            raise RuntimeError("TimelineService has been disposed")
