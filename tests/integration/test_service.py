"""
Timeline Service Integration Tests

FLOWS UNDER TEST:
- observers -> append -> cursor at tip
- navigator -> restore -> surface, without recording the restore
- autoplay, persistence and clear through the service
- audit trail and operator warnings
"""

import asyncio

import pytest

from timetravel.config import TimelineConfig
from timetravel.contracts.base import EventCategory, ErrorCode, MalformedImport, OutOfRange
from timetravel.contracts.events import AuditEventType, RestoreOutcome
from timetravel.observers import NAVIGATE, STORAGE_CHANGE
from timetravel.service import TimelineService
from timetravel.surfaces import (
    InMemoryCacheSurface, InMemoryKeyValueSurface, InMemoryNavigationSurface, InterceptionSeam
)
from timetravel.temporal.clock import LogicalClock

from ..fixtures import EPOCH, exported_document


@pytest.fixture
def navigation():
    return InMemoryNavigationSurface("/", blocked=("/forbidden",))


@pytest.fixture
def storage():
    return InMemoryKeyValueSurface({"theme": "dark"})


@pytest.fixture
def cache():
    return InMemoryCacheSurface()


@pytest.fixture
def service(navigation, storage, cache):
    service = TimelineService(
        TimelineConfig(),
        navigation=navigation, storage=storage, cache=cache,
        clock=LogicalClock.manual(EPOCH)
    )
    service.start()
    yield service
    service.dispose()


class TestRecording:

    def test_route_changes_recorded_through_subscription(self, service, navigation):
        navigation.navigate("/products")
        navigation.navigate("/cart")

        log = service.get_log()
        assert [e.kind for e in log] == [NAVIGATE, NAVIGATE]
        assert service.get_cursor() == 1

    def test_storage_changes_recorded_on_poll(self, service, storage):
        storage.set("theme", "light")
        service.advance(999)
        assert len(service.get_log()) == 0

        service.advance(1)
        [event] = service.get_log().events()
        assert event.kind == STORAGE_CHANGE
        assert event.target_state == {"theme": "light"}

    def test_cache_changes_recorded_every_two_seconds(self, service, cache):
        cache.put("users", "loading")
        service.advance(1000)
        assert len(service.get_log()) == 0
        service.advance(1000)
        assert service.get_log().at(0).category is EventCategory.REMOTE_CACHE

    def test_manual_record(self, service):
        event = service.record("INCREMENT", target_state={"count": 1}, payload={"by": 1})
        assert service.get_log().at(0) is event
        assert event.category is EventCategory.APPLICATION_STATE

    def test_interception_seam(self, service):
        seam = InterceptionSeam(lambda path: {"ok": True}, name="fetch")
        service.intercept(seam, component="api")

        seam("/users")

        event = service.get_log().at(0)
        assert event.kind == "CALL fetch"
        assert event.metadata.component == "api"


class TestTimeTravel:

    @pytest.fixture
    def history(self, service, navigation, storage):
        navigation.navigate("/a")
        storage.set("theme", "light")
        service.advance(1000)
        navigation.navigate("/b")
        return service

    def test_restores_surfaces_while_scrubbing(self, history, navigation, storage):
        history.jump_to(0)
        assert navigation.get_current_location().href == "/a"

        history.step_forward()
        assert storage.get("theme") == "light"

        history.jump_to(2)
        assert navigation.get_current_location().href == "/b"

    def test_restores_are_not_recorded(self, history, navigation):
        history.jump_to(0)
        history.advance(5000)

        assert len(history.get_log()) == 3
        assert history.get_cursor() == 0

    def test_new_action_in_past_truncates(self, history, navigation):
        history.jump_to(0)
        navigation.navigate("/c")

        log = history.get_log()
        assert [e.target_state for e in log] == ["/a", "/c"]
        assert history.get_cursor() == 1

    def test_pre_history(self, history, navigation):
        result = history.jump_to(-1)
        assert result.outcome.is_pre_history
        assert navigation.get_current_location().href == "/b"

    def test_out_of_range_propagates(self, history):
        with pytest.raises(OutOfRange):
            history.jump_to(10)

    def test_failed_restore_becomes_warning(self, service, navigation):
        service.import_timeline([
            dict(exported_document(1)[0], targetState="/forbidden"),
        ])

        service.jump_to(-1)
        result = service.jump_to(0)

        assert result.moved
        assert service.get_cursor() == 0
        assert result.has_warning
        [warning] = service.get_warnings()
        assert warning.code is ErrorCode.RESTORE_FAILED
        assert service.audit.get_entries(AuditEventType.ERROR, "restore_failed")

    def test_registered_application_state_restorer(self, service):
        store = {}

        def apply_state(event):
            store.clear()
            store.update(event.target_state)
            return RestoreOutcome.applied_to(event)

        service.register_restorer(EventCategory.APPLICATION_STATE, apply_state)
        service.record("SET", target_state={"count": 1})
        service.record("SET", target_state={"count": 2})

        service.step_backward()
        assert store == {"count": 1}


class TestAutoplay:

    def test_plays_to_tip_and_stops(self, service, navigation):
        for path in ("/a", "/b", "/c"):
            navigation.navigate(path)
        service.jump_to(0)

        state = service.start_autoplay()
        assert state.is_playing

        service.advance(1000)
        service.advance(1000)
        assert navigation.get_current_location().href == "/c"
        service.advance(1000)
        assert not service.autoplay_state.is_playing
        assert service.audit.get_entries(action="autoplay_stop")

    def test_set_speed(self, service):
        assert service.set_speed(2).speed_multiplier == 2
        with pytest.raises(ValueError):
            service.set_speed(0)


class TestPersistence:

    def test_export_import(self, service, navigation):
        navigation.navigate("/a")
        navigation.navigate("/b")
        document = service.export()

        other = TimelineService(clock=LogicalClock.manual(EPOCH))
        assert other.import_timeline(document) == 2
        assert other.get_log().events() == service.get_log().events()
        assert other.get_cursor() == 1

    def test_malformed_import_keeps_log(self, service, navigation):
        navigation.navigate("/a")
        with pytest.raises(MalformedImport):
            service.import_timeline('[{"id": "x"}]')
        assert len(service.get_log()) == 1

    def test_file_export(self, service, navigation, tmp_path):
        navigation.navigate("/a")
        path = service.export_to_file(tmp_path)
        service.clear()

        assert service.import_from_file(path) == 1
        assert service.get_log().at(0).target_state == "/a"

    def test_clear(self, service, navigation):
        navigation.navigate("/a")
        service.start_autoplay()
        service.clear()

        assert len(service.get_log()) == 0
        assert service.get_cursor() == -1
        assert not service.autoplay_state.is_playing
        assert service.audit.get_entries(AuditEventType.LOG_MUTATION, "clear")


class TestQueries:

    def test_filter_and_summary(self, service, navigation, storage):
        navigation.navigate("/a")
        storage.set("theme", "light")
        service.advance(1000)

        assert [m.index for m in service.filter(category="storage")] == [1]
        summary = service.summary()
        assert summary.total_events == 2
        assert summary.is_live


class TestLifecycle:

    def test_create_and_context_manager(self):
        with TimelineService.create(navigation=InMemoryNavigationSurface()) as service:
            assert len(service.observers) == 1
        assert service.is_disposed

    def test_disposed_service_rejects_use(self, service):
        service.dispose()
        with pytest.raises(RuntimeError):
            service.record("X")
        with pytest.raises(RuntimeError):
            service.jump_to(0)

    def test_dispose_detaches_observers(self, service, navigation):
        service.dispose()
        navigation.navigate("/after")
        assert len(service.get_log()) == 0

    def test_audit_records_mutations(self, service, navigation):
        navigation.navigate("/a")
        service.jump_to(0)
        counts = service.audit.counts_by_action()
        assert counts["append"] == 1
        assert counts["navigate"] == 1
        assert counts["start"] == 1


class TestHostLoop:

    def test_run_until_stopped(self, service, storage):
        async def scenario():
            stop = asyncio.Event()
            task = asyncio.create_task(service.run(stop))
            storage.set("theme", "light")
            await asyncio.sleep(1.2)
            stop.set()
            await task

        asyncio.run(scenario())
        assert service.get_log().at(0).kind == STORAGE_CHANGE

    def test_surface_error_does_not_stop_the_loop(self, navigation, cache):
        storage = UnreliableStorage({"theme": "dark"})
        service = TimelineService(
            TimelineConfig(storage_poll_interval_ms=100, host_tick_ms=10),
            navigation=navigation, storage=storage, cache=cache,
            clock=LogicalClock.manual(EPOCH)
        )
        service.start()

        async def scenario():
            stop = asyncio.Event()
            task = asyncio.create_task(service.run(stop))
            storage.failures = 2
            await asyncio.sleep(0.3)
            storage.set("theme", "light")
            await asyncio.sleep(0.3)
            stop.set()
            await task

        asyncio.run(scenario())
        service.dispose()

        assert storage.failures == 0
        assert [e.kind for e in service.get_log()] == [STORAGE_CHANGE]

    def test_advance_survives_surface_error(self, navigation, cache):
        storage = UnreliableStorage({"theme": "dark"})
        service = TimelineService(
            navigation=navigation, storage=storage, cache=cache,
            clock=LogicalClock.manual(EPOCH)
        )
        service.start()

        storage.set("theme", "light")
        storage.failures = 1
        service.advance(1000)
        assert len(service.get_log()) == 0

        service.advance(1000)
        assert service.get_log().at(0).target_state == {"theme": "light"}


class UnreliableStorage(InMemoryKeyValueSurface):
    """Storage area whose enumerate() raises while failures remain."""

    def __init__(self, initial):
        super().__init__(initial)
        self.failures = 0

    def enumerate(self):
        if self.failures:
            self.failures -= 1
            raise OSError("storage briefly unavailable")
        return super().enumerate()


class TestRecordedHistoryIsImmutable:

    def test_reader_cannot_rewrite_history(self, service):
        service.record("SET", target_state={"x": 1, "items": [1, 2]})
        event = service.get_log().at(0)

        with pytest.raises(TypeError):
            event.target_state["x"] = 999
        with pytest.raises(AttributeError):
            event.target_state["items"].append(3)

        assert service.export()[0]["targetState"] == {"x": 1, "items": [1, 2]}

    def test_caller_state_is_isolated(self, service):
        state = {"cart": ["apple"]}
        service.record("ADD", target_state=state)
        state["cart"].append("pear")

        assert service.export()[0]["targetState"] == {"cart": ["apple"]}

    def test_restored_storage_matches_recording(self, service, storage):
        storage.set("theme", "light")
        service.advance(1000)
        storage.set("theme", "blue")
        service.advance(1000)

        service.jump_to(0)
        assert storage.get("theme") == "light"


class TestAuditCap:

    def test_audit_trail_bounded_by_config(self, navigation):
        service = TimelineService(
            TimelineConfig(audit_max_entries=5),
            navigation=navigation,
            clock=LogicalClock.manual(EPOCH)
        )
        service.start()
        for n in range(10):
            navigation.navigate(f"/page/{n}")

        assert service.audit.entry_count == 5
        assert service.audit.max_entries == 5
        assert all(e.action == "append" for e in service.audit.get_entries())

    def test_default_cap(self, service):
        assert service.audit.max_entries == TimelineConfig().audit_max_entries
