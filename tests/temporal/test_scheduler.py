"""
Autoplay Scheduler Tests
========================

STATE MACHINE UNDER TEST:
    STOPPED --start()--> PLAYING --stop() / tick at tip--> STOPPED
"""

import math

import pytest

from timetravel.temporal.navigator import Navigator
from timetravel.temporal.scheduler import AutoplayScheduler, SchedulerState, validate_speed

from ..fixtures import RecordingRestorer, make_log


@pytest.fixture
def log():
    return make_log(5)


@pytest.fixture
def scheduler(log):
    return AutoplayScheduler(Navigator(log, RecordingRestorer()))


class TestStateMachine:

    def test_starts_stopped(self, scheduler):
        assert scheduler.state is SchedulerState.STOPPED
        assert not scheduler.autoplay_state.is_playing

    def test_tick_at_tip_stops(self, scheduler, log):
        scheduler.start()
        result = scheduler.tick()

        assert result is None
        assert scheduler.state is SchedulerState.STOPPED
        assert log.cursor == 4

    def test_plays_to_tip_then_stops(self, scheduler, log):
        log.move_cursor(1)
        scheduler.start()

        scheduler.tick()
        scheduler.tick()
        assert log.cursor == 3
        scheduler.tick()
        assert log.cursor == 4
        assert scheduler.is_playing
        scheduler.tick()
        assert not scheduler.is_playing

    def test_stop_is_idempotent(self, scheduler):
        scheduler.stop()
        scheduler.start()
        scheduler.stop()
        scheduler.stop()
        assert scheduler.state is SchedulerState.STOPPED

    def test_start_is_idempotent(self, scheduler):
        transitions = []
        scheduler.subscribe(transitions.append)
        scheduler.start()
        scheduler.start()
        assert len(transitions) == 1

    def test_toggle(self, scheduler):
        scheduler.toggle()
        assert scheduler.is_playing
        scheduler.toggle()
        assert not scheduler.is_playing

    def test_tick_while_stopped_does_nothing(self, scheduler, log):
        log.move_cursor(0)
        assert scheduler.tick() is None
        assert log.cursor == 0
        assert scheduler.tick_count == 0

    def test_autoplay_never_mutates_log(self, scheduler, log):
        log.move_cursor(0)
        scheduler.start()
        scheduler.advance(10_000)
        assert len(log) == 5


class TestTiming:

    def test_interval_from_speed(self, scheduler):
        assert scheduler.interval_ms == 1000
        scheduler.set_speed(2)
        assert scheduler.interval_ms == 500
        scheduler.set_speed(0.5)
        assert scheduler.interval_ms == 2000

    def test_advance_fires_due_ticks(self, scheduler, log):
        log.move_cursor(0)
        scheduler.start()

        assert scheduler.advance(999) == 0
        assert log.cursor == 0
        assert scheduler.advance(1) == 1
        assert log.cursor == 1
        assert scheduler.advance(2000) == 2
        assert log.cursor == 3

    def test_speed_change_applies_to_next_tick(self, scheduler, log):
        log.move_cursor(0)
        scheduler.start()
        scheduler.advance(1000)
        scheduler.set_speed(5)

        scheduler.advance(200)
        assert log.cursor == 2
        assert scheduler.is_playing

    def test_advance_while_stopped(self, scheduler):
        assert scheduler.advance(5000) == 0

    def test_start_resets_partial_interval(self, scheduler, log):
        log.move_cursor(0)
        scheduler.start()
        scheduler.advance(900)
        scheduler.stop()
        scheduler.start()
        scheduler.advance(900)
        assert log.cursor == 0


class TestSpeedValidation:

    @pytest.mark.parametrize("speed", [0, -1, math.inf, math.nan, "fast", None])
    def test_invalid_speeds_rejected(self, speed):
        with pytest.raises(ValueError):
            validate_speed(speed)

    def test_invalid_speed_keeps_previous(self, scheduler):
        scheduler.set_speed(2)
        with pytest.raises(ValueError):
            scheduler.set_speed(0)
        assert scheduler.speed == 2
