"""
Navigator Tests
===============

INVARIANTS TESTED:
1. Navigation never appends or truncates
2. Every cursor move is followed by exactly one restore
3. A failed restore keeps the cursor move and surfaces a warning
"""

import pytest

from timetravel.contracts.base import ErrorCode, OutOfRange, RestoreFailed, EventCategory
from timetravel.temporal.event_log import EventLog, PRE_HISTORY
from timetravel.temporal.navigator import Navigator

from ..fixtures import RecordingRestorer, make_log


@pytest.fixture
def restorer():
    return RecordingRestorer()


@pytest.fixture
def log():
    return make_log(3)


@pytest.fixture
def navigator(log, restorer):
    return Navigator(log, restorer)


class TestStepping:

    def test_step_backward_restores_previous_event(self, navigator, log, restorer):
        result = navigator.step_backward()

        assert result.moved
        assert result.cursor == 1
        assert restorer.calls == [log.at(1)]

    def test_step_backward_to_pre_history(self, navigator, log, restorer):
        navigator.jump_to(0)
        result = navigator.step_backward()

        assert result.moved
        assert result.cursor == PRE_HISTORY
        assert restorer.calls[-1] is None
        assert result.outcome.is_pre_history

    def test_step_backward_at_pre_history_is_noop(self, navigator, restorer):
        navigator.jump_to(PRE_HISTORY)
        restorer.calls.clear()

        result = navigator.step_backward()

        assert not result.moved
        assert result.cursor == PRE_HISTORY
        assert restorer.calls == []

    def test_step_forward_at_tip_is_noop(self, navigator, restorer):
        result = navigator.step_forward()

        assert not result.moved
        assert result.outcome is None
        assert restorer.calls == []

    def test_step_forward_from_pre_history(self, navigator, log, restorer):
        navigator.jump_to(PRE_HISTORY)
        result = navigator.step_forward()

        assert result.cursor == 0
        assert restorer.calls[-1] is log.at(0)

    def test_navigation_never_changes_length(self, navigator, log):
        navigator.step_backward()
        navigator.step_backward()
        navigator.step_forward()
        navigator.jump_to(PRE_HISTORY)
        navigator.go_live()
        assert len(log) == 3


class TestJumping:

    @pytest.mark.parametrize("index", [-1, 0, 1, 2])
    def test_jump_to_valid_index(self, navigator, index):
        assert navigator.jump_to(index).cursor == index

    @pytest.mark.parametrize("index", [-2, 3])
    def test_jump_out_of_range(self, navigator, log, restorer, index):
        with pytest.raises(OutOfRange):
            navigator.jump_to(index)
        assert log.cursor == 2
        assert restorer.calls == []

    def test_go_live_jumps_to_tip(self, navigator, log, restorer):
        navigator.jump_to(0)
        result = navigator.go_live()

        assert result.cursor == 2
        assert navigator.at_tip()
        assert restorer.calls[-1] is log.at(2)

    def test_go_live_on_empty_log(self, restorer):
        navigator = Navigator(EventLog(), restorer)
        result = navigator.go_live()
        assert result.cursor == PRE_HISTORY
        assert result.outcome.is_pre_history


class TestRestoreFailure:

    def test_failed_restore_keeps_cursor_move(self, log):
        failing = RecordingRestorer(
            fail_on=RestoreFailed(EventCategory.ROUTE, ValueError("rejected"))
        )
        navigator = Navigator(log, failing)

        result = navigator.jump_to(0)

        assert result.moved
        assert result.cursor == 0
        assert log.cursor == 0
        assert result.has_warning
        assert result.outcome.error.code is ErrorCode.RESTORE_FAILED
        assert result.outcome.event_id == log.at(0).event_id

    def test_listeners_see_every_move(self, navigator):
        seen = []
        unsubscribe = navigator.subscribe(seen.append)

        navigator.step_backward()
        navigator.step_forward()
        navigator.step_forward()  # no-op at tip
        unsubscribe()
        navigator.jump_to(0)

        assert [r.cursor for r in seen] == [1, 2]


class TestRoundTrip:

    @pytest.mark.parametrize("start", [0, 1, 2])
    def test_back_then_forward_returns_to_start(self, log, restorer, start):
        navigator = Navigator(log, restorer)
        navigator.jump_to(start)
        restorer.calls.clear()

        navigator.step_backward()
        navigator.step_forward()

        assert log.cursor == start
        assert restorer.calls[-1] is log.at(start)
