"""
Scheduler Tests
===============

Tests for debounce, delayed and periodic task handling.
"""

import pytest

from battmon.scheduler import Scheduler, TaskState


@pytest.fixture
def scheduler(manual_clock):
    return Scheduler(clock=manual_clock)


class TestCheck:
    """Tests for check() debounce semantics."""

    def test_not_ready_before_delay(self, scheduler, manual_clock):
        """A debounced task is not ready before its delay elapses."""
        scheduler.add("x", True, 10)
        manual_clock.advance(9.9)
        assert scheduler.check("x") is False

    def test_ready_after_delay(self, scheduler, manual_clock):
        """A debounced task is ready once its delay elapses."""
        scheduler.add("x", True, 10)
        manual_clock.advance(10)
        assert scheduler.check("x") is True

    def test_clear_resolves_false(self, scheduler, manual_clock):
        """clear() makes check() return False until the task is re-added."""
        scheduler.add("x", True, 10)
        manual_clock.advance(10)
        scheduler.clear("x")
        assert scheduler.check("x") is False

        manual_clock.advance(100)
        assert scheduler.check("x") is False

        scheduler.add("x", False, 5)
        manual_clock.advance(5)
        assert scheduler.check("x") is True

    def test_unknown_name_is_none(self, scheduler):
        """check() on an unknown task returns None."""
        assert scheduler.check("missing") is None

    def test_remove_then_check_is_none(self, scheduler):
        """remove() followed by check() returns None."""
        scheduler.add("x", True, 10)
        scheduler.remove("x")
        assert scheduler.check("x") is None

    def test_unknown_name_operations_are_noops(self, scheduler):
        """remove() and clear() on unknown names do not raise."""
        scheduler.remove("missing")
        scheduler.clear("missing")
        assert len(scheduler) == 0


class TestAdd:
    """Tests for add() replacement rules."""

    def test_debounce_keeps_existing_deadline(self, scheduler, manual_clock):
        """Re-adding with debounce does not restart the window."""
        scheduler.add("x", True, 10)
        manual_clock.advance(6)
        scheduler.add("x", True, 10)
        manual_clock.advance(4)
        assert scheduler.check("x") is True

    def test_without_debounce_restarts_deadline(self, scheduler, manual_clock):
        """Re-adding without debounce restarts the window."""
        scheduler.add("x", False, 10)
        manual_clock.advance(6)
        scheduler.add("x", False, 10)
        manual_clock.advance(4)
        assert scheduler.check("x") is False

    def test_debounce_replaces_cleared_task(self, scheduler, manual_clock):
        """A cleared task re-added with debounce starts a fresh window."""
        scheduler.add("x", True, 10)
        manual_clock.advance(10)
        scheduler.clear("x")

        scheduler.add("x", True, 10)
        assert scheduler.check("x") is False
        manual_clock.advance(15)
        assert scheduler.check("x") is True

    def test_debounce_replaces_elapsed_task(self, scheduler, manual_clock):
        """Once the deadline has passed, a debounced add restarts it."""
        scheduler.add("x", True, 10)
        manual_clock.advance(12)

        scheduler.add("x", True, 10)
        assert scheduler.check("x") is False
        manual_clock.advance(10)
        assert scheduler.check("x") is True

    def test_task_state_lifecycle(self, scheduler, manual_clock):
        """Task state goes PENDING -> READY -> EXPIRED."""
        task = scheduler.add("x", True, 2)
        assert task.state_at(manual_clock()) == TaskState.PENDING

        manual_clock.advance(2)
        assert task.state_at(manual_clock()) == TaskState.READY

        scheduler.clear("x")
        assert task.state_at(manual_clock()) == TaskState.EXPIRED


class TestTick:
    """Tests for tick() callback execution."""

    def test_one_shot_fires_once_and_is_removed(self, scheduler, manual_clock):
        """A one-shot task runs its callback once and disappears."""
        calls = []
        scheduler.add("beep", False, 1, calls.append, "a")

        assert scheduler.tick() == 0
        manual_clock.advance(1)
        assert scheduler.tick() == 1
        assert calls == ["a"]
        assert "beep" not in scheduler

    def test_periodic_rearms(self, scheduler, manual_clock):
        """A periodic task fires every delay_sec."""
        calls = []
        scheduler.add("icw", True, 10, calls.append, "icw.wav", periodic=True)

        manual_clock.advance(10)
        scheduler.tick()
        manual_clock.advance(5)
        scheduler.tick()
        assert calls == ["icw.wav"]

        manual_clock.advance(5)
        scheduler.tick()
        assert calls == ["icw.wav", "icw.wav"]
        assert scheduler.get("icw").fire_count == 2

    def test_marker_task_is_not_removed(self, scheduler, manual_clock):
        """Tasks without a callback survive tick() for check()."""
        scheduler.add("reset_sw", False, 2)
        manual_clock.advance(5)
        scheduler.tick()
        assert scheduler.check("reset_sw") is True

    def test_cleared_task_does_not_fire(self, scheduler, manual_clock):
        """A cleared task never runs its callback."""
        calls = []
        scheduler.add("x", False, 1, calls.append, 1)
        scheduler.clear("x")
        manual_clock.advance(5)
        scheduler.tick()
        assert calls == []

    def test_failing_callback_does_not_stop_tick(self, scheduler, manual_clock):
        """A raising callback is logged and other tasks still run."""
        calls = []

        def explode():
            raise ValueError("boom")

        scheduler.add("bad", False, 1, explode)
        scheduler.add("good", False, 1, calls.append, "ok")
        manual_clock.advance(1)

        assert scheduler.tick() == 2
        assert calls == ["ok"]

    def test_reset_drops_everything(self, scheduler):
        """reset() removes every task."""
        scheduler.add("a", True, 1)
        scheduler.add("b", True, 1)
        scheduler.reset()
        assert len(scheduler) == 0
        assert scheduler.check("a") is None
