"""Tests for the periodic sweep runner."""

import threading
from unittest.mock import MagicMock

import pytest

from proxyfail.scheduling import (
    PeriodicTask,
    SessionReaper,
    SessionTokenRotator,
    SweepResult,
    SweepScheduler,
)
from proxyfail.store import InMemorySessionStore


class TestPeriodicTask:
    """Test the timer loop."""

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            PeriodicTask("bad", lambda: SweepResult(success=True), interval=0)

    def test_runs_repeatedly_until_stopped(self):
        ticks = threading.Event()
        calls = []

        def func():
            calls.append(1)
            if len(calls) >= 3:
                ticks.set()
            return SweepResult(success=True)

        task = PeriodicTask("ticker", func, interval=0.01)
        task.start()
        try:
            assert ticks.wait(timeout=5)
        finally:
            task.stop()

        assert not task.is_running
        assert task.get_stats()["runs"] >= 3

    def test_run_immediately(self):
        ran = threading.Event()

        def func():
            ran.set()
            return SweepResult(success=True)

        task = PeriodicTask("now", func, interval=3600, run_immediately=True)
        task.start()
        try:
            assert ran.wait(timeout=5)
        finally:
            task.stop()

    def test_exceptions_counted_and_loop_survives(self):
        second_call = threading.Event()
        calls = []

        def func():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")
            second_call.set()
            return SweepResult(success=False, error="still failing")

        task = PeriodicTask("flaky", func, interval=0.01)
        task.start()
        try:
            assert second_call.wait(timeout=5)
        finally:
            task.stop()

        assert task.get_stats()["failures"] >= 2

    def test_stop_is_idempotent(self):
        task = PeriodicTask("idle", lambda: SweepResult(success=True), interval=3600)
        task.start()
        task.stop()
        task.stop()
        assert not task.is_running


class TestSweepScheduler:
    """Test scheduler wiring."""

    def test_intervals_follow_sweeps(self):
        store = InMemorySessionStore()
        scheduler = SweepScheduler(SessionTokenRotator(store), SessionReaper(store))

        intervals = {t.name: t.interval for t in scheduler.tasks}
        assert intervals == {"SessionTokenRotator": 300.0, "SessionReaper": 1800.0}

    def test_start_and_stop(self):
        store = InMemorySessionStore()
        scheduler = SweepScheduler(SessionTokenRotator(store), SessionReaper(store))

        scheduler.start()
        assert scheduler.is_running
        scheduler.stop()
        assert not scheduler.is_running

    def test_stats_per_task(self):
        rotator = MagicMock(interval=SessionTokenRotator(InMemorySessionStore()).interval)
        reaper = MagicMock(interval=SessionReaper(InMemorySessionStore()).interval)
        scheduler = SweepScheduler(rotator, reaper)

        stats = scheduler.get_stats()

        assert [s["name"] for s in stats] == ["SessionTokenRotator", "SessionReaper"]
        assert all(s["runs"] == 0 for s in stats)
