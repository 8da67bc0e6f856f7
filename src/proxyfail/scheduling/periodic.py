"""Periodic runner for the session sweeps.

Each sweep runs on its own daemon thread, waiting on a stop event between
ticks so shutdown is immediate.
"""

import logging
import threading
from datetime import timedelta
from typing import Callable, List, Optional

from proxyfail.common.constants import SweepConstants
from proxyfail.scheduling.sweeps import SessionReaper, SessionTokenRotator, SweepResult

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Calls a function every `interval` seconds until stopped."""

    def __init__(
        self,
        name: str,
        func: Callable[[], SweepResult],
        interval: float,
        run_immediately: bool = False,
    ):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.name = name
        self.func = func
        self.interval = interval
        self.run_immediately = run_immediately

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._runs = 0
        self._failures = 0

    def _tick(self) -> None:
        try:
            result = self.func()
            failed = not result.success
        except Exception as e:
            logger.error(f"{self.name} raised: {e}", exc_info=True)
            failed = True
        self._runs += 1
        if failed:
            self._failures += 1

    def _loop(self) -> None:
        if self.run_immediately:
            self._tick()
        while not self._stop_event.wait(self.interval):
            self._tick()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
        self._thread.start()
        logger.info(f"Started {self.name} (every {self.interval:.0f}s)")

    def stop(self, timeout: float = SweepConstants.THREAD_JOIN_TIMEOUT_SECONDS) -> None:
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning(f"{self.name} did not stop cleanly")
        self._thread = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def get_stats(self) -> dict:
        return {
            "name": self.name,
            "interval_seconds": self.interval,
            "runs": self._runs,
            "failures": self._failures,
            "running": self.is_running,
        }


class SweepScheduler:
    """Owns the rotation and reaping tasks."""

    def __init__(self, rotator: SessionTokenRotator, reaper: SessionReaper):
        self.rotator = rotator
        self.reaper = reaper
        self.tasks: List[PeriodicTask] = [
            PeriodicTask(
                "SessionTokenRotator",
                rotator.run_once,
                _seconds(rotator.interval),
            ),
            PeriodicTask(
                "SessionReaper",
                reaper.run_once,
                _seconds(reaper.interval),
            ),
        ]

    def start(self) -> None:
        for task in self.tasks:
            task.start()

    def stop(self) -> None:
        for task in self.tasks:
            task.stop()
        logger.info("Sweep scheduler stopped")

    @property
    def is_running(self) -> bool:
        return any(task.is_running for task in self.tasks)

    def get_stats(self) -> List[dict]:
        return [task.get_stats() for task in self.tasks]


def _seconds(interval: timedelta) -> float:
    return interval.total_seconds()
