"""Scheduling - token rotation and session reaping sweeps."""

from proxyfail.scheduling.sweeps import (
    SessionReaper,
    SessionTokenRotator,
    SweepResult,
    generate_token,
)
from proxyfail.scheduling.periodic import PeriodicTask, SweepScheduler

__all__ = [
    "SessionReaper",
    "SessionTokenRotator",
    "SweepResult",
    "generate_token",
    "PeriodicTask",
    "SweepScheduler",
]
