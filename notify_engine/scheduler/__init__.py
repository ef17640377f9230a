"""Periodic background jobs."""

from .service import SchedulerService
from .sweeper import PendingSweep, SweepReport

__all__ = [
    "SchedulerService",
    "PendingSweep",
    "SweepReport",
]
