"""Scheduler service for periodic background jobs."""

import threading
from datetime import datetime, timezone
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from notify_engine.logging import get_logger

logger = get_logger(__name__, component="scheduler")


class SchedulerService:
    """
    Wraps APScheduler to run one job at a fixed interval.

    Uses BackgroundScheduler to run the job in a separate thread while
    the main thread handles signals and coordinates shutdown.
    """

    def __init__(
        self,
        job_callable: Callable[[], object],
        interval_seconds: int,
        job_id: str = "pending-sweep",
        job_name: str = "Pending notification sweep",
        shutdown_event: Optional[threading.Event] = None,
    ):
        """
        Initialize the scheduler service.

        Args:
            job_callable: Function called on each run (e.g. PendingSweep.run_once)
            interval_seconds: Interval between runs in seconds
            job_id: APScheduler job id
            job_name: Human-readable job name
            shutdown_event: Optional event set on shutdown for coordination
        """
        self.job_callable = job_callable
        self.interval_seconds = interval_seconds
        self.job_id = job_id
        self.job_name = job_name
        self.shutdown_event = shutdown_event

        self.scheduler = BackgroundScheduler(
            job_defaults={
                "max_instances": 1,  # No overlapping runs
                "coalesce": True,  # A delayed run executes once
                "misfire_grace_time": interval_seconds,
            },
            timezone=timezone.utc,
        )

    def start(self) -> None:
        """
        Register the job and start the scheduler.

        The first run executes immediately; later runs follow the interval.
        """
        trigger = IntervalTrigger(seconds=self.interval_seconds, timezone=timezone.utc)

        next_run = datetime.now(timezone.utc)
        self.scheduler.add_job(
            func=self.job_callable,
            trigger=trigger,
            id=self.job_id,
            name=self.job_name,
            replace_existing=True,
            next_run_time=next_run,
        )

        self.scheduler.start()

        logger.info(
            f"Scheduler started with interval: {self.interval_seconds} seconds",
            extra={
                "event": "scheduler.started",
                "job_id": self.job_id,
                "interval_seconds": self.interval_seconds,
                "next_run_time": next_run.isoformat(),
            },
        )

    def shutdown(self, wait: bool = False) -> None:
        """
        Shutdown the scheduler.

        Args:
            wait: If True, wait for a running job to complete before returning
        """
        logger.info(
            "Shutting down scheduler",
            extra={"event": "scheduler.stopping", "wait_for_jobs": wait},
        )

        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)

        if self.shutdown_event:
            self.shutdown_event.set()

        logger.info("Scheduler shutdown complete", extra={"event": "scheduler.stopped"})

    def trigger_now(self) -> None:
        """Run the job synchronously in the current thread."""
        logger.info(
            f"Triggering immediate run of {self.job_id}",
            extra={"event": "scheduler.trigger_now", "job_id": self.job_id},
        )
        self.job_callable()

    def is_running(self) -> bool:
        return self.scheduler.running

    def get_next_run_time(self) -> Optional[datetime]:
        """Next scheduled run time, or None if not scheduled."""
        job = self.scheduler.get_job(self.job_id)
        return job.next_run_time if job else None
