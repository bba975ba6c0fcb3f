"""Reconnect watchdog for the queue consumer."""

from datetime import datetime, timezone
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from job_notifier.broker.consumer import JobConsumer
from job_notifier.logging import get_logger

logger = get_logger(__name__, component="scheduler")

WATCHDOG_JOB_ID = "consumer-reconnect"


class ReconnectScheduler:
    """
    Wraps APScheduler to restart a disconnected consumer at a fixed interval.

    A consumer that loses its broker connection drops back to DISCONNECTED and
    stays there; this watchdog calls ensure_started() so it reconnects once
    the broker is reachable again.
    """

    def __init__(self, consumer: JobConsumer, interval_seconds: int):
        """
        Args:
            consumer: Consumer to keep connected
            interval_seconds: Seconds between reconnect checks
        """
        self.consumer = consumer
        self.interval_seconds = interval_seconds

        self.scheduler = BackgroundScheduler(
            job_defaults={
                "max_instances": 1,  # a slow reconnect must not overlap the next check
                "coalesce": True,
                "misfire_grace_time": interval_seconds,
            },
            timezone=timezone.utc,
        )

    def _check_consumer(self) -> None:
        if self.consumer.ensure_started():
            logger.info(
                "Reconnect watchdog restarted the consumer",
                extra={"event": "scheduler.consumer_restarted"},
            )

    def start(self) -> None:
        """Register the watchdog job and start the scheduler thread.

        The first check runs one interval after startup; the consumer is
        started directly by its owner.
        """
        trigger = IntervalTrigger(seconds=self.interval_seconds, timezone=timezone.utc)

        self.scheduler.add_job(
            func=self._check_consumer,
            trigger=trigger,
            id=WATCHDOG_JOB_ID,
            name="Consumer reconnect watchdog",
            replace_existing=True,
        )
        self.scheduler.start()

        logger.info(
            f"Reconnect watchdog started with interval: {self.interval_seconds} seconds",
            extra={
                "event": "scheduler.started",
                "interval_seconds": self.interval_seconds,
            },
        )

    def shutdown(self, wait: bool = False) -> None:
        """
        Stop the watchdog.

        Args:
            wait: If True, wait for a running check to complete before returning
        """
        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)

        logger.info("Reconnect watchdog stopped", extra={"event": "scheduler.stopped"})

    def is_running(self) -> bool:
        return self.scheduler.running

    def get_next_run_time(self) -> Optional[datetime]:
        job = self.scheduler.get_job(WATCHDOG_JOB_ID)
        return job.next_run_time if job else None
