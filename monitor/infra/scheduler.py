"""
Scheduler infrastructure for running periodic tasks.
"""

import logging
from typing import Any, Callable, Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger


logger = logging.getLogger(__name__)


class Scheduler:
    """Async task scheduler wrapper around APScheduler (in-memory job store)."""

    def __init__(self, timezone: str = "UTC"):
        job_defaults = {
            'coalesce': True,
            'max_instances': 1,
            'misfire_grace_time': 60  # seconds
        }

        self._scheduler = AsyncIOScheduler(
            job_defaults=job_defaults,
            timezone=timezone
        )
        self._started = False

    async def start(self) -> None:
        """Start the scheduler."""
        if not self._started:
            self._scheduler.start()
            self._started = True
            logger.info("Scheduler started")

    async def stop(self) -> None:
        """Stop the scheduler."""
        if self._started:
            self._scheduler.shutdown(wait=False)
            self._started = False
            logger.info("Scheduler stopped")

    def add_interval_job(
        self,
        func: Callable,
        seconds: Optional[float] = None,
        minutes: Optional[float] = None,
        hours: Optional[float] = None,
        job_id: Optional[str] = None,
        **kwargs
    ) -> None:
        """Add a job that runs at regular intervals."""
        # Build trigger kwargs, excluding None values
        trigger_kwargs = {}
        if seconds is not None:
            trigger_kwargs['seconds'] = seconds
        if minutes is not None:
            trigger_kwargs['minutes'] = minutes
        if hours is not None:
            trigger_kwargs['hours'] = hours

        if not trigger_kwargs:
            raise ValueError("At least one of seconds, minutes, or hours must be specified")

        trigger = IntervalTrigger(**trigger_kwargs)

        self._scheduler.add_job(
            func,
            trigger=trigger,
            id=job_id,
            replace_existing=True,
            **kwargs
        )

        logger.info(f"Added interval job: {job_id or func.__name__}")

    def remove_job(self, job_id: str) -> None:
        """Remove a job by ID."""
        if self._scheduler.get_job(job_id) is None:
            logger.debug(f"No job to remove: {job_id}")
            return
        self._scheduler.remove_job(job_id)
        logger.info(f"Removed job: {job_id}")

    def list_jobs(self) -> Dict[str, Any]:
        """List all scheduled jobs."""
        jobs = {}
        for job in self._scheduler.get_jobs():
            jobs[job.id] = {
                "name": job.name,
                "next_run": getattr(job, "next_run_time", None),
                "trigger": str(job.trigger),
            }
        return jobs
