"""Job scheduling for the periodic status check."""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger


logger = structlog.get_logger(__name__)


class MonitorScheduler:
    """Runs monitoring jobs on the event loop using APScheduler."""

    def __init__(self, scheduler: Optional[AsyncIOScheduler] = None):
        self.scheduler = scheduler or AsyncIOScheduler(timezone=timezone.utc)
        self.jobs: Dict[str, Dict[str, Any]] = {}
        self.running = False

    def start(self) -> None:
        """Start the scheduler. Must be called from a running event loop."""
        if self.running:
            logger.warning("Scheduler already running")
            return

        self.scheduler.start()
        self.running = True
        logger.info("Job scheduler started")

    def stop(self) -> None:
        """Stop the scheduler without waiting for in-flight jobs."""
        if not self.running:
            return

        self.scheduler.shutdown(wait=False)
        self.running = False
        logger.info("Job scheduler stopped")

    def add_interval_job(
        self,
        job_id: str,
        func: Callable,
        seconds: float,
        run_immediately: bool = True,
        description: Optional[str] = None,
    ) -> None:
        """Add an interval job.

        At most one instance runs at a time; ticks that fire while the previous
        run is still going are coalesced and skipped rather than queued.
        """
        if job_id in self.jobs:
            logger.warning("Job already exists, replacing", job_id=job_id)
            self.remove_job(job_id)

        trigger = IntervalTrigger(seconds=seconds)
        extra: Dict[str, Any] = {}
        if run_immediately:
            extra["next_run_time"] = datetime.now(timezone.utc)

        job = self.scheduler.add_job(
            func=func,
            trigger=trigger,
            id=job_id,
            name=description or job_id,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=None,
            **extra,
        )

        self.jobs[job_id] = {
            "job": job,
            "seconds": seconds,
            "description": description,
            "added_at": datetime.now(timezone.utc),
        }

        logger.info("Added interval job",
                    job_id=job_id,
                    interval_seconds=seconds,
                    description=description)

    def remove_job(self, job_id: str) -> bool:
        """Remove a scheduled job."""
        if job_id not in self.jobs:
            logger.warning("Job not found", job_id=job_id)
            return False

        try:
            self.scheduler.remove_job(job_id)
        except Exception as e:
            logger.error("Failed to remove job", job_id=job_id, error=str(e))
            return False
        del self.jobs[job_id]
        logger.info("Removed job", job_id=job_id)
        return True

    def get_job_status(self, job_id: str) -> Optional[Dict[str, Any]]:
        """Get status information for a job."""
        if job_id not in self.jobs:
            return None

        job_info = self.jobs[job_id]
        scheduler_job = self.scheduler.get_job(job_id)
        if scheduler_job is None:
            return None

        return {
            "job_id": job_id,
            "name": scheduler_job.name,
            "interval_seconds": job_info["seconds"],
            "next_run": scheduler_job.next_run_time.isoformat() if scheduler_job.next_run_time else None,
            "added_at": job_info["added_at"].isoformat(),
            "description": job_info.get("description"),
        }
