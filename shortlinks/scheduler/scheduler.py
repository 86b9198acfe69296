"""Scheduler implementation for the shortlink application.

This module provides a scheduler service that manages background tasks
like sweeping stale entries from the memory tier using APScheduler.
"""

from typing import Any, Dict, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from shortlinks.core.config import Settings, settings as default_settings
from shortlinks.core.timeutils import utcnow
from shortlinks.services.cleanup import CleanupService

SWEEP_JOB_ID = "sweep_memory_tier"


class SchedulerService:
    """
    Scheduler service for managing background tasks.

    This service provides a wrapper around APScheduler to handle
    scheduling and execution of the memory tier sweep.
    """

    def __init__(self, cleanup_service: CleanupService, settings: Settings = default_settings):
        """Initialize the scheduler service."""
        self.cleanup_service = cleanup_service
        self.settings = settings
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.is_running = False
        self.jobs: List[Dict[str, Any]] = []
        self.last_result: Optional[Dict[str, Any]] = None

    async def sweep_job(self) -> Dict[str, Any]:
        """
        Job to sweep the memory tier.

        Errors are logged and reported in the result so the scheduler keeps running.
        """
        logger.info("Starting scheduled sweep of memory tier")
        try:
            result = await self.cleanup_service.sweep_memory_tier()
        except Exception as e:
            logger.error(f"Error in scheduled memory tier sweep: {e!r}")
            result = {
                "status": "error",
                "error": str(e),
                "timestamp": utcnow().isoformat(),
            }
        self.last_result = result
        return result

    def initialize(self) -> None:
        """
        Initialize the scheduler.

        This sets up the APScheduler with job defaults but does not start it yet.
        """
        if self.scheduler:
            logger.warning("Scheduler already initialized")
            return

        # Jobs are rebuilt on every start, so the default in-memory job store is enough
        self.scheduler = AsyncIOScheduler(
            job_defaults={
                "coalesce": self.settings.SCHEDULER_JOB_COALESCE,
                "max_instances": self.settings.SCHEDULER_JOB_MAX_INSTANCES,
                "misfire_grace_time": self.settings.SCHEDULER_MISFIRE_GRACE_TIME,
            }
        )
        logger.info("Scheduler initialized successfully")

    def start(self) -> None:
        """
        Start the scheduler and register jobs.

        Must be called from within a running event loop.
        """
        if not self.scheduler:
            self.initialize()

        if self.is_running:
            logger.warning("Scheduler already running")
            return

        interval = self.settings.SWEEP_INTERVAL_SECONDS
        try:
            self.scheduler.add_job(
                self.sweep_job,
                trigger=IntervalTrigger(seconds=interval, timezone="UTC"),
                id=SWEEP_JOB_ID,
                name="Sweep Memory Tier",
                replace_existing=True,
            )
            self.jobs = [{
                "id": SWEEP_JOB_ID,
                "name": "Sweep Memory Tier",
                "interval": f"{interval} seconds",
                "function": "sweep_job",
            }]

            self.scheduler.start()
            self.is_running = True
            logger.info(f"Scheduler started with {len(self.jobs)} jobs")

            if self.settings.SWEEP_ON_STARTUP:
                logger.info("Running sweep job on startup")
                self.scheduler.add_job(
                    self.sweep_job,
                    id="sweep_startup",
                    name="Startup Sweep",
                    replace_existing=True,
                )
        except Exception as e:
            logger.error(f"Error starting scheduler: {e!r}")
            self.is_running = False
            raise

    def shutdown(self) -> None:
        """Shutdown the scheduler without waiting for running jobs."""
        if not self.scheduler or not self.is_running:
            logger.debug("Scheduler not running, nothing to shut down")
            return

        self.scheduler.shutdown(wait=False)
        self.is_running = False
        self.scheduler = None
        logger.info("Scheduler shut down successfully")

    def get_status(self) -> Dict[str, Any]:
        """
        Get the current status of the scheduler.

        Returns:
            Dict with information about the scheduler status and jobs
        """
        job_details = []
        if self.scheduler and self.is_running:
            for job in self.scheduler.get_jobs():
                job_details.append({
                    "job_id": job.id,
                    "name": job.name,
                    "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
                })

        return {
            "running": self.is_running,
            "jobs": self.jobs,
            "scheduler_jobs_status": job_details,
            "last_result": self.last_result,
        }
