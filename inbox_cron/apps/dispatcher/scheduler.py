"""
Dispatch Scheduler - Cron and On-Demand Execution

Manages scheduled and manual dispatch runs using APScheduler.

Features:
- Cron-based scheduling (configurable via DISPATCH_SCHEDULE_CRON, hourly by default)
- At most one run in flight per process; missed ticks are coalesced
- RUN_ONCE mode for immediate execution
- Graceful shutdown handling

Usage:
    # Scheduled mode (default)
    python -m inbox_cron.apps.dispatcher

    # Run once and exit
    RUN_ONCE=true python -m inbox_cron.apps.dispatcher
"""

import asyncio
import logging
import os
import signal
import sys

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from inbox_cron.apps.dispatcher.job import run_dispatch
from inbox_cron.utils.config import Settings, get_settings
from inbox_cron.utils.logging import setup_logging

logger = logging.getLogger(__name__)

JOB_ID = "dispatch_job"


class DispatchScheduler:
    """
    Scheduler for periodic or on-demand dispatch runs.

    Handles:
    - APScheduler setup and management
    - Cron-based scheduling
    - RUN_ONCE immediate execution
    - Signal handling for graceful shutdown
    """

    def __init__(self, settings: Settings, run_once: bool = False) -> None:
        """
        Initialize scheduler.

        Args:
            settings: Settings used for scheduling; each run reloads its own
            run_once: If True, run dispatch once and exit
        """
        self.settings = settings
        self.run_once = run_once
        self.scheduler: AsyncIOScheduler | None = None
        self.shutdown_event = asyncio.Event()

        logger.info(
            "DispatchScheduler initialized",
            extra={
                "run_once": run_once,
                "cron_schedule": settings.DISPATCH_SCHEDULE_CRON,
            },
        )

    async def execute_dispatch(self) -> None:
        """
        Execute one dispatch run with freshly loaded settings.

        Failures are logged and re-raised so APScheduler records the job as failed.
        """
        logger.info("Starting dispatch execution")

        try:
            summary = await run_dispatch(get_settings())

            logger.info(
                "Dispatch execution completed",
                extra={
                    "total_tasks": summary.total_tasks,
                    "success_count": summary.success_count,
                    "failure_count": summary.failure_count,
                },
            )

        except Exception as e:
            logger.error(
                "Dispatch execution failed",
                extra={"error": str(e)},
                exc_info=True,
            )
            raise

        finally:
            # Signal shutdown if run_once mode
            if self.run_once:
                logger.info("RUN_ONCE mode: signaling shutdown")
                self.shutdown_event.set()

    def setup_signal_handlers(self) -> None:
        """Setup handlers for graceful shutdown on SIGINT/SIGTERM."""

        def signal_handler(signum: int, frame: object) -> None:
            logger.info(f"Received signal {signum}, initiating graceful shutdown")
            self.shutdown_event.set()

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    def add_dispatch_job(self, scheduler: AsyncIOScheduler) -> None:
        """Register the cron job; a tick that lands while a run is in flight is skipped."""
        trigger = CronTrigger.from_crontab(
            self.settings.DISPATCH_SCHEDULE_CRON,
            timezone=self.settings.TASK_TIMEZONE,
        )
        scheduler.add_job(
            self.execute_dispatch,
            trigger=trigger,
            id=JOB_ID,
            name="Hourly Task Dispatch",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )

    async def start(self) -> None:
        """
        Start scheduler or execute once.

        In scheduled mode, runs continuously until shutdown signal.
        In RUN_ONCE mode, executes immediately and exits.
        """
        self.setup_signal_handlers()

        if self.run_once:
            logger.info("Running in RUN_ONCE mode")
            await self.execute_dispatch()
            return

        # Scheduled mode
        logger.info("Running in scheduled mode")

        self.scheduler = AsyncIOScheduler()
        self.add_dispatch_job(self.scheduler)

        # Start scheduler first to get next_run_time
        self.scheduler.start()

        job = self.scheduler.get_job(JOB_ID)
        next_run = getattr(job, "next_run_time", None)

        logger.info(
            "Scheduled dispatch job",
            extra={
                "schedule": self.settings.DISPATCH_SCHEDULE_CRON,
                "next_run": str(next_run) if next_run is not None else None,
            },
        )

        # Wait for shutdown signal
        await self.shutdown_event.wait()

        logger.info("Shutting down scheduler")
        if self.scheduler:
            self.scheduler.shutdown(wait=True)
        logger.info("Scheduler shutdown complete")


async def main() -> None:
    """Main entry point for scheduler."""
    settings = get_settings()
    setup_logging(level=settings.LOG_LEVEL, format_type=settings.LOG_FORMAT)

    run_once = os.getenv("RUN_ONCE", "false").lower() in ("true", "1", "yes")

    scheduler = DispatchScheduler(settings, run_once=run_once)

    try:
        await scheduler.start()
    except Exception as e:
        logger.error("Scheduler failed", extra={"error": str(e)}, exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
