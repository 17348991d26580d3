"""
Dispatch Job - One scheduled run of the task poster.

Flow:
1. Derive tasks from the schedule rules and the optional pending queue
2. Submit them through the Batch Dispatcher
3. Record the outcome in the run log (best-effort)

Errors outside the per-record loop are written to the error log and re-raised
so the scheduler reports the run as failed.

Usage:
    from inbox_cron.apps.dispatcher.job import run_dispatch

    summary = await run_dispatch(get_settings())
"""

import asyncio
import logging
import traceback
from contextlib import AsyncExitStack
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional

from inbox_cron.apps.dispatcher.dispatcher import BatchDispatcher, Submitter
from inbox_cron.apps.dispatcher.run_logger import RunLogger, best_effort
from inbox_cron.apps.dispatcher.submitter import PageSubmitter
from inbox_cron.apps.dispatcher.task_source import PendingQueue, derive_tasks
from inbox_cron.utils.config import Settings
from inbox_cron.utils.kv import RedisTaskQueue
from inbox_cron.utils.schemas import BatchSummary

logger = logging.getLogger(__name__)


def build_task_queue(settings: Settings) -> Optional[RedisTaskQueue]:
    """Return a pending-queue reader, or None when no queue is configured."""
    if not settings.TASK_QUEUE_URL:
        return None
    return RedisTaskQueue(
        settings.TASK_QUEUE_URL,
        settings.TASK_QUEUE_KEY,
        max_connections=settings.REDIS_MAX_CONNECTIONS,
    )


async def _close_quietly(resource: Any, action: str) -> None:
    """Close an owned resource; a finished batch is not failed by its cleanup."""
    with best_effort(action):
        await resource.close()


async def run_dispatch(
    settings: Settings,
    now: Optional[datetime] = None,
    submitter: Optional[Submitter] = None,
    queue: Optional[PendingQueue] = None,
    run_logger: Optional[RunLogger] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> BatchSummary:
    """
    Execute one dispatch run.

    Args:
        settings: Application settings for this invocation
        now: Invocation time; defaults to the current UTC time
        submitter: Page submitter; one is created (and closed) when omitted
        queue: Pending queue; built from settings when omitted
        run_logger: Run log writer; built from settings when omitted
        sleep: Sleep function used for the inter-submission throttle

    Returns:
        BatchSummary of the run

    Raises:
        Exception: Any failure outside the per-record submission loop
    """
    now = now or datetime.now(timezone.utc)
    timestamp = now.isoformat()
    run_logger = run_logger or RunLogger(settings.RUN_LOG_DB_PATH)

    logger.info("Dispatch run triggered", extra={"timestamp": timestamp})

    async with AsyncExitStack() as stack:
        try:
            if queue is None:
                owned_queue = build_task_queue(settings)
                if owned_queue is not None:
                    stack.push_async_callback(_close_quietly, owned_queue, "Queue close")
                queue = owned_queue

            tasks = await derive_tasks(now, settings, queue)
            logger.info("Found tasks to process", extra={"task_count": len(tasks)})

            if not tasks:
                logger.info("No tasks to process, exiting")
                return BatchSummary.from_results(timestamp, [])

            if submitter is None:
                owned_submitter = PageSubmitter(settings)
                stack.push_async_callback(_close_quietly, owned_submitter, "Submitter close")
                submitter = owned_submitter

            dispatcher = BatchDispatcher(submitter, delay=settings.dispatch_delay, sleep=sleep)
            summary = await dispatcher.run_batch(tasks, timestamp=timestamp)

        except Exception as e:
            logger.error(
                "Dispatch run failed",
                extra={"timestamp": timestamp, "error": str(e)},
                exc_info=True,
            )
            with best_effort("Error log write"):
                run_logger.log_error(timestamp, str(e) or type(e).__name__, traceback.format_exc())
            raise

    logger.info(
        "Dispatch run completed",
        extra={
            "success_count": summary.success_count,
            "failure_count": summary.failure_count,
        },
    )

    with best_effort("Run log write"):
        run_logger.log_run(summary)

    return summary
