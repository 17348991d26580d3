"""
Batch Dispatcher - Sequential, throttled fan-out of task records.

Submits each record in order, one at a time, pausing between submissions to
stay under the Notion rate limit. A failed record never stops the batch.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, Protocol, Sequence

from inbox_cron.utils.schemas import BatchSummary, DispatchResult, TaskRecord

logger = logging.getLogger(__name__)

DEFAULT_DELAY = 0.1


class Submitter(Protocol):
    async def submit(self, record: TaskRecord) -> DispatchResult: ...


@dataclass
class BatchCursor:
    """Position within one batch and the results collected so far."""

    tasks: Sequence[TaskRecord]
    index: int = 0
    results: list[DispatchResult] = field(default_factory=list)

    @property
    def done(self) -> bool:
        return self.index >= len(self.tasks)

    async def step(self, submitter: Submitter) -> DispatchResult:
        """Submit the next record and advance."""
        record = self.tasks[self.index]
        result = await submitter.submit(record)
        self.results.append(result)
        self.index += 1
        return result


class BatchDispatcher:
    """
    Runs one batch of task records through a submitter.

    Args:
        submitter: Anything with `async submit(record) -> DispatchResult`
        delay: Seconds to pause between submissions
        sleep: Awaitable sleep function, replaceable in tests
    """

    def __init__(
        self,
        submitter: Submitter,
        delay: float = DEFAULT_DELAY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.submitter = submitter
        self.delay = delay
        self.sleep = sleep

    async def run_batch(
        self,
        tasks: Sequence[TaskRecord],
        timestamp: Optional[str] = None,
    ) -> BatchSummary:
        """
        Submit every record and aggregate the outcomes.

        Args:
            tasks: Records to submit, in order
            timestamp: Run timestamp; defaults to now (UTC, ISO-8601)

        Returns:
            BatchSummary with one result per input record, in input order
        """
        timestamp = timestamp or datetime.now(timezone.utc).isoformat()
        cursor = BatchCursor(tasks=tasks)

        logger.info("Batch started", extra={"total_tasks": len(tasks)})

        while not cursor.done:
            if cursor.index > 0 and self.delay > 0:
                await self.sleep(self.delay)
            await cursor.step(self.submitter)

        summary = BatchSummary.from_results(timestamp, cursor.results)

        logger.info(
            "Batch completed",
            extra={
                "total_tasks": summary.total_tasks,
                "success_count": summary.success_count,
                "failure_count": summary.failure_count,
            },
        )
        return summary
