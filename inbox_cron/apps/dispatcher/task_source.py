"""
Task Source - Derives the task records for one dispatch run.

Two inputs:
- A time-of-day rule table: the first rule whose hour window contains the
  current hour (in TASK_TIMEZONE) builds the rule-based records.
- An optional pending queue: a Redis blob holding a JSON array of task
  records, appended after the rule-based records.

Bad queue content never blocks the rule-based records.

Usage:
    from inbox_cron.apps.dispatcher.task_source import derive_tasks

    tasks = await derive_tasks(datetime.now(timezone.utc), settings, queue)
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional, Protocol
from zoneinfo import ZoneInfo

import orjson
from pydantic import TypeAdapter, ValidationError

from inbox_cron.utils.config import Settings
from inbox_cron.utils.schemas import Priority, TaskRecord

logger = logging.getLogger(__name__)

_TASK_LIST = TypeAdapter(list[TaskRecord])


class QueueContentError(ValueError):
    """Pending-queue blob could not be decoded into task records."""


class PendingQueue(Protocol):
    async def read_pending(self) -> Optional[bytes]: ...


@dataclass(frozen=True)
class ScheduleRule:
    """Hour window [start_hour, end_hour) mapped to a task builder.

    Windows with start_hour > end_hour wrap past midnight.
    """

    name: str
    start_hour: int
    end_hour: int
    build: Callable[[datetime, Settings], list[TaskRecord]]

    def matches(self, hour: int) -> bool:
        if self.start_hour <= self.end_hour:
            return self.start_hour <= hour < self.end_hour
        return hour >= self.start_hour or hour < self.end_hour


def _code_review_tasks(local_time: datetime, settings: Settings) -> list[TaskRecord]:
    return [
        TaskRecord(
            title="Daily Code Review",
            description=(
                "Morning review pass. Go through pull requests opened since the "
                "last review and leave feedback on anything blocking."
            ),
            priority=Priority.HIGH,
            status="Queued",
            tags=("code-review",),
        )
    ]


def _content_batch_tasks(local_time: datetime, settings: Settings) -> list[TaskRecord]:
    formatted = f"{local_time:%b} {local_time.day}, {local_time:%Y, %I:%M %p}"
    return [
        TaskRecord(
            title=f"Write Content Batch — {formatted}",
            description=(
                f"Hourly batch trigger. Write {settings.CONTENT_BATCH_SIZE} articles from "
                "Content Lines with Status=Active. Round-robin from active outlines, "
                "prioritizing oldest entries first (Status = Outline Needed or Queued)."
            ),
            priority=Priority.HIGH,
            status="Queued",
        )
    ]


SCHEDULE_RULES: tuple[ScheduleRule, ...] = (
    ScheduleRule("morning", 6, 12, _code_review_tasks),
    ScheduleRule("content-batch", 0, 24, _content_batch_tasks),
)


def rule_for_hour(hour: int, rules: tuple[ScheduleRule, ...] = SCHEDULE_RULES) -> Optional[ScheduleRule]:
    """Return the first rule whose window contains hour, if any."""
    for rule in rules:
        if rule.matches(hour):
            return rule
    return None


def parse_pending_tasks(raw: Any) -> list[TaskRecord]:
    """
    Decode a pending-queue blob into task records.

    Args:
        raw: JSON bytes/str, or None/empty for "no pending tasks"

    Returns:
        Decoded task records, in blob order

    Raises:
        QueueContentError: If the blob is not a JSON array of valid task records
    """
    if raw is None or raw in (b"", ""):
        return []

    try:
        data = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise QueueContentError(f"Pending queue is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise QueueContentError(
            f"Pending queue must be a JSON array, got {type(data).__name__}"
        )

    try:
        return _TASK_LIST.validate_python(data)
    except ValidationError as e:
        raise QueueContentError(f"Pending queue holds invalid task records: {e}") from e


async def _read_queue_tasks(queue: PendingQueue) -> list[TaskRecord]:
    try:
        raw = await queue.read_pending()
    except Exception as e:
        logger.error(
            "Failed to read pending queue, continuing with scheduled tasks",
            extra={"error": str(e)},
            exc_info=True,
        )
        return []

    try:
        return parse_pending_tasks(raw)
    except QueueContentError as e:
        logger.warning(
            "Skipping malformed pending queue content",
            extra={"error": str(e)},
        )
        return []


async def derive_tasks(
    current_time: datetime,
    settings: Settings,
    queue: Optional[PendingQueue] = None,
    rules: tuple[ScheduleRule, ...] = SCHEDULE_RULES,
) -> list[TaskRecord]:
    """
    Build the task records for this invocation.

    Args:
        current_time: Timezone-aware wall-clock time of the invocation
        settings: Application settings (timezone, batch size)
        queue: Optional pending-task queue
        rules: Ordered rule table; the first matching rule wins

    Returns:
        Rule-based records first, then queued records
    """
    local_time = current_time.astimezone(ZoneInfo(settings.TASK_TIMEZONE))
    rule = rule_for_hour(local_time.hour, rules)

    tasks: list[TaskRecord] = []
    if rule is not None:
        tasks.extend(rule.build(local_time, settings))

    queued: list[TaskRecord] = []
    if queue is not None:
        queued = await _read_queue_tasks(queue)
        tasks.extend(queued)

    logger.info(
        "Derived tasks",
        extra={
            "rule": rule.name if rule else None,
            "local_hour": local_time.hour,
            "scheduled_count": len(tasks) - len(queued),
            "queued_count": len(queued),
        },
    )
    return tasks
