"""
tests/test_task_source.py

Time-of-day rules and pending-queue handling in derive_tasks.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import orjson
import pytest

from inbox_cron.apps.dispatcher.task_source import (
    QueueContentError,
    ScheduleRule,
    derive_tasks,
    parse_pending_tasks,
    rule_for_hour,
)
from tests.conftest import FakeQueue, make_settings

UTC_SETTINGS = make_settings(TASK_TIMEZONE="UTC")


def at_hour(hour: int) -> datetime:
    return datetime(2026, 3, 2, hour, 0, tzinfo=timezone.utc)


def derive(now: datetime, queue=None, settings=UTC_SETTINGS):
    return asyncio.run(derive_tasks(now, settings, queue))


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------


class TestRules:
    @pytest.mark.parametrize("hour", [6, 9, 11])
    def test_morning_window(self, hour: int) -> None:
        assert rule_for_hour(hour).name == "morning"

    @pytest.mark.parametrize("hour", [0, 5, 12, 18, 23])
    def test_content_batch_outside_morning(self, hour: int) -> None:
        assert rule_for_hour(hour).name == "content-batch"

    def test_wrapping_window(self) -> None:
        night = ScheduleRule("night", 22, 4, lambda t, s: [])
        assert night.matches(23)
        assert night.matches(0)
        assert night.matches(3)
        assert not night.matches(4)
        assert not night.matches(12)

    def test_no_matching_rule(self) -> None:
        assert rule_for_hour(3, rules=(ScheduleRule("noon", 12, 13, lambda t, s: []),)) is None


class TestDeriveTasks:
    def test_morning_emits_daily_code_review(self) -> None:
        tasks = derive(at_hour(9))
        assert len(tasks) == 1
        assert tasks[0].title == "Daily Code Review"
        assert tasks[0].priority == "High"

    def test_afternoon_emits_content_batch(self) -> None:
        tasks = derive(datetime(2026, 3, 2, 15, 30, tzinfo=timezone.utc))
        assert len(tasks) == 1
        assert tasks[0].title == "Write Content Batch — Mar 2, 2026, 03:30 PM"
        assert tasks[0].status == "Queued"
        assert tasks[0].priority == "High"
        assert "Write 5 articles" in tasks[0].description

    def test_batch_size_from_settings(self) -> None:
        tasks = derive(at_hour(20), settings=make_settings(TASK_TIMEZONE="UTC", CONTENT_BATCH_SIZE=3))
        assert "Write 3 articles" in tasks[0].description

    def test_hour_taken_in_configured_timezone(self) -> None:
        # 14:00 UTC is 09:00 in New York during standard time
        settings = make_settings(TASK_TIMEZONE="America/New_York")
        tasks = derive(datetime(2026, 1, 15, 14, 0, tzinfo=timezone.utc), settings=settings)
        assert tasks[0].title == "Daily Code Review"

    def test_empty_rule_table(self) -> None:
        tasks = asyncio.run(derive_tasks(at_hour(9), UTC_SETTINGS, None, rules=()))
        assert tasks == []


# ---------------------------------------------------------------------------
# Pending queue
# ---------------------------------------------------------------------------


class TestPendingQueue:
    def test_queued_tasks_appended_after_rule_tasks(self) -> None:
        raw = orjson.dumps([{"title": "Queued A"}, {"title": "Queued B", "tags": ["x"]}])
        tasks = derive(at_hour(9), FakeQueue(raw))
        assert [t.title for t in tasks] == ["Daily Code Review", "Queued A", "Queued B"]
        assert tasks[2].tags == ("x",)

    def test_missing_key_adds_nothing(self) -> None:
        queue = FakeQueue(None)
        tasks = derive(at_hour(9), queue)
        assert [t.title for t in tasks] == ["Daily Code Review"]
        assert queue.reads == 1

    @pytest.mark.parametrize(
        "raw",
        [b"not json", b'{"title": "X"}', b'[{"description": "no title"}]', b'[{"title": ""}]'],
    )
    def test_malformed_content_keeps_rule_tasks(self, raw: bytes) -> None:
        tasks = derive(at_hour(9), FakeQueue(raw))
        assert [t.title for t in tasks] == ["Daily Code Review"]

    def test_read_failure_keeps_rule_tasks(self) -> None:
        tasks = derive(at_hour(9), FakeQueue(error=ConnectionError("redis down")))
        assert [t.title for t in tasks] == ["Daily Code Review"]


class TestParsePendingTasks:
    @pytest.mark.parametrize("raw", [None, b"", ""])
    def test_empty_is_no_tasks(self, raw) -> None:
        assert parse_pending_tasks(raw) == []

    def test_valid_array(self) -> None:
        tasks = parse_pending_tasks('[{"title": "A", "priority": "Low"}]')
        assert tasks[0].title == "A"
        assert tasks[0].priority == "Low"

    def test_not_an_array(self) -> None:
        with pytest.raises(QueueContentError, match="JSON array"):
            parse_pending_tasks(b'{"tasks": []}')

    def test_invalid_json(self) -> None:
        with pytest.raises(QueueContentError, match="not valid JSON"):
            parse_pending_tasks(b"[{")

    def test_invalid_record(self) -> None:
        with pytest.raises(QueueContentError, match="invalid task records"):
            parse_pending_tasks(b'[{"title": "A", "priority": "Urgent"}]')
