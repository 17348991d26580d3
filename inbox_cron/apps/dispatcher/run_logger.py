"""
Run Logger - Best-effort persistence of run outcomes to SQLite.

Writes one row per completed run (cron_logs) or per failed run (error_logs).
With no store configured every call is a no-op; a failing store is logged
and otherwise ignored.
"""

import logging
import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional

import orjson

from inbox_cron.utils.db import get_conn, init_schema
from inbox_cron.utils.schemas import BatchSummary

logger = logging.getLogger(__name__)


@contextmanager
def best_effort(action: str) -> Iterator[None]:
    """Run the block, logging and discarding any exception it raises."""
    try:
        yield
    except Exception as e:
        logger.error(f"{action} failed, continuing", extra={"error": str(e)}, exc_info=True)


class RunLogger:
    """Append-only writer for the run log and error log tables."""

    def __init__(self, db_path: Optional[str] = None) -> None:
        self.db_path = db_path
        self._schema_ready = False

    @property
    def enabled(self) -> bool:
        return bool(self.db_path)

    def _execute(self, sql: str, params: tuple) -> None:
        if not self._schema_ready:
            init_schema(self.db_path)
            self._schema_ready = True

        conn = get_conn(self.db_path)
        try:
            with conn:
                conn.execute(sql, params)
        finally:
            conn.close()

    def log_run(self, summary: BatchSummary) -> None:
        """Record a completed run. Never raises."""
        if not self.enabled:
            return

        results = orjson.dumps([r.to_wire() for r in summary.results]).decode("utf-8")

        try:
            self._execute(
                """
                INSERT INTO cron_logs (timestamp, total_tasks, success_count, failure_count, results)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    summary.timestamp,
                    summary.total_tasks,
                    summary.success_count,
                    summary.failure_count,
                    results,
                ),
            )
        except (sqlite3.Error, OSError) as e:
            logger.error("Failed to write run log", extra={"db_path": self.db_path, "error": str(e)})

    def log_error(self, timestamp: str, message: str, trace: Optional[str] = None) -> None:
        """Record a run that failed outside the submission loop. Never raises."""
        if not self.enabled:
            return

        try:
            self._execute(
                "INSERT INTO error_logs (timestamp, error_message, stack_trace) VALUES (?, ?, ?)",
                (timestamp, message, trace),
            )
        except (sqlite3.Error, OSError) as e:
            logger.error("Failed to write error log", extra={"db_path": self.db_path, "error": str(e)})
