"""
Database utilities for SQLite operations.

Provides connection management and schema initialization for the run log store.
"""

import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)


def get_conn(db_path: str) -> sqlite3.Connection:
    """
    Open an SQLite connection, creating the parent directory if needed.

    Args:
        db_path: Path to the SQLite database file

    Returns:
        SQLite connection

    Raises:
        sqlite3.Error: If connection fails
    """
    # Ensure database directory exists
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    return sqlite3.connect(str(path))


def init_schema(db_path: str) -> None:
    """
    Initialize database schema by creating required tables if they don't exist.

    Creates:
    - cron_logs: one row per completed dispatch run
    - error_logs: one row per run that failed outside the submission loop

    Raises:
        sqlite3.Error: If schema creation fails
    """
    conn = get_conn(db_path)
    try:
        with conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS cron_logs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    total_tasks INTEGER NOT NULL,
                    success_count INTEGER NOT NULL,
                    failure_count INTEGER NOT NULL,
                    results TEXT,
                    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS error_logs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    error_message TEXT NOT NULL,
                    stack_trace TEXT,
                    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                )
            """)

            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_cron_logs_created_at ON cron_logs(created_at DESC)"
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_error_logs_created_at ON error_logs(created_at DESC)"
            )
    finally:
        conn.close()

    logger.info("DB schema ready", extra={"db_path": db_path})
