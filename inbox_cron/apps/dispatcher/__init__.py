"""
Dispatcher App - Hourly Task Poster

Responsibilities:
- Scheduled execution (hourly cron via APScheduler)
- Derive task records from a time-of-day rule table and an optional Redis queue
- Post each record as a Notion database page, one at a time with a 100ms pause
- Aggregate per-record outcomes into a batch summary
- Record runs and fatal errors in an optional SQLite log (best-effort)

Output:
- Notion pages in the IDE_INBOX_DB_ID database
- SQLite rows: cron_logs (per run), error_logs (per failed run)
"""
