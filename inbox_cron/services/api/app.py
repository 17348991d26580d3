"""
HTTP entry point for manual triggers and health checks.

Endpoints:
- GET  /health  - Service identity and schedule configuration
- POST /trigger - Run one batch; body {"tasks": [...]} is optional
- POST /create  - Submit a single task record
Anything else returns a JSON 404 listing the endpoints above.
"""

import logging
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Optional

import orjson
from fastapi import Depends, FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from pydantic import TypeAdapter
from starlette.exceptions import HTTPException as StarletteHTTPException

from inbox_cron.apps.dispatcher.dispatcher import BatchDispatcher
from inbox_cron.apps.dispatcher.job import build_task_queue
from inbox_cron.apps.dispatcher.submitter import PageSubmitter
from inbox_cron.apps.dispatcher.task_source import derive_tasks
from inbox_cron.utils.config import Settings, get_settings
from inbox_cron.utils.kv import RedisTaskQueue
from inbox_cron.utils.schemas import TaskRecord

logger = logging.getLogger(__name__)

AVAILABLE_ENDPOINTS = ["/health", "/trigger", "/create"]

_TASK_LIST = TypeAdapter(list[TaskRecord])

app = FastAPI(title="ide-inbox-cron")


def get_app_settings() -> Settings:
    return get_settings()


async def get_submitter(
    settings: Settings = Depends(get_app_settings),
) -> AsyncIterator[PageSubmitter]:
    async with PageSubmitter(settings) as submitter:
        yield submitter


async def get_task_queue(
    settings: Settings = Depends(get_app_settings),
) -> AsyncIterator[Optional[RedisTaskQueue]]:
    queue = build_task_queue(settings)
    try:
        yield queue
    finally:
        if queue is not None:
            await queue.close()


async def _read_json(request: Request) -> Any:
    raw = await request.body()
    if not raw.strip():
        return None
    return orjson.loads(raw)


def _error_response(error: Exception) -> JSONResponse:
    return JSONResponse(
        {"success": False, "error": str(error) or type(error).__name__},
        status_code=500,
    )


@app.exception_handler(StarletteHTTPException)
async def not_found_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code in (404, 405):
        return JSONResponse(
            {"error": "Not found", "availableEndpoints": AVAILABLE_ENDPOINTS},
            status_code=404,
        )
    return await http_exception_handler(request, exc)


@app.get("/health")
async def health(settings: Settings = Depends(get_app_settings)) -> dict:
    """Static service identity; does not touch Notion, Redis or SQLite."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "config": {
            "targetDatabase": settings.IDE_INBOX_DB_ID,
            "cronSchedule": settings.DISPATCH_SCHEDULE_CRON,
            "taskType": "Content Writer Batch",
            "batchSize": settings.CONTENT_BATCH_SIZE,
        },
    }


@app.post("/trigger")
async def trigger(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    submitter: PageSubmitter = Depends(get_submitter),
    queue: Optional[RedisTaskQueue] = Depends(get_task_queue),
):
    """Run one batch from the supplied tasks, or from the schedule rules when none are given."""
    try:
        body = await _read_json(request)
        if body is not None and not isinstance(body, dict):
            raise ValueError("Request body must be a JSON object")

        supplied = (body or {}).get("tasks")
        if supplied is not None:
            tasks = _TASK_LIST.validate_python(supplied)
        else:
            tasks = await derive_tasks(datetime.now(timezone.utc), settings, queue)

        dispatcher = BatchDispatcher(submitter, delay=settings.dispatch_delay)
        summary = await dispatcher.run_batch(tasks)

        return {
            "success": True,
            "message": f"Processed {summary.total_tasks} tasks",
            "results": [result.to_wire() for result in summary.results],
        }

    except Exception as e:
        logger.error("Manual trigger failed", extra={"error": str(e)}, exc_info=True)
        return _error_response(e)


@app.post("/create")
async def create(
    request: Request,
    submitter: PageSubmitter = Depends(get_submitter),
):
    """Submit one task record and return its DispatchResult."""
    try:
        body = await _read_json(request)
        record = TaskRecord.model_validate(body)
    except Exception as e:
        logger.warning("Rejected create request", extra={"error": str(e)})
        return _error_response(e)

    result = await submitter.submit(record)
    return result.to_wire()
